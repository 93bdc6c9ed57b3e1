"""Exceptions raised by the version history store."""


class HistoryError(Exception):
    """Base exception for history store failures."""


class GitError(HistoryError):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class UnknownReferenceError(HistoryError):
    """A label, checkpoint or other reference does not resolve."""

    def __init__(self, ref: str) -> None:
        self.ref = ref
        super().__init__(f"Unknown reference: {ref}")


class LabelExistsError(HistoryError):
    """A label with this name already exists. Labels are never moved."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Label already exists: {name}")
