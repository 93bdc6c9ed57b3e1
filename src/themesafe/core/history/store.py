"""
Git-backed version history for the local working tree.

The working tree mirrors one remote target. Every state transition is
recorded as a commit (a Checkpoint) and important ones are named with an
annotated tag (a Label). Labels are append-only: this module can create
them but offers no way to move or delete one.

The implementation drives the git CLI:
- `git add -A` + `git commit` to snapshot the tree
- `git tag -a` to label a checkpoint, with its kind and creation time
  stored as trailers
- `git for-each-ref` to enumerate labels newest first
- `git checkout <ref> -- .` to materialize a label's files
- `git diff --name-status/--numstat` for structured diffs, with a
  throwaway index for comparisons against the live working tree
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
import tempfile
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

from themesafe.core.history.exceptions import (
    GitError,
    LabelExistsError,
    UnknownReferenceError,
)
from themesafe.core.history.models import (
    ChangeKind,
    Checkpoint,
    DiffReport,
    FileChange,
    Label,
    LabelKind,
)

logger = logging.getLogger(__name__)

KIND_TRAILER = "Label-Kind"
# Tag dates have one-second resolution; this orders labels made in the same second
TIME_TRAILER = "Label-Time"
WORKING_TREE = "working tree"

# Field and record separators for for-each-ref / log output
_FS = "\x1f"
_RS = "\x1e"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _parse_date(value: str) -> datetime:
    # git prints UTC as "Z" in strict ISO mode on newer versions
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


class HistoryStore:
    """
    Checkpoint/label history over a working directory.

    Example:
        >>> history = HistoryStore(Path(".themesafe/theme"))
        >>> history.initialize()
        >>> history.write_file("assets/base.css", "body {}")
        >>> checkpoint = history.snapshot("post-push: restyle")
        >>> history.label(checkpoint, "v1-push", LabelKind.PUSH, "restyle")
        >>> [label.name for label in history.list_labels()]
        ['v1-push']
    """

    def __init__(
        self,
        repo_dir: Path,
        *,
        author_name: str = "themesafe",
        author_email: str = "themesafe@localhost",
    ) -> None:
        """
        Initialize the history store.

        Args:
            repo_dir: Working directory that holds the tree and its .git
            author_name: Identity recorded on checkpoints and labels
            author_email: Identity recorded on checkpoints and labels
        """
        self.repo_dir = repo_dir.resolve()
        self.author_name = author_name
        self.author_email = author_email

    def _run_git(
        self,
        args: list[str],
        *,
        check: bool = True,
        input_data: str | None = None,
        strip: bool = True,
        env: dict[str, str] | None = None,
        identity: bool = False,
    ) -> str:
        """
        Run a git command in the repository and return its stdout.

        Args:
            args: Git command arguments (without "git" prefix).
            check: Whether to raise on non-zero exit code.
            input_data: Optional stdin data to pass to the command.
            strip: Whether to strip surrounding whitespace from stdout.
            env: Extra environment variables for this command.
            identity: Whether to pin the author/committer identity.

        Raises:
            GitError: If the command fails and check=True.
        """
        # Never fall through to an enclosing repository
        if args[:1] != ["init"] and not self.is_initialized():
            raise GitError(f"No history repository at {self.repo_dir}", command=["git", *args])

        cmd = ["git"]
        if identity:
            cmd += [
                "-c", f"user.name={self.author_name}",
                "-c", f"user.email={self.author_email}",
                "-c", "commit.gpgsign=false",
                "-c", "tag.gpgsign=false",
            ]  # fmt: skip
        cmd += args

        logger.debug("Running git command: %s", " ".join(cmd))

        run_env = None
        if env:
            run_env = {**os.environ, **env}

        try:
            result = subprocess.run(
                cmd,
                cwd=self.repo_dir,
                capture_output=True,
                text=True,
                timeout=120,
                input=input_data,
                env=run_env,
            )
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Git command timed out: {' '.join(cmd)}", command=cmd) from e
        except FileNotFoundError as e:
            raise GitError("git not found in PATH", command=cmd) from e

        if check and result.returncode != 0:
            stderr = result.stderr.strip() if result.stderr else ""
            raise GitError(
                f"Git command failed: {' '.join(cmd)}",
                command=cmd,
                stderr=stderr,
            )

        out = result.stdout or ""
        return out.strip() if strip else out

    def _git_succeeds(self, args: list[str]) -> bool:
        try:
            self._run_git(args)
            return True
        except GitError:
            return False

    # ------------------------------------------------------------------
    # Repository lifecycle
    # ------------------------------------------------------------------

    def is_initialized(self) -> bool:
        """Check whether the working directory has its own repository."""
        return (self.repo_dir / ".git").exists()

    def initialize(self) -> None:
        """Create the working directory and its repository if needed."""
        self.repo_dir.mkdir(parents=True, exist_ok=True)
        if self.is_initialized():
            logger.info("History repository already exists at %s", self.repo_dir)
            return

        self._run_git(["init", "-q"])
        self._run_git(["config", "core.autocrlf", "false"])
        self._run_git(["config", "core.quotepath", "false"])
        logger.info("Initialized history repository at %s", self.repo_dir)

    def _empty_tree_sha(self) -> str:
        return self._run_git(["hash-object", "-t", "tree", "/dev/null"])

    # ------------------------------------------------------------------
    # Checkpoints
    # ------------------------------------------------------------------

    def head(self) -> Checkpoint | None:
        """Return the latest checkpoint, or None if there are none yet."""
        if not self._git_succeeds(["rev-parse", "--verify", "--quiet", "HEAD"]):
            return None
        return self.resolve("HEAD")

    def resolve(self, ref: str) -> Checkpoint:
        """
        Resolve a label name, SHA or git revision to a checkpoint.

        Raises:
            UnknownReferenceError: If the reference does not resolve to a commit.
        """
        if not ref or ref.startswith("-"):
            raise UnknownReferenceError(ref)
        try:
            sha = self._run_git(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        except GitError as e:
            raise UnknownReferenceError(ref) from e

        out = self._run_git(["log", "-1", f"--format=%H{_FS}%s{_FS}%cI", sha])
        full_sha, subject, date = out.split(_FS, 2)
        return Checkpoint(sha=full_sha, message=subject, created_at=_parse_date(date))

    def has_changes(self) -> bool:
        """True if the working tree differs from the latest checkpoint."""
        return not self.diff_uncommitted().is_empty

    def snapshot(self, message: str) -> Checkpoint:
        """
        Stage every working-tree change and record a checkpoint.

        If nothing changed since the latest checkpoint, no commit is made
        and the latest checkpoint is returned.
        """
        self._run_git(["add", "-A"])

        current = self.head()
        staged_changes = not self._git_succeeds(["diff", "--cached", "--quiet"])

        if current is not None and not staged_changes:
            logger.info("No changes to snapshot; reusing %s", current.short_sha)
            return current

        args = ["commit", "-q", "-m", message]
        if current is None and not staged_changes:
            args.append("--allow-empty")
        self._run_git(args, identity=True)

        checkpoint = self.resolve("HEAD")
        logger.info("Snapshot %s: %s", checkpoint.short_sha, message)
        return checkpoint

    # ------------------------------------------------------------------
    # Labels
    # ------------------------------------------------------------------

    def label_exists(self, name: str) -> bool:
        return self._git_succeeds(["show-ref", "--verify", "--quiet", f"refs/tags/{name}"])

    def label(self, checkpoint: Checkpoint, name: str, kind: LabelKind, message: str) -> Label:
        """
        Attach a new label to a checkpoint.

        Raises:
            LabelExistsError: If a label with this name already exists.
            GitError: If the name is not a valid label name.
        """
        if not self._git_succeeds(["check-ref-format", f"refs/tags/{name}"]):
            raise GitError(f"Invalid label name: {name!r}")
        if self.label_exists(name):
            raise LabelExistsError(name)

        created = datetime.now(timezone.utc).isoformat()
        body = f"{message or name}\n\n{KIND_TRAILER}: {kind.value}\n{TIME_TRAILER}: {created}\n"
        self._run_git(
            ["tag", "-a", name, checkpoint.sha, "-F", "-"], input_data=body, identity=True
        )
        logger.info("Labelled %s as %s (%s)", checkpoint.short_sha, name, kind.value)
        return self.get_label(name)

    def get_label(self, name: str) -> Label:
        """
        Look up one label by name.

        Raises:
            UnknownReferenceError: If no such label exists.
        """
        if not self.label_exists(name):
            raise UnknownReferenceError(name)
        labels = self._read_labels([f"refs/tags/{name}"])
        if not labels:
            raise UnknownReferenceError(name)
        return labels[0]

    def list_labels(
        self,
        kind: LabelKind | None = None,
        limit: int | None = None,
    ) -> list[Label]:
        """
        Enumerate labels, newest first.

        Args:
            kind: Only return labels of this kind
            limit: Return at most this many labels (None for all)
        """
        if not self.is_initialized():
            return []
        labels = self._read_labels(["refs/tags"])
        if kind is not None:
            labels = [label for label in labels if label.kind is kind]
        if limit is not None:
            labels = labels[:limit]
        return labels

    def _read_labels(self, patterns: list[str]) -> list[Label]:
        fmt = _FS.join(
            [
                "%(refname:short)",
                "%(creatordate:iso-strict)",
                "%(objectname)",
                "%(*objectname)",
                "%(contents:subject)",
                "%(contents:body)",
            ]
        )
        out = self._run_git(
            ["for-each-ref", "--sort=-creatordate", f"--format={fmt}{_RS}", *patterns],
            strip=False,
        )

        labels: list[Label] = []
        for record in out.split(_RS):
            record = record.strip("\n")
            if not record:
                continue
            name, date, object_sha, peeled_sha, subject, body = record.split(_FS, 5)
            trailers = self._trailers(body)
            try:
                kind = LabelKind(trailers.get(KIND_TRAILER, ""))
            except ValueError:
                kind = LabelKind.infer(name)
            created = trailers.get(TIME_TRAILER) or date
            labels.append(
                Label(
                    name=name,
                    kind=kind,
                    checkpoint_sha=peeled_sha or object_sha,
                    message=subject,
                    created_at=_parse_date(created) if created else None,
                )
            )
        # Stable, so git's refname order breaks any remaining ties
        labels.sort(key=lambda label: label.created_at or _EPOCH, reverse=True)
        return labels

    @staticmethod
    def _trailers(body: str) -> dict[str, str]:
        trailers: dict[str, str] = {}
        for line in body.splitlines():
            key, sep, value = line.partition(":")
            if sep and key.strip() in (KIND_TRAILER, TIME_TRAILER):
                trailers[key.strip()] = value.strip()
        return trailers

    # ------------------------------------------------------------------
    # Trees and files
    # ------------------------------------------------------------------

    def tracked_files(self, ref: str = "HEAD") -> list[str]:
        """List every file path in the tree of a checkpoint, sorted."""
        if ref == "HEAD" and self.head() is None:
            return []
        sha = self.resolve(ref).sha
        out = self._run_git(["ls-tree", "-r", "-z", "--name-only", sha], strip=False)
        return sorted(path for path in out.split("\0") if path)

    def working_files(self) -> list[str]:
        """List every file currently in the working tree, sorted."""
        if not self.repo_dir.exists():
            return []
        files: list[str] = []
        for dirpath, dirnames, filenames in os.walk(self.repo_dir):
            if ".git" in dirnames:
                dirnames.remove(".git")
            rel_dir = Path(dirpath).relative_to(self.repo_dir)
            for filename in filenames:
                files.append((rel_dir / filename).as_posix())
        return sorted(files)

    def materialize(self, ref: str) -> list[str]:
        """
        Restore the files of a checkpoint into the working tree.

        Only paths present in the checkpoint are written. Files that exist
        in the working tree but not in the checkpoint are left in place.

        Returns:
            The checkpoint's file list.

        Raises:
            UnknownReferenceError: If the reference does not resolve.
        """
        checkpoint = self.resolve(ref)
        files = self.tracked_files(checkpoint.sha)
        if files:
            self._run_git(["checkout", checkpoint.sha, "--", "."])
        logger.info("Materialized %d files from %s", len(files), ref)
        return files

    def _path_for(self, key: str) -> Path:
        rel = PurePosixPath(key)
        if rel.is_absolute() or ".." in rel.parts or rel.parts[:1] == (".git",):
            raise ValueError(f"Path escapes the working tree: {key}")
        return self.repo_dir.joinpath(*rel.parts)

    def read_file(self, key: str) -> bytes | None:
        """Read a working-tree file, or None if it does not exist."""
        path = self._path_for(key)
        if not path.is_file():
            return None
        return path.read_bytes()

    def write_file(self, key: str, content: str | bytes) -> None:
        """Write a working-tree file, creating parent directories."""
        path = self._path_for(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode("utf-8"))

    def remove_file(self, key: str) -> bool:
        """Remove a working-tree file and any directories it leaves empty."""
        path = self._path_for(key)
        if not path.is_file():
            return False
        path.unlink()
        parent = path.parent
        while parent != self.repo_dir and not any(parent.iterdir()):
            parent.rmdir()
            parent = parent.parent
        return True

    def clear_working_tree(self) -> None:
        """Remove every working-tree file, keeping the repository."""
        for entry in self.repo_dir.iterdir():
            if entry.name == ".git":
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()

    # ------------------------------------------------------------------
    # Diffs
    # ------------------------------------------------------------------

    def diff(self, ref_a: str, ref_b: str, *, patch: bool = False) -> DiffReport:
        """
        Classify every file changed between two references.

        Raises:
            UnknownReferenceError: If either reference does not resolve.
        """
        sha_a = self.resolve(ref_a).sha
        sha_b = self.resolve(ref_b).sha
        return self._diff_report(ref_a, ref_b, [sha_a, sha_b], patch=patch)

    def diff_uncommitted(self, *, patch: bool = False) -> DiffReport:
        """
        Classify every working-tree change since the latest checkpoint.

        Untracked files count as added. The repository's own index is not
        touched; a throwaway index is built for the comparison.
        """
        current = self.head()
        base_sha = current.sha if current else self._empty_tree_sha()
        base_name = "HEAD" if current else "(empty)"

        with tempfile.TemporaryDirectory(prefix="themesafe-index-") as tmp:
            env = {"GIT_INDEX_FILE": str(Path(tmp) / "index")}
            if current is not None:
                self._run_git(["read-tree", current.sha], env=env)
            self._run_git(["add", "-A"], env=env)
            return self._diff_report(
                base_name, WORKING_TREE, ["--cached", base_sha], patch=patch, env=env
            )

    def _diff_report(
        self,
        base: str,
        head: str,
        diff_args: list[str],
        *,
        patch: bool,
        env: dict[str, str] | None = None,
    ) -> DiffReport:
        common = ["diff", "--no-renames", "--no-color"]
        name_status = self._run_git(
            [*common, "--name-status", "-z", *diff_args], strip=False, env=env
        )
        numstat = self._run_git([*common, "--numstat", "-z", *diff_args], strip=False, env=env)

        stats: dict[str, tuple[int | None, int | None]] = {}
        for entry in numstat.split("\0"):
            if not entry:
                continue
            insertions, deletions, path = entry.split("\t", 2)
            stats[path] = (
                None if insertions == "-" else int(insertions),
                None if deletions == "-" else int(deletions),
            )

        tokens = [token for token in name_status.split("\0") if token]
        changes: list[FileChange] = []
        for status, path in zip(tokens[0::2], tokens[1::2]):
            insertions, deletions = stats.get(path, (None, None))
            changes.append(
                FileChange(
                    path=path,
                    kind=ChangeKind.from_git_status(status),
                    insertions=insertions,
                    deletions=deletions,
                )
            )

        patch_text = None
        if patch:
            patch_text = self._run_git([*common, *diff_args], strip=False, env=env)

        return DiffReport(base=base, head=head, changes=changes, patch=patch_text)
