"""
Data models for the remote theme store.

Items and targets are immutable value objects. Raw wire shapes are parsed
into these models at the client boundary; nothing past the client inspects
a role string or a base64 payload directly.
"""

from __future__ import annotations

import base64
import binascii
from enum import Enum
from pathlib import PurePosixPath

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Extensions that are always transported as base64 attachments.
BINARY_EXTENSIONS = frozenset(
    {
        ".png",
        ".jpg",
        ".jpeg",
        ".gif",
        ".ico",
        ".svg",
        ".woff",
        ".woff2",
        ".ttf",
        ".eot",
        ".webp",
    }
)


class MediaKind(str, Enum):
    """Declared media kind of an item, derived from its key's extension."""

    TEMPLATE = "template"
    STYLESHEET = "stylesheet"
    SCRIPT = "script"
    DATA = "data"
    IMAGE = "image"
    FONT = "font"
    OTHER = "other"

    @classmethod
    def from_key(cls, key: str) -> MediaKind:
        suffix = PurePosixPath(key).suffix.lower()
        if suffix == ".liquid":
            return cls.TEMPLATE
        if suffix in (".css", ".scss"):
            return cls.STYLESHEET
        if suffix == ".js":
            return cls.SCRIPT
        if suffix == ".json":
            return cls.DATA
        if suffix in (".png", ".jpg", ".jpeg", ".gif", ".ico", ".svg", ".webp"):
            return cls.IMAGE
        if suffix in (".woff", ".woff2", ".ttf", ".eot"):
            return cls.FONT
        return cls.OTHER


def is_binary_key(key: str) -> bool:
    """Return True if items with this key travel as base64 attachments."""
    return PurePosixPath(key).suffix.lower() in BINARY_EXTENSIONS


def validate_key(key: str) -> str:
    """Check a slash-delimited item key and return it unchanged."""
    if not key or key.startswith("/") or key.endswith("/"):
        raise ValueError(f"Invalid item key: {key!r}")
    parts = key.split("/")
    if any(part in ("", ".", "..") for part in parts):
        raise ValueError(f"Invalid item key: {key!r}")
    return key


class TargetRole(str, Enum):
    """
    Closed role variant for a remote target.

    Only the store's ``main`` role is PROTECTED. Editable roles map to
    MUTABLE; anything else is OTHER, which is operated on like MUTABLE
    but flagged to the operator.
    """

    PROTECTED = "protected"
    MUTABLE = "mutable"
    OTHER = "other"

    @classmethod
    def from_wire(cls, raw: str | None) -> TargetRole:
        if raw == "main":
            return cls.PROTECTED
        if raw in ("unpublished", "development"):
            return cls.MUTABLE
        return cls.OTHER


class TargetInfo(BaseModel):
    """Authoritative metadata for a remote target, fetched fresh per decision."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Target identifier")
    name: str = Field(default="Unknown", description="Display name (never used for decisions)")
    role: TargetRole = Field(description="Role derived from the store's role attribute")
    raw_role: str = Field(default="", description="Role string as reported, for display only")
    previewable: bool = Field(default=True, description="Whether the store finished processing it")

    @property
    def is_protected(self) -> bool:
        return self.role is TargetRole.PROTECTED

    @classmethod
    def from_wire(cls, data: dict[str, object]) -> TargetInfo:
        raw_role = data.get("role")
        return cls(
            id=data["id"],  # type: ignore[arg-type]
            name=str(data.get("name") or "Unknown"),
            role=TargetRole.from_wire(raw_role if isinstance(raw_role, str) else None),
            raw_role=raw_role if isinstance(raw_role, str) else "",
            previewable=bool(data.get("previewable", True)),
        )


class RemoteItemRef(BaseModel):
    """One entry of an item listing: key plus the content kind the store reports."""

    model_config = ConfigDict(frozen=True)

    key: str
    content_type: str = ""

    @property
    def media_kind(self) -> MediaKind:
        return MediaKind.from_key(self.key)


class Item(BaseModel):
    """
    One named content unit.

    Text items hold ``str`` content; binary items hold ``bytes``. A new
    Item replaces the old one on update; instances are never mutated.

    Example:
        >>> item = Item(key="assets/base.css", content="body { margin: 0 }")
        >>> item.media_kind
        <MediaKind.STYLESHEET: 'stylesheet'>
        >>> item.to_wire()
        {'key': 'assets/base.css', 'value': 'body { margin: 0 }'}
    """

    model_config = ConfigDict(frozen=True)

    key: str
    content: str | bytes

    @field_validator("key")
    @classmethod
    def _check_key(cls, value: str) -> str:
        return validate_key(value)

    @property
    def media_kind(self) -> MediaKind:
        return MediaKind.from_key(self.key)

    @property
    def is_binary(self) -> bool:
        return isinstance(self.content, bytes)

    def as_bytes(self) -> bytes:
        if isinstance(self.content, bytes):
            return self.content
        return self.content.encode("utf-8")

    @classmethod
    def from_bytes(cls, key: str, data: bytes) -> Item:
        """
        Build an item from raw file bytes.

        Keys with a binary extension stay bytes. Other keys are decoded as
        UTF-8, falling back to bytes when the payload is not valid text.
        """
        if is_binary_key(key):
            return cls(key=key, content=data)
        try:
            return cls(key=key, content=data.decode("utf-8"))
        except UnicodeDecodeError:
            return cls(key=key, content=data)

    def to_wire(self) -> dict[str, str]:
        """Encode into the store's asset write shape."""
        if isinstance(self.content, bytes):
            encoded = base64.b64encode(self.content).decode("ascii")
            return {"key": self.key, "attachment": encoded}
        return {"key": self.key, "value": self.content}

    @classmethod
    def from_wire(cls, data: dict[str, object]) -> Item:
        """
        Decode the store's asset read shape.

        Raises:
            ValueError: If the payload has neither a text value nor a
                decodable attachment.
        """
        key = data.get("key")
        if not isinstance(key, str):
            raise ValueError("asset payload has no key")

        value = data.get("value")
        if isinstance(value, str):
            return cls(key=key, content=value)

        attachment = data.get("attachment")
        if isinstance(attachment, str):
            try:
                return cls(key=key, content=base64.b64decode(attachment, validate=True))
            except (binascii.Error, ValueError) as e:
                raise ValueError(f"asset {key} has an undecodable attachment: {e}") from e

        raise ValueError(f"asset {key} has neither 'value' nor 'attachment'")
