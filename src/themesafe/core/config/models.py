"""
Configuration data model for themesafe.

Defines the structure of ``.themesafe/config.json``. The record is created
once by the setup flow and is never mutated by the core; every component
receives it explicitly through its constructor.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator


class ProjectConfig(BaseModel):
    """
    Durable record of the store endpoint, the two targets and the credential.

    The protected target is the audience-facing one; the mutable target is
    the one push and rollback write to. Target names are informational
    only: every write decision re-fetches the role from the store.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    store: str = Field(
        min_length=1,
        description="Store handle, e.g. 'my-store' for my-store.myshopify.com",
    )
    access_token: SecretStr = Field(
        description="Admin API access token",
    )
    api_version: str = Field(
        default="2024-01",
        pattern=r"^\d{4}-\d{2}$|^unstable$",
        description="Admin API version",
    )
    protected_target_id: int = Field(
        gt=0,
        description="ID of the audience-facing (live) target",
    )
    protected_target_name: str = Field(
        default="",
        description="Display name of the protected target at setup time",
    )
    mutable_target_id: int = Field(
        gt=0,
        description="ID of the editable (dev) target",
    )
    mutable_target_name: str = Field(
        default="",
        description="Display name of the mutable target at setup time",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When setup created this record",
    )
    request_interval: float = Field(
        default=0.55,
        ge=0.0,
        description="Minimum seconds between store calls (2 calls/sec bucket leak rate)",
    )
    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Per-call timeout in seconds",
    )

    @field_validator("store")
    @classmethod
    def _strip_domain(cls, value: str) -> str:
        value = value.strip()
        if value.startswith("https://"):
            value = value[len("https://") :]
        return value.rstrip("/").removesuffix(".myshopify.com")

    @model_validator(mode="after")
    def _distinct_targets(self) -> "ProjectConfig":
        if self.protected_target_id == self.mutable_target_id:
            raise ValueError("protected and mutable targets must be different")
        return self

    @property
    def store_url(self) -> str:
        return f"https://{self.store}.myshopify.com"

    @property
    def api_base_url(self) -> str:
        return f"{self.store_url}/admin/api/{self.api_version}/"

    def preview_url(self, target_id: int | None = None) -> str:
        """URL for previewing a target (the mutable target by default)."""
        return f"{self.store_url}/?preview_theme_id={target_id or self.mutable_target_id}"

    def to_json_dict(self) -> dict[str, object]:
        """Serialize for persistence, revealing the credential."""
        data = self.model_dump(mode="json")
        data["access_token"] = self.access_token.get_secret_value()
        return data
