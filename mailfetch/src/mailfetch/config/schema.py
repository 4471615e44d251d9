"""Pydantic models describing the mailfetch configuration document."""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ValidationError(ValueError):
    """Raised when configuration data does not satisfy the schema."""


class ImapSettings(BaseModel):
    """Server connection settings for the polled mailbox."""

    model_config = ConfigDict(extra="forbid")

    host: str = Field(min_length=1)
    port: int = Field(default=993, gt=0, lt=65536)
    ssl: bool = True
    username: str
    password: Optional[str] = None
    password_env: Optional[str] = None
    folder: str = "INBOX"
    timeout: Optional[float] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_password(self) -> "ImapSettings":
        if (self.password is None) == (self.password_env is None):
            raise ValidationError("exactly one of password or password_env must be set")
        return self


class FetchSettings(BaseModel):
    """Defaults applied by :class:`~mailfetch.imap.fetcher.MailFetcher`."""

    model_config = ConfigDict(extra="forbid")

    filter: str = "ALL"
    continue_on_error: bool = False

    @field_validator("filter")
    @classmethod
    def _validate_filter(cls, value: str) -> str:
        from ..imap.search import coerce_filter

        return coerce_filter(value).value


class RuntimeConfig(BaseModel):
    """Root configuration loaded from ``config.yaml``."""

    model_config = ConfigDict(extra="forbid")

    version: int = 1
    imap: ImapSettings
    fetch: FetchSettings = Field(default_factory=FetchSettings)
