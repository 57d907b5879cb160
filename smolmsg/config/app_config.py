"""Configuration models for smolmsg."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class StorageConfig(BaseModel):
    """Message directory layout."""

    msgdir: str = "~/.smolmsg"
    inbox_dirname: str = "inbox"
    outbox_dirname: str = "outbox"
    database_filename: str = "smsg.db"
    audit_log_filename: str = "logs/audit.log"

    def get_msgdir(self) -> Path:
        """Get expanded, absolute message directory."""
        return Path(self.msgdir).expanduser().absolute()

    def get_inbox_path(self) -> Path:
        return self.get_msgdir() / self.inbox_dirname

    def get_outbox_path(self) -> Path:
        return self.get_msgdir() / self.outbox_dirname

    def get_database_path(self) -> Path:
        """Get path of the message index database."""
        return self.get_msgdir() / self.database_filename

    def get_audit_log_path(self) -> Path:
        return self.get_msgdir() / self.audit_log_filename


class ScanConfig(BaseModel):
    """Inbox scanning settings."""

    message_suffix: str = ".msg"
    skip_dotfiles: bool = True
    max_workers: int = 8

    @field_validator("max_workers")
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("max_workers must be positive")
        return v

    @field_validator("message_suffix")
    def validate_message_suffix(cls, v: str) -> str:
        if not v.startswith("."):
            raise ValueError("message_suffix must start with '.'")
        return v


class ListConfig(BaseModel):
    """Message list display settings."""

    limit: int = 20
    from_width: int = 20
    subject_width: int = 35
    color: bool = True

    @field_validator("limit", "from_width", "subject_width")
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Value must be positive")
        return v


class AppConfig(BaseModel):
    """Main application configuration."""

    schema_version: str = "1.0"
    debug: bool = False
    storage: StorageConfig = Field(default_factory=StorageConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    listing: ListConfig = Field(default_factory=ListConfig)

    @field_validator("schema_version")
    def validate_schema_version(cls, v: str) -> str:
        if not v:
            raise ValueError("schema_version is required")
        return v
