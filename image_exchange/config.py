from pathlib import Path
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the image exchange service."""

    SERVICE_NAME: str = "Image Exchange Service"
    SERVICE_VERSION: str = "1.0.0"
    APP_HOST: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HOST", "APP_HOST"),
    )
    APP_PORT: int = Field(
        default=3000,
        validation_alias=AliasChoices("PORT", "APP_PORT"),
    )
    DEBUG: bool = Field(
        default=False,
        validation_alias=AliasChoices("DEBUG", "APP_DEBUG"),
    )

    STORAGE_ROOT: Path = Field(
        default=Path("uploads"),
        validation_alias=AliasChoices("STORAGE_ROOT", "UPLOAD_DIR"),
    )
    ALLOWED_EXTENSIONS: List[str] = Field(
        default=[".jpg", ".jpeg", ".png", ".gif", ".bmp"]
    )
    MAX_UPLOAD_SIZE_BYTES: int = Field(default=10 * 1024 * 1024, gt=0)

    AUTH_ENABLED: bool = False
    AUTH_USERNAME: Optional[str] = None
    AUTH_PASSWORD: Optional[str] = None
    AUTH_SECRET_KEY: Optional[str] = None
    AUTH_TOKEN_TTL_HOURS: int = Field(default=72, gt=0)

    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("ALLOWED_EXTENSIONS")
    @classmethod
    def normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = []
        for ext in value:
            ext = ext.strip().lower()
            if not ext:
                continue
            if not ext.startswith("."):
                ext = "." + ext
            normalized.append(ext)
        return normalized

    @model_validator(mode="after")
    def check_auth_credentials(self) -> "Settings":
        if self.AUTH_ENABLED and not (self.AUTH_USERNAME and self.AUTH_PASSWORD):
            raise ValueError("AUTH_USERNAME and AUTH_PASSWORD are required when AUTH_ENABLED is set")
        return self

    @property
    def cors_origins_list(self) -> List[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def storage_root_path(self) -> Path:
        return Path(self.STORAGE_ROOT).expanduser().resolve()
