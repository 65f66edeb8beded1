"""Configuration management using Pydantic settings."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from gpspoint.coords import CoordMode
from gpspoint.paths import FileRefFormat


class Settings(BaseSettings):
    """Codec settings loaded from GPSPOINT_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="GPSPOINT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Internal coordinate mode for newly created layers
    coord_mode: CoordMode = CoordMode.LATLON

    # Image references: keep absolute, or rewrite relative to the output file
    file_ref_format: FileRefFormat = FileRefFormat.ABSOLUTE

    # Log sink level used by the command line
    log_level: str = "WARNING"


settings = Settings()
