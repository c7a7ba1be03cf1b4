"""Bot configuration using Pydantic Settings"""

import logging
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import discord
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).parent
PROJECT_DIR = PACKAGE_DIR.parent

if str(PROJECT_DIR) == "/app":
    DEFAULT_DATA_DIR = Path("/app/data")
else:
    DEFAULT_DATA_DIR = PROJECT_DIR / "data"


class Settings(BaseSettings):
    """Bot settings with environment variable support"""

    model_config = SettingsConfigDict(
        env_file=PROJECT_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Discord
    discord_bot_token: str = Field(default="", description="Discord bot token")
    discord_guild_id: int | None = Field(default=None, description="Guild for fast command sync")
    admin_role_id: int | None = Field(default=None, description="Role allowed to run admin commands")
    welcome_channel_id: int | None = Field(default=None, description="Channel for welcome embeds")

    # Presence
    discord_status: str = Field(default="", description="online / idle / dnd / invisible")
    discord_activity_type: str = Field(default="", description="playing / listening / watching")
    discord_activity_name: str = Field(default="", description="Activity text")

    # Scheduling
    default_timezone: str = Field(
        default="Europe/Stockholm",
        description="Zone used by every schedule definition that does not name one",
    )
    marker_emoji: str = Field(default="❤️", description="Reaction that requests an auto-response")
    schedule_poll_interval: float = Field(default=5.0, description="Schedule file poll interval")

    # Storage
    data_dir: Path = Field(default=DEFAULT_DATA_DIR)
    schedules_file: Path | None = Field(default=None, description="Defaults to data_dir/schedules.json")
    channels_file: Path | None = Field(default=None, description="Defaults to data_dir/config.json")
    assets_dir: Path | None = Field(default=None, description="Defaults to data_dir/assets")
    public_base_url: str = Field(default="http://localhost:4000", description="Base URL of /assets")

    # HTTP server
    http_host: str = Field(default="0.0.0.0")
    port: int = Field(default=4000)
    api_token: str = Field(default="", description="Bearer token required for schedule writes")
    cors_allow_origins: str = Field(default="*", description="Comma-separated CORS origins, or *")
    rate_limit_requests: int = Field(default=100, description="Requests per client per window")
    rate_limit_window: float = Field(default=900.0, description="Rate limit window in seconds")

    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            logger.warning(f"Invalid log level '{v}', defaulting to INFO")
            return "INFO"
        return v_upper

    @field_validator("default_timezone")
    @classmethod
    def validate_default_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v

    @property
    def schedules_path(self) -> Path:
        return self.schedules_file or self.data_dir / "schedules.json"

    @property
    def channels_path(self) -> Path:
        return self.channels_file or self.data_dir / "config.json"

    @property
    def assets_path(self) -> Path:
        return self.assets_dir or self.data_dir / "assets"

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS allowed origins"""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    def get_status(self) -> discord.Status:
        status_map = {
            "online": discord.Status.online,
            "idle": discord.Status.idle,
            "dnd": discord.Status.dnd,
            "invisible": discord.Status.invisible,
        }
        return status_map.get(self.discord_status.lower(), discord.Status.online)

    def get_activity(self) -> discord.Activity | None:
        """Get bot activity from settings

        Supports: playing, listening, watching, competing
        """
        if not self.discord_activity_name:
            return None

        activity_map = {
            "playing": discord.ActivityType.playing,
            "listening": discord.ActivityType.listening,
            "watching": discord.ActivityType.watching,
            "competing": discord.ActivityType.competing,
        }

        activity_type = activity_map.get(
            self.discord_activity_type.lower(), discord.ActivityType.playing
        )
        return discord.Activity(type=activity_type, name=self.discord_activity_name)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
