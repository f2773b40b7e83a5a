# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Configuration management for the sleep hub.

Uses Pydantic Settings. Values are resolved in this order (first wins):
constructor arguments, SLEEPHUB_* environment variables, a .env file, and
finally an optional sleephub.yaml in the working directory.
"""

from typing import Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)


class ServerSettings(BaseSettings):
    """HTTP/WebSocket server settings."""

    model_config = SettingsConfigDict(env_prefix="SLEEPHUB_SERVER_")

    host: str = Field(
        default="0.0.0.0",
        description="Host to bind to"
    )
    port: int = Field(
        default=8080,
        description="Port to listen on"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )


class LoggingSettings(BaseSettings):
    """Log file settings. Console logging is always enabled."""

    model_config = SettingsConfigDict(env_prefix="SLEEPHUB_LOGGING_")

    file: str = Field(
        default="",
        description="Rotating log file path (empty = console only)"
    )
    max_size_mb: int = Field(
        default=10,
        description="Rotate the log file after this many megabytes"
    )
    backup_count: int = Field(
        default=5,
        description="Number of rotated log files to keep"
    )


class SchedulerSettings(BaseSettings):
    """Sleep cycle alarm scheduling."""

    model_config = SettingsConfigDict(env_prefix="SLEEPHUB_SCHEDULER_")

    cycle_minutes: int = Field(
        default=90,
        description="Length of one sleep cycle"
    )
    min_alarm_delay_ms: int = Field(
        default=1000,
        description="Never tell a device to ring sooner than this"
    )
    rearm_on_redetect: bool = Field(
        default=True,
        description="Recompute and resend the alarm when sleep is detected again"
    )

    @property
    def cycle_ms(self) -> int:
        """Cycle length in milliseconds."""
        return self.cycle_minutes * 60 * 1000


class AlarmDefaults(BaseSettings):
    """Defaults applied to alarm and dimming requests."""

    model_config = SettingsConfigDict(env_prefix="SLEEPHUB_ALARM_")

    default_pattern: int = Field(
        default=1,
        description="Dimming pattern used when none is given"
    )
    default_max_bright: int = Field(
        default=100,
        description="Peak brightness percentage used when none is given"
    )
    default_interval_ms: int = Field(
        default=4000,
        description="Dimming step period used when none (or a too small one) is given"
    )
    min_interval_ms: int = Field(
        default=200,
        description="Smallest accepted dimming step period"
    )


class SessionSettings(BaseSettings):
    """Sleep sample retention."""

    model_config = SettingsConfigDict(env_prefix="SLEEPHUB_SESSION_")

    max_samples: int = Field(
        default=5760,
        description="Samples kept per session (8 hours at one sample every 5s)"
    )


class Settings(BaseSettings):
    """Root settings for the sleep hub.

    Example environment variables:
        SLEEPHUB_SERVER_PORT=8080
        SLEEPHUB_SCHEDULER_CYCLE_MINUTES=90
        SLEEPHUB_ALARM_DEFAULT_INTERVAL_MS=4000
    """

    model_config = SettingsConfigDict(
        env_prefix="SLEEPHUB_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        yaml_file="sleephub.yaml",
        extra="ignore",
    )

    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    scheduler: SchedulerSettings = Field(default_factory=SchedulerSettings)
    alarm: AlarmDefaults = Field(default_factory=AlarmDefaults)
    session: SessionSettings = Field(default_factory=SessionSettings)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        # A missing YAML file yields no values
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
