from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from namedrill.application.session import SessionTimings
from namedrill.domain.constants import (
    CHOICE_CORRECT_DELAY_MS,
    CHOICE_WRONG_DELAY_MS,
    DEFAULT_CHOICE_COUNT,
    DEFAULT_QUEUE_LIMIT,
    SPEED_CORRECT_DELAY_MS,
    SPEED_DURATION_S,
    SPEED_WRONG_DELAY_MS,
)


def config_files() -> list[Path]:
    # Resolved per call so a patched HOME is honoured.
    return [
        Path.home() / ".config/namedrill/config.toml",
        Path.home() / ".namedrill.toml",
    ]


class AppConfig(BaseSettings):
    """
    Configuration model for NameDrill.
    Supports loading from:
    1. Environment variables (NAMEDRILL_*)
    2. Config file (~/.config/namedrill/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(
        env_prefix="NAMEDRILL_",
        extra="ignore",
    )

    # Paths
    data_file: Path = Field(
        default_factory=lambda: Path.home() / ".local/share/namedrill/decks.json"
    )
    log_dir: Path = Field(default_factory=lambda: Path.home() / ".config/namedrill/logs")

    # Session building
    choice_count: int = Field(default=DEFAULT_CHOICE_COUNT, ge=2)
    queue_limit: int = Field(default=DEFAULT_QUEUE_LIMIT, ge=1)

    # Pacing
    speed_duration_s: int = Field(default=SPEED_DURATION_S, ge=1)
    choice_correct_delay_ms: int = Field(default=CHOICE_CORRECT_DELAY_MS, ge=0)
    choice_wrong_delay_ms: int = Field(default=CHOICE_WRONG_DELAY_MS, ge=0)
    speed_correct_delay_ms: int = Field(default=SPEED_CORRECT_DELAY_MS, ge=0)
    speed_wrong_delay_ms: int = Field(default=SPEED_WRONG_DELAY_MS, ge=0)

    # Server
    host: str = "127.0.0.1"
    port: int = 8778

    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        # Find the first existing file
        toml_file = None
        for f in config_files():
            if f.exists():
                toml_file = f
                break

        # Later sources have lower priority: init (CLI) > env > toml
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (
            init_settings,
            env_settings,
        )

    @field_validator("data_file", "log_dir", mode="before")
    @classmethod
    def expand_path(cls, v: Any) -> Path:
        return Path(v).expanduser()

    @property
    def timings(self) -> SessionTimings:
        return SessionTimings(
            choice_correct_ms=self.choice_correct_delay_ms,
            choice_wrong_ms=self.choice_wrong_delay_ms,
            speed_correct_ms=self.speed_correct_delay_ms,
            speed_wrong_ms=self.speed_wrong_delay_ms,
            speed_duration_s=self.speed_duration_s,
        )


def resolve_config(cli_overrides: dict[str, Any] | None = None) -> AppConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in AppConfig
    2. ~/.config/namedrill/config.toml (if exists)
    3. Environment variables (NAMEDRILL_*)
    4. cli_overrides (passed from Typer), None values dropped
    """
    overrides = {k: v for k, v in (cli_overrides or {}).items() if v is not None}
    return AppConfig(**overrides)
