from __future__ import annotations

from pathlib import Path
from typing import Any, ClassVar, Dict, List

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .models import TimeFormat


class SearchConfig(BaseModel):
    threshold: float = 0.4             # suggestions / generic search cutoff
    extraction_threshold: float = 0.3  # command parsing accepts the best hit below this
    min_query_length: int = 2
    suggestion_limit: int = 5


class ComparisonConfig(BaseModel):
    default_timezones: List[str] = Field(
        default_factory=lambda: ["America/New_York", "America/Los_Angeles", "Europe/London"]
    )
    max_timezones: int = 12
    default_time_format: TimeFormat = TimeFormat.H12
    max_command_length: int = 200


class Settings(BaseSettings):
    """
    Loads configuration from:
    1) configuration.yaml (repo-level, non-secret)
    2) environment variables (deployment overrides)
    3) .env (local dev convenience)

    IMPORTANT:
    - environment variables override configuration.yaml
    - init kwargs override everything
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # YAML file read by the lowest-priority source; see load_settings()
    yaml_path: ClassVar[str] = "configuration.yaml"

    # --- Global runtime ---
    env: str = Field(default="dev", validation_alias="ENV")
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    config_path: str = Field(default="configuration.yaml", validation_alias="CONFIG_PATH")

    # --- YAML-driven project configuration ---
    search: SearchConfig = Field(default_factory=SearchConfig)
    comparison: ComparisonConfig = Field(default_factory=ComparisonConfig)

    @field_validator("env")
    @classmethod
    def _validate_env(cls, v: str) -> str:
        allowed = {"dev", "prod", "test"}
        if v not in allowed:
            raise ValueError(f"ENV must be one of {sorted(allowed)}, got: {v}")
        return v

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """
        Source priority, highest first: INIT > ENV > DOTENV > YAML.
        """
        def yaml_source() -> Dict[str, Any]:
            return _load_yaml_config(settings_cls.yaml_path)

        return (
            init_settings,      # test/manual overrides
            env_settings,       # deployment environment variables
            dotenv_settings,    # local .env file
            yaml_source,        # base config from YAML
        )

    def validate_runtime(self) -> None:
        """
        Fail fast on settings that parse fine but cannot work together.
        """
        if not 0.0 < self.search.threshold <= 1.0:
            raise ValueError(f"search.threshold must be in (0, 1], got {self.search.threshold}")

        if self.search.extraction_threshold > self.search.threshold:
            raise ValueError(
                "search.extraction_threshold must not exceed search.threshold "
                f"({self.search.extraction_threshold} > {self.search.threshold})"
            )

        if self.search.min_query_length < 1 or self.search.suggestion_limit < 1:
            raise ValueError("search.min_query_length and search.suggestion_limit must be positive")

        if self.comparison.max_timezones < 1:
            raise ValueError("comparison.max_timezones must be positive")

        if len(self.comparison.default_timezones) > self.comparison.max_timezones:
            raise ValueError(
                "comparison.default_timezones lists more zones than comparison.max_timezones allows"
            )


def _load_yaml_config(path: str) -> Dict[str, Any]:
    """
    Load configuration.yaml content.
    If the file does not exist, return an empty dict (env + defaults still work).
    """
    p = Path(path)
    if not p.exists():
        return {}

    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a YAML mapping/object at top-level")
    return data


def load_settings(config_path: str = "configuration.yaml") -> Settings:
    """
    Main entrypoint used by the app.
    Returns validated Settings with env > yaml override behavior.
    """
    settings_cls = type("Settings", (Settings,), {"__module__": __name__, "yaml_path": config_path})
    settings = settings_cls(CONFIG_PATH=config_path)
    settings.validate_runtime()
    return settings
