"""Configuration settings for the end-to-end scenarios."""

import json
from pathlib import Path
from typing import Any, Dict, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration settings loaded from environment variables or JSON file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )

    # Servers
    riot_url: str = Field(
        default="http://localhost:5000",
        description="Base URL the web client is served from",
    )
    homeserver_url: str = Field(
        default="http://localhost:5005",
        description="Homeserver the web client talks to",
    )
    username: str = Field(
        default="alice",
        description="Username of the default simulated user",
    )

    # Browser settings
    headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    browser: Literal["chromium", "firefox", "webkit"] = Field(
        default="chromium",
        description="Browser to launch for each session",
    )
    executable_path: Optional[str] = Field(
        default=None,
        description="Browser executable to use instead of the bundled one",
    )
    no_sandbox: bool = Field(
        default=False,
        description="Pass --no-sandbox to the browser (needed in some containers)",
    )
    slow_mo: int = Field(
        default=0,
        description="Slow down every browser operation by this many ms",
    )

    # Session settings
    wait_timeout: int = Field(
        default=5000,
        description="Default bound for element and event waits (ms)",
    )
    max_log_entries: Optional[int] = Field(
        default=None,
        description="Cap for each session log buffer; unbounded when unset",
    )

    # Report settings
    reports_dir: str = Field(
        default="./reports",
        description="Directory for run reports and failed scenario logs",
    )

    @field_validator("wait_timeout")
    @classmethod
    def validate_wait_timeout(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("WAIT_TIMEOUT must be a positive number of milliseconds")
        return value

    @property
    def reports_path(self) -> Path:
        return Path(self.reports_dir)

    def launch_options(self) -> Dict[str, Any]:
        """Options handed unchanged to the browser launch call."""
        options: Dict[str, Any] = {"headless": self.headless}
        if self.executable_path:
            options["executable_path"] = self.executable_path
        if self.no_sandbox:
            options["args"] = ["--no-sandbox"]
        if self.slow_mo:
            options["slow_mo"] = self.slow_mo
        return options

    @classmethod
    def from_json(cls, json_path: Path) -> "Settings":
        """Load settings from a JSON config file.

        JSON keys use snake_case matching the field names.
        """
        with open(json_path) as f:
            config_data = json.load(f)
        return cls(**config_data)


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the current settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def set_settings(settings: Optional[Settings]) -> None:
    """Set the global settings instance; None resets to environment defaults."""
    global _settings
    _settings = settings


def load_settings_from_json(json_path: Path) -> Settings:
    global _settings
    _settings = Settings.from_json(json_path)
    return _settings
