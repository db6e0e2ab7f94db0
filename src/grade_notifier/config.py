"""
Configuration management for Grade Notifier.

Loads and validates all required environment variables with clear error messages.
Uses Pydantic Settings for type safety and validation.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


# Which diagnostic group each required variable belongs to
REQUIRED_GROUPS: Dict[str, str] = {
    "school_id": "credentials",
    "school_pw": "credentials",
    "twilio_sid": "notifier",
    "twilio_auth": "notifier",
    "twilio_from": "notifier",
    "twilio_to": "notifier",
}

GROUP_HINTS: Dict[str, str] = {
    "credentials": "SCHOOL_ID / SCHOOL_PW is missing. Check your .env",
    "notifier": "Twilio credentials or phone numbers are missing "
                "(TWILIO_SID, TWILIO_AUTH, TWILIO_FROM, TWILIO_TO). Check your .env",
}


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All required variables must be set, or the application will fail fast
    with a clear error message indicating which group is missing.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Portal account
    school_id: str = Field(
        ...,
        description="Portal login id (student number)"
    )
    school_pw: str = Field(
        ...,
        description="Portal login password"
    )

    # Twilio SMS gateway
    twilio_sid: str = Field(
        ...,
        description="Twilio account SID"
    )
    twilio_auth: str = Field(
        ...,
        description="Twilio auth token"
    )
    twilio_from: str = Field(
        ...,
        description="Sender phone number registered with Twilio"
    )
    twilio_to: str = Field(
        ...,
        description="Recipient phone number"
    )

    # Portal pages. Change these if the school moves things around.
    portal_login_url: str = Field(
        default="https://hisnet.handong.edu/login/login.php",
        description="Page holding the login form"
    )
    portal_login_fail_url: str = Field(
        default="https://hisnet.handong.edu/login/_login.php",
        description="Page the portal lands on after rejected credentials"
    )
    portal_grades_url: str = Field(
        default="https://hisnet.handong.edu/haksa/record/HREC130M.php",
        description="Page holding the grade report table"
    )

    # Locators tied to the current page structure
    id_field_selector: str = Field(
        default=(
            "#loginBoxBg > table:nth-child(2) > tbody > tr > td:nth-child(5) > form > table"
            " > tbody > tr:nth-child(3) > td > table > tbody > tr > td:nth-child(1) > table"
            " > tbody > tr:nth-child(1) > td:nth-child(2) > span > input[type=text]"
        ),
    )
    password_field_selector: str = Field(
        default=(
            "#loginBoxBg > table:nth-child(2) > tbody > tr > td:nth-child(5) > form > table"
            " > tbody > tr:nth-child(3) > td > table > tbody > tr > td:nth-child(1) > table"
            " > tbody > tr:nth-child(3) > td:nth-child(2) > input[type=password]"
        ),
    )
    login_button_selector: str = Field(
        default=(
            "#loginBoxBg > table:nth-child(2) > tbody > tr > td:nth-child(5) > form > table"
            " > tbody > tr:nth-child(3) > td > table > tbody > tr > td:nth-child(2)"
            " > input[type=image]"
        ),
    )
    grade_table_selector: str = Field(
        default="#att_list",
        description="Container of the grade report rows"
    )
    grade_row_selector: str = Field(
        default="tr",
        description="Rows inside the grade table container"
    )
    grade_cell_selector: str = Field(
        default="td",
        description="Cells inside a grade row"
    )

    # Which columns mean what in a grade row
    identity_column: int = Field(
        default=2,
        ge=0,
        description="Column holding the subject name"
    )
    status_column: int = Field(
        default=7,
        ge=0,
        description="Column holding the grade"
    )

    # Optional Configuration
    snapshot_path: Path = Field(
        default=Path("grades.json"),
        description="Where the last notified table is stored"
    )
    navigation_timeout_ms: int = Field(
        default=8000,
        gt=0,
        description="How long to wait for the page after submitting the login form"
    )
    page_timeout_ms: int = Field(
        default=8000,
        gt=0,
        description="How long to wait for the grade table to render"
    )
    typing_delay_ms: int = Field(
        default=25,
        ge=0,
        description="Delay between keystrokes when filling the login form"
    )
    headless: bool = Field(
        default=True,
        description="Run Chrome without a window"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    sms_prefix: str = Field(
        default="[Grade update]",
        description="Text placed before the list of changed subjects"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return upper

    @model_validator(mode="after")
    def validate_columns(self) -> "Settings":
        """Identity and status must be different columns."""
        if self.identity_column == self.status_column:
            raise ValueError("identity_column and status_column must differ")
        return self


def _describe(error: ValidationError) -> str:
    """Turn a pydantic validation error into a per-group diagnostic."""
    missing_groups: List[str] = []
    other: List[str] = []

    for item in error.errors():
        field = str(item["loc"][0]) if item.get("loc") else ""
        if item.get("type") == "missing" and field in REQUIRED_GROUPS:
            group = REQUIRED_GROUPS[field]
            if group not in missing_groups:
                missing_groups.append(group)
        else:
            location = field or "settings"
            other.append(f"{location}: {item.get('msg')}")

    lines = [GROUP_HINTS[group] for group in missing_groups]
    lines.extend(other)
    return "\n".join(lines)


def load_settings(env_file: Optional[str] = ".env", **overrides) -> Settings:
    """
    Build and validate settings.

    Args:
        env_file: Optional dotenv file to read in addition to the environment
        **overrides: Explicit values that win over the environment

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    try:
        return Settings(_env_file=env_file, **overrides)
    except ValidationError as e:
        raise ConfigurationError(_describe(e)) from e


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Validated application settings

    Raises:
        ConfigurationError: If required environment variables are missing or invalid
    """
    return load_settings()


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        settings: Optional settings instance, will be loaded if not provided

    Returns:
        logging.Logger: Configured logger instance
    """
    if settings is None:
        settings = get_settings()
    level = settings.log_level

    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Reduce noise from third-party libraries
    logging.getLogger("selenium").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("WDM").setLevel(logging.WARNING)

    return logging.getLogger("grade_notifier")
