"""Configuration for a QA Copilot CI run."""

import os
from collections.abc import Mapping
from typing import Any
from urllib.parse import urlsplit

import pydantic
from pydantic import BaseModel, Field, SecretStr, field_validator

from qa_copilot_ci.errors import ValidationError

DEFAULT_API_URL = "https://api.testcollab.io"

ENV_PREFIX = "QAC_"
ENV_FIELDS = ("build_id", "app_url", "project_id", "api_key", "api_url", "test_mode")
TRUTHY = frozenset(["1", "true", "yes", "on"])


class CIConfig(BaseModel):
    """Validated bundle of inputs for a single CI run.

    Only ``build_id``, ``app_url``, ``project_id`` and ``api_key`` are
    required. The remaining fields tune how the plan is created and polled.
    """

    build_id: str = Field(..., min_length=1)
    app_url: str
    project_id: str
    api_key: SecretStr
    api_url: str = DEFAULT_API_URL
    test_mode: bool = False

    ci_tag: str = "ci"
    app_url_field: str = "qac_app_url"
    bot_prefix: str = "qa-copilot-bot"

    poll_interval: float = Field(default=5.0, ge=0)
    retry_interval: float = Field(default=5.0, ge=0)
    max_retries: int = Field(default=5, ge=1)
    page_size: int = Field(default=100, ge=1)
    # None waits until the plan reaches a terminal status
    max_wait: float | None = Field(default=None, gt=0)

    @field_validator("app_url", "api_url")
    @classmethod
    def check_url(cls, value: str) -> str:
        """Require an absolute http(s) URL."""
        parsed = urlsplit(value)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError("must be an absolute http(s) URL")
        return value

    @field_validator("project_id")
    @classmethod
    def check_project_id(cls, value: str) -> str:
        """Require a numeric project id."""
        if not value.strip().isdigit():
            raise ValueError("must be numeric")
        return value.strip()

    @field_validator("api_key")
    @classmethod
    def check_api_key(cls, value: SecretStr) -> SecretStr:
        """Reject an empty API key."""
        if not value.get_secret_value():
            raise ValueError("must not be empty")
        return value

    @property
    def api_base_url(self) -> str:
        """API URL with a trailing slash so relative paths resolve beneath it."""
        return self.api_url if self.api_url.endswith("/") else f"{self.api_url}/"


def env_overrides(environ: Mapping[str, str] | None = None) -> dict[str, Any]:
    """Read ``QAC_*`` environment variables into config field values."""
    environ = os.environ if environ is None else environ
    values: dict[str, Any] = {}
    for name in ENV_FIELDS:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is None or raw == "":
            continue
        values[name] = raw.strip().lower() in TRUTHY if name == "test_mode" else raw
    return values


def load_config(
    cli_values: Mapping[str, Any],
    environ: Mapping[str, str] | None = None,
) -> CIConfig:
    """Merge CLI values over environment variables over defaults.

    CLI values that are ``None`` are treated as not given.

    Raises:
        ValidationError: If a required field is missing or malformed

    """
    merged = env_overrides(environ)
    merged.update({k: v for k, v in cli_values.items() if v is not None})

    try:
        return CIConfig(**merged)
    except pydantic.ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise ValidationError(f"Invalid configuration: {problems}") from exc
