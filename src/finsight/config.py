"""Runtime settings loaded from the environment."""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from finsight.domain.errors import ValidationError

DEFAULT_MODEL = "gpt-4o-mini"
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_CATEGORY_TTL_SECONDS = 300.0


def _float_setting(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValidationError(f"{name} must be a number, got '{raw}'")
    if value <= 0:
        raise ValidationError(f"{name} must be positive, got '{raw}'")
    return value


@dataclass(frozen=True)
class Settings:
    """Process-wide settings.

    ``openai_api_key`` being unset disables the remote classifier; every
    transaction is then categorized by keyword rules.
    """

    database_path: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    openai_timeout: float = DEFAULT_TIMEOUT_SECONDS
    category_ttl: float = DEFAULT_CATEGORY_TTL_SECONDS
    log_level: str = "INFO"

    @property
    def classifier_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Settings instance

        Raises:
            ValidationError: If a numeric setting is malformed
        """
        env = os.environ if env is None else env
        return cls(
            database_path=env.get("FINSIGHT_DB_PATH") or None,
            openai_api_key=env.get("OPENAI_API_KEY") or None,
            openai_model=env.get("FINSIGHT_OPENAI_MODEL") or DEFAULT_MODEL,
            openai_timeout=_float_setting(
                env, "FINSIGHT_OPENAI_TIMEOUT", DEFAULT_TIMEOUT_SECONDS
            ),
            category_ttl=_float_setting(
                env, "FINSIGHT_CATEGORY_TTL", DEFAULT_CATEGORY_TTL_SECONDS
            ),
            log_level=env.get("FINSIGHT_LOG_LEVEL") or "INFO",
        )
