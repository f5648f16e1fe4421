"""Configuration loading for the student directory."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

ENV_PREFIX = "STUDENTDIR_"
DEFAULT_TABLE = "manual_students"
DEFAULT_WELCOME_FUNCTION = "send-welcome-email"


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


class BackendKind(StrEnum):
    """Which storage backend the directory is bound to."""

    LOCAL = "local"
    REMOTE = "remote"


@dataclass
class DirectoryConfig:
    """Student directory configuration.

    The backend is chosen once, when the directory is built. Credentials are
    carried here and handed to the collaborators that need them.
    """

    backend: BackendKind = BackendKind.LOCAL
    db_path: str = ":memory:"
    backend_url: str | None = None
    api_key: str | None = None
    access_token: str | None = None
    table: str = DEFAULT_TABLE
    purchase_url: str | None = None
    purchase_token: str | None = None
    welcome_function: str = DEFAULT_WELCOME_FUNCTION

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DirectoryConfig:
        """Create config from a dictionary.

        Args:
            data: Mapping of field names to values. Unknown keys are ignored.

        Returns:
            Parsed and validated configuration object.

        Raises:
            ConfigError: If the backend is unknown or remote settings are missing.
        """
        raw_backend = str(data.get("backend") or BackendKind.LOCAL.value).lower()
        try:
            backend = BackendKind(raw_backend)
        except ValueError as e:
            valid = ", ".join(k.value for k in BackendKind)
            raise ConfigError(f"Unknown backend '{raw_backend}' (expected one of: {valid})") from e

        config = cls(
            backend=backend,
            db_path=data.get("db_path") or ":memory:",
            backend_url=_strip_url(data.get("backend_url")),
            api_key=data.get("api_key") or None,
            access_token=data.get("access_token") or None,
            table=data.get("table") or DEFAULT_TABLE,
            purchase_url=_strip_url(data.get("purchase_url")),
            purchase_token=data.get("purchase_token") or None,
            welcome_function=data.get("welcome_function") or DEFAULT_WELCOME_FUNCTION,
        )
        config.validate()
        return config

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> DirectoryConfig:
        """Create config from STUDENTDIR_* environment variables.

        Args:
            environ: Environment mapping to read. Defaults to os.environ.

        Returns:
            Parsed and validated configuration object.
        """
        env = os.environ if environ is None else environ
        fields = [
            "backend",
            "db_path",
            "backend_url",
            "api_key",
            "access_token",
            "table",
            "purchase_url",
            "purchase_token",
            "welcome_function",
        ]
        data = {name: env.get(f"{ENV_PREFIX}{name.upper()}") for name in fields}
        return cls.from_dict(data)

    def validate(self) -> None:
        """Check that the selected backend has what it needs.

        Raises:
            ConfigError: If required settings are missing.
        """
        if self.backend is BackendKind.REMOTE:
            missing = []
            if not self.backend_url:
                missing.append(f"{ENV_PREFIX}BACKEND_URL")
            if not self.api_key:
                missing.append(f"{ENV_PREFIX}API_KEY")
            if missing:
                raise ConfigError(f"Remote backend requires: {', '.join(missing)}")
        if self.purchase_url and not self.purchase_token:
            raise ConfigError(
                f"{ENV_PREFIX}PURCHASE_URL is set but {ENV_PREFIX}PURCHASE_TOKEN is not"
            )

    @property
    def notifications_enabled(self) -> bool:
        """Welcome emails go through the hosted function when it is reachable."""
        return bool(self.backend_url and self.api_key)


def _strip_url(value: Any) -> str | None:
    if not value:
        return None
    return str(value).rstrip("/")
