"""Build a StudentDirectory from configuration."""

from __future__ import annotations

import logging

from studentdir.config import BackendKind, DirectoryConfig
from studentdir.directory.backends.local import LocalBackend
from studentdir.directory.backends.remote import RestBackend
from studentdir.directory.service import StudentDirectory
from studentdir.integrations.notifications import WelcomeEmailFunction
from studentdir.integrations.purchases import PurchaseVerificationClient

logger = logging.getLogger("studentdir.directory")


def create_directory(config: DirectoryConfig | None = None) -> StudentDirectory:
    """Create a StudentDirectory bound to the configured backend.

    Args:
        config: Directory configuration. Read from the environment when omitted.

    Returns:
        A ready StudentDirectory. The caller owns it and should close() it.
    """
    if config is None:
        config = DirectoryConfig.from_env()
    config.validate()

    backend: LocalBackend | RestBackend
    if config.backend is BackendKind.REMOTE:
        assert config.backend_url is not None and config.api_key is not None
        backend = RestBackend(
            base_url=config.backend_url,
            api_key=config.api_key,
            access_token=config.access_token,
            table=config.table,
        )
    else:
        backend = LocalBackend(config.db_path)

    verifier = None
    if config.purchase_url and config.purchase_token:
        verifier = PurchaseVerificationClient(config.purchase_url, config.purchase_token)

    notifier = None
    if config.notifications_enabled:
        assert config.backend_url is not None and config.api_key is not None
        notifier = WelcomeEmailFunction(
            base_url=config.backend_url,
            api_key=config.api_key,
            access_token=config.access_token,
            function_name=config.welcome_function,
        )

    logger.info(
        "Student directory using %s backend (purchase verification %s, welcome emails %s)",
        config.backend.value,
        "on" if verifier else "off",
        "on" if notifier else "off",
    )
    return StudentDirectory(backend, verifier=verifier, notifier=notifier)
