"""External collaborators - purchase verification and welcome emails."""

from studentdir.integrations.exceptions import (
    IntegrationError,
    NotificationError,
    PurchaseVerificationError,
)
from studentdir.integrations.notifications import WelcomeEmailFunction, WelcomeNotifier
from studentdir.integrations.purchases import PurchaseVerificationClient, PurchaseVerifier

__all__ = [
    "IntegrationError",
    "NotificationError",
    "PurchaseVerificationClient",
    "PurchaseVerificationError",
    "PurchaseVerifier",
    "WelcomeEmailFunction",
    "WelcomeNotifier",
]
