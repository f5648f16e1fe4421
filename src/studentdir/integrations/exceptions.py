"""Custom exceptions for external collaborators."""


class IntegrationError(Exception):
    """Base exception for external collaborator errors."""


class PurchaseVerificationError(IntegrationError):
    """The purchase-verification service could not answer."""


class NotificationError(IntegrationError):
    """A notification could not be dispatched."""
