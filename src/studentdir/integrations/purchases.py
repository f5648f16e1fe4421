"""Purchase verification against the commerce platform."""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from studentdir.integrations.exceptions import PurchaseVerificationError
from studentdir.logging import scrub

logger = logging.getLogger("studentdir.integrations.purchases")


class PurchaseVerifier(Protocol):
    """Answers whether an email belongs to a paying customer."""

    def verify(self, email: str) -> bool:
        """Return True when a purchase exists for this email."""
        ...


class PurchaseVerificationClient:
    """HTTP client for the purchase-verification API.

    Calls GET {base_url}/purchases/verify?email=... and reads
    {"verified": bool} from the response.
    """

    def __init__(self, base_url: str, token: str) -> None:
        """Initialize the client.

        Args:
            base_url: Root URL of the verification API
            token: Bearer token for the API
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._client: httpx.Client | None = None

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Accept": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def verify(self, email: str) -> bool:
        """Check whether the email has a purchase on record.

        Raises:
            PurchaseVerificationError: If the API cannot give an answer
        """
        email = email.strip().lower()
        try:
            response = self.client.get(
                f"{self.base_url}/purchases/verify", params={"email": email}
            )
        except httpx.HTTPError as e:
            raise PurchaseVerificationError(f"Purchase lookup failed: {e}") from e

        if response.status_code != 200:
            raise PurchaseVerificationError(
                f"Purchase lookup failed: {response.status_code} - {scrub(response.text)}"
            )

        try:
            verified = response.json()["verified"]
        except (ValueError, KeyError, TypeError) as e:
            raise PurchaseVerificationError(f"Malformed purchase lookup response: {e}") from e

        logger.debug("Purchase lookup for %s: %s", email, verified)
        return bool(verified)
