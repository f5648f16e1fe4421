"""Welcome-email dispatch through a hosted function."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

import httpx

from studentdir.integrations.exceptions import NotificationError
from studentdir.logging import scrub

if TYPE_CHECKING:
    from studentdir.directory.models import StudentRecord

logger = logging.getLogger("studentdir.integrations.notifications")


class WelcomeNotifier(Protocol):
    """Sends the welcome message to a newly added student."""

    def send_welcome(self, student: StudentRecord) -> None:
        """Dispatch the welcome message. Raises NotificationError on failure."""
        ...


class WelcomeEmailFunction:
    """Invokes the hosted send-welcome-email function."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        access_token: str | None = None,
        function_name: str = "send-welcome-email",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.access_token = access_token
        self.function_name = function_name
        self._client: httpx.Client | None = None

    @property
    def url(self) -> str:
        return f"{self.base_url}/functions/v1/{self.function_name}"

    @property
    def client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.Client(
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.access_token or self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            self._client.close()
            self._client = None

    def send_welcome(self, student: StudentRecord) -> None:
        payload = {
            "to": student.email,
            "name": student.name,
            "type": "manual_addition",
            "studentId": student.id,
        }
        try:
            response = self.client.post(self.url, json=payload)
        except httpx.HTTPError as e:
            raise NotificationError(f"Welcome email to {student.email} failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Welcome email to {student.email} failed: "
                f"{response.status_code} - {scrub(response.text)}"
            )

        logger.info("Welcome email sent to %s", student.email)
