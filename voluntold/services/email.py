"""
Outbound email through the Resend HTTP API.

A single EmailSender is created at startup and handed to the services; it
never raises on delivery problems, it reports them as False.
"""
from typing import Optional
import logging

import httpx

from voluntold.core.config import Settings

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class EmailSender:
    """Interface: send(to, subject, html) -> bool."""

    def send(self, to_email: str, subject: str, html_content: str, *, reply_to: Optional[str] = None) -> bool:
        raise NotImplementedError

    def close(self) -> None:
        pass


class ResendEmailSender(EmailSender):
    def __init__(self, api_key: Optional[str], from_address: str, timeout: float = 15.0,
                 client: Optional[httpx.Client] = None):
        self.api_key = (api_key or "").strip()
        self.from_address = from_address
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "ResendEmailSender":
        return cls(
            api_key=settings.RESEND_API_KEY,
            from_address=settings.EMAIL_FROM,
            timeout=settings.EMAIL_TIMEOUT_SECONDS,
        )

    def send(self, to_email: str, subject: str, html_content: str, *, reply_to: Optional[str] = None) -> bool:
        """
        Send a single transactional email.
        Returns True if the provider accepted it, False otherwise (including
        when RESEND_API_KEY is not configured).
        """
        if not self.api_key:
            logger.warning("email.not_configured", extra={"subject": subject})
            return False

        payload = {
            "from": self.from_address,
            "to": [to_email.strip().lower()],
            "subject": subject,
            "html": html_content,
        }
        if reply_to:
            payload["reply_to"] = reply_to

        headers = {
            "accept": "application/json",
            "content-type": "application/json",
            "authorization": f"Bearer {self.api_key}",
        }
        try:
            resp = self._client.post(RESEND_API_URL, headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error("email.send_error", extra={"subject": subject, "error": str(e)})
            return False
        if resp.status_code not in (200, 201, 202):
            logger.error(
                "email.rejected",
                extra={"subject": subject, "status_code": resp.status_code, "body": resp.text[:500]},
            )
            return False
        return True

    def close(self) -> None:
        self._client.close()
