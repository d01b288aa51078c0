"""
Email Provider (SendGrid)

Transactional HTML mail through the SendGrid v3 API. When no API key is
configured, LoggingEmailProvider writes the message to the log instead.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from floresya.core.config import settings

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class EmailProvider(Protocol):
    """Protocol for email providers."""

    async def send(self, to_email: str, subject: str, html_content: str) -> SendResult:
        ...

    async def close(self) -> None:
        ...


class SendGridProvider:
    """SendGrid provider using a lazily created httpx client."""

    BASE_URL = "https://api.sendgrid.com/v3"

    def __init__(
        self,
        api_key: str,
        from_email: str,
        from_name: str,
        timeout: float = 30.0,
    ):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.timeout = timeout
        self._http_client: Optional[httpx.AsyncClient] = None

    async def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None or self._http_client.is_closed:
            self._http_client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._http_client

    async def close(self) -> None:
        if self._http_client and not self._http_client.is_closed:
            await self._http_client.aclose()

    async def send(self, to_email: str, subject: str, html_content: str) -> SendResult:
        http = await self._get_http_client()

        payload = {
            "personalizations": [{
                "to": [{"email": to_email}],
            }],
            "from": {"email": self.from_email, "name": self.from_name},
            "subject": subject,
            "content": [
                {"type": "text/html", "value": html_content},
            ],
        }

        try:
            resp = await http.post(f"{self.BASE_URL}/mail/send", json=payload)
        except httpx.HTTPError as e:
            return SendResult(success=False, error=f"{type(e).__name__}: {e}")

        if resp.status_code in (200, 202):
            return SendResult(success=True, message_id=resp.headers.get("X-Message-Id"))
        return SendResult(success=False, error=f"{resp.status_code}: {resp.text}")


class LoggingEmailProvider:
    """Development provider - logs instead of sending."""

    async def send(self, to_email: str, subject: str, html_content: str) -> SendResult:
        logger.info(
            f"[LOG EMAIL] To: {to_email}\n"
            f"  Subject: {subject}\n"
            f"  Body: {len(html_content)} chars"
        )
        return SendResult(success=True)

    async def close(self) -> None:
        return None


# Singleton provider instance
_email_provider: Optional[EmailProvider] = None


def get_email_provider() -> EmailProvider:
    """Get or create the process-wide provider."""
    global _email_provider
    if _email_provider is None:
        if settings.SENDGRID_API_KEY:
            _email_provider = SendGridProvider(
                api_key=settings.SENDGRID_API_KEY,
                from_email=settings.SENDGRID_FROM_EMAIL,
                from_name=settings.SENDGRID_FROM_NAME,
            )
        else:
            logger.warning("SENDGRID_API_KEY not set - order emails will only be logged")
            _email_provider = LoggingEmailProvider()
    return _email_provider


async def close_email_provider() -> None:
    global _email_provider
    if _email_provider is not None:
        await _email_provider.close()
        _email_provider = None
