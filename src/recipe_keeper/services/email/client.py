"""Resend email client.

Sends transactional email through the Resend REST API. When no API key
is configured (or the build-time placeholder is in place) messages are
skipped and reported as not sent rather than failing the caller.
"""

from __future__ import annotations

import httpx
import orjson
from pydantic import BaseModel

from recipe_keeper.core.config import get_settings
from recipe_keeper.observability.error_tracking import capture_exception
from recipe_keeper.observability.logging import get_logger
from recipe_keeper.services.email.exceptions import (
    EmailDeliveryError,
    EmailError,
    EmailUnavailableError,
)
from recipe_keeper.services.email.templates import render_cookbook_invitation


logger = get_logger(__name__)


class EmailResult(BaseModel):
    """Outcome of a send attempt."""

    sent: bool
    message_id: str | None = None
    error: str | None = None


class EmailClient:
    """HTTP client for the Resend API.

    Example:
        ```python
        client = EmailClient()
        await client.initialize()
        result = await client.send_cookbook_invitation(...)
        await client.shutdown()
        ```
    """

    def __init__(self) -> None:
        self._settings = get_settings()
        self._http_client: httpx.AsyncClient | None = None

    @property
    def enabled(self) -> bool:
        return self._settings.email_enabled

    async def initialize(self) -> None:
        self._http_client = httpx.AsyncClient(
            base_url=self._settings.email.api_url,
            timeout=httpx.Timeout(self._settings.email.timeout),
            headers={
                "Authorization": f"Bearer {self._settings.RESEND_API_KEY}",
                "Content-Type": "application/json",
            },
        )
        if not self.enabled:
            logger.warning("RESEND_API_KEY not configured - emails will be skipped")
        logger.info("EmailClient initialized", enabled=self.enabled)

    async def shutdown(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.debug("EmailClient shutdown")

    async def _post_email(self, payload: dict[str, object]) -> str | None:
        """POST one message to ``/emails``.

        Returns:
            The provider's message id.

        Raises:
            EmailUnavailableError: If Resend cannot be reached.
            EmailDeliveryError: If Resend rejects the message.
        """
        if not self._http_client:
            msg = "Client not initialized. Call initialize() first."
            raise RuntimeError(msg)

        try:
            response = await self._http_client.post(
                "/emails", content=orjson.dumps(payload)
            )
        except httpx.TimeoutException as e:
            msg = "Timed out sending email"
            raise EmailUnavailableError(msg) from e
        except httpx.RequestError as e:
            msg = f"Failed to connect to email provider: {e}"
            raise EmailUnavailableError(msg) from e

        if response.is_success:
            data = orjson.loads(response.content) if response.content else {}
            return data.get("id")

        try:
            message = orjson.loads(response.content).get("message", response.text)
        except orjson.JSONDecodeError:
            message = response.text or f"HTTP {response.status_code}"
        raise EmailDeliveryError(response.status_code, message)

    async def send(
        self,
        *,
        to: str,
        subject: str,
        html: str,
        text: str | None = None,
    ) -> EmailResult:
        """Send one email; never raises for provider failures."""
        if not self.enabled:
            logger.info("Email sending skipped - no API key configured", subject=subject)
            return EmailResult(sent=False, error="Email service not configured")

        payload: dict[str, object] = {
            "from": self._settings.email.from_address,
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if text:
            payload["text"] = text

        try:
            message_id = await self._post_email(payload)
        except EmailError as e:
            logger.warning("Email delivery failed", subject=subject, error=str(e))
            capture_exception(e, action="send_email")
            return EmailResult(sent=False, error=str(e))

        logger.info("Email sent", message_id=message_id)
        return EmailResult(sent=True, message_id=message_id)

    async def send_cookbook_invitation(
        self,
        *,
        to: str,
        inviter_name: str,
        cookbook_name: str,
        role: str,
        accept_url: str,
        is_pending: bool,
        recipes_count: int = 0,
    ) -> EmailResult:
        html, text = render_cookbook_invitation(
            inviter_name=inviter_name,
            cookbook_name=cookbook_name,
            role=role,
            accept_url=accept_url,
            app_url=self._settings.app.public_url,
            is_pending=is_pending,
            recipes_count=recipes_count,
        )
        return await self.send(
            to=to,
            subject=f"{inviter_name} invited you to {cookbook_name}",
            html=html,
            text=text,
        )
