"""Unit tests for the Resend email client and invitation templates."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
import respx

from recipe_keeper.core.config import Settings
from recipe_keeper.services.email import EmailClient
from recipe_keeper.services.email.templates import render_cookbook_invitation


pytestmark = pytest.mark.unit

EMAILS_URL = "https://api.resend.com/emails"


def _settings(api_key: str) -> Settings:
    return Settings(APP_ENV="test", RESEND_API_KEY=api_key)


@pytest.fixture
async def email_client() -> EmailClient:
    with patch(
        "recipe_keeper.services.email.client.get_settings",
        return_value=_settings("re_live_key"),
    ):
        client = EmailClient()
    await client.initialize()
    yield client
    await client.shutdown()


class TestEmailClientDisabled:
    """Tests for the client without a usable API key."""

    @pytest.mark.parametrize("api_key", ["", "re_dummy_key_for_build"])
    async def test_send_skipped(self, api_key: str) -> None:
        """Should report not sent instead of calling Resend."""
        with patch(
            "recipe_keeper.services.email.client.get_settings",
            return_value=_settings(api_key),
        ):
            client = EmailClient()
        await client.initialize()

        result = await client.send(to="a@example.com", subject="Hi", html="<p>Hi</p>")

        assert result.sent is False
        assert result.error == "Email service not configured"
        await client.shutdown()


class TestEmailClientSend:
    """Tests for send."""

    @respx.mock
    async def test_send_success(self, email_client: EmailClient) -> None:
        route = respx.post(EMAILS_URL).mock(
            return_value=httpx.Response(200, json={"id": "msg_123"})
        )

        result = await email_client.send(
            to="a@example.com", subject="Hi", html="<p>Hi</p>", text="Hi"
        )

        assert result.sent is True
        assert result.message_id == "msg_123"
        request = route.calls.last.request
        body = json.loads(request.content)
        assert request.headers["authorization"] == "Bearer re_live_key"
        assert body["to"] == ["a@example.com"]
        assert body["text"] == "Hi"
        assert body["from"].endswith("<noreply@recipekeeper.app>")

    @respx.mock
    async def test_provider_rejection_reported(self, email_client: EmailClient) -> None:
        """Should return the provider's message instead of raising."""
        respx.post(EMAILS_URL).mock(
            return_value=httpx.Response(422, json={"message": "Invalid `to` field"})
        )

        result = await email_client.send(to="bad", subject="Hi", html="<p>Hi</p>")

        assert result.sent is False
        assert "Invalid `to` field" in result.error

    @respx.mock
    async def test_connection_error_reported(self, email_client: EmailClient) -> None:
        respx.post(EMAILS_URL).mock(side_effect=httpx.ConnectError("refused"))

        result = await email_client.send(to="a@example.com", subject="Hi", html="x")

        assert result.sent is False
        assert "Failed to connect" in result.error

    @respx.mock
    async def test_cookbook_invitation_subject(self, email_client: EmailClient) -> None:
        route = respx.post(EMAILS_URL).mock(
            return_value=httpx.Response(200, json={"id": "msg_1"})
        )

        result = await email_client.send_cookbook_invitation(
            to="nephew@example.com",
            inviter_name="Grandma Rose",
            cookbook_name="Sunday Dinners",
            role="editor",
            accept_url="http://localhost:3004/invite?token=abc",
            is_pending=True,
        )

        assert result.sent is True
        body = json.loads(route.calls.last.request.content)
        assert body["subject"] == "Grandma Rose invited you to Sunday Dinners"
        assert "invite?token=abc" in body["html"]


class TestInvitationTemplate:
    """Tests for render_cookbook_invitation."""

    def test_pending_invitation(self) -> None:
        html, text = render_cookbook_invitation(
            inviter_name="Grandma Rose",
            cookbook_name="Sunday Dinners",
            role="viewer",
            accept_url="https://example.com/accept",
            app_url="https://example.com",
            is_pending=True,
            recipes_count=3,
        )

        assert "Accept Invitation" in html
        assert "Create your free account" in text
        assert "3 recipes" in text
        assert "Your role: Viewer" in text

    def test_existing_user_invitation(self) -> None:
        html, text = render_cookbook_invitation(
            inviter_name="Grandma Rose",
            cookbook_name="Sunday Dinners",
            role="editor",
            accept_url="https://example.com/cookbooks/1",
            app_url="https://example.com",
            is_pending=False,
        )

        assert "View Cookbook" in html
        assert "Open the cookbook" in text
        assert "add and edit recipes" in text

    def test_html_escapes_names(self) -> None:
        html, _ = render_cookbook_invitation(
            inviter_name="<script>alert(1)</script>",
            cookbook_name="Pies & Tarts",
            role="viewer",
            accept_url="https://example.com",
            app_url="https://example.com",
            is_pending=False,
        )

        assert "<script>" not in html
        assert "Pies &amp; Tarts" in html
