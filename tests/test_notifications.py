"""Tests for the Resend email notifier and its templates."""

import base64
import json

import httpx
import pytest

from marketing_plan.errors import NotificationError
from marketing_plan.notifications.email import RESEND_API_URL, EmailNotifier
from marketing_plan.notifications.templates import EmailTemplates
from marketing_plan.plans.schemas import Plan
from marketing_plan.rendering.pdf import RenderedDocument


def make_plan(**context):
    return Plan(id="plan-abc123", business_context=context)


def make_notifier(handler):
    client = httpx.AsyncClient(base_url=RESEND_API_URL, transport=httpx.MockTransport(handler))
    return EmailNotifier(
        api_key="re_test",
        sender="Plans <plans@example.com>",
        app_base_url="https://app.example.com/",
        client=client,
    )


async def test_disabled_without_api_key():
    notifier = EmailNotifier(api_key=None)
    assert notifier.enabled is False
    assert await notifier.send_completion(make_plan(), "a@example.com") is False


async def test_completion_with_attachment():
    requests = []

    def handler(request):
        requests.append(json.loads(request.content))
        return httpx.Response(200, json={"id": "email-1"})

    notifier = make_notifier(handler)
    document = RenderedDocument(b"%PDF", "application/pdf", "marketing-plan-acme-2025-01-01.pdf")

    sent = await notifier.send_completion(make_plan(businessName="Acme"), "a@example.com", document)

    assert sent is True
    payload = requests[0]
    assert payload["to"] == ["a@example.com"]
    assert payload["from"] == "Plans <plans@example.com>"
    assert payload["subject"] == "Your Marketing Plan is Ready!"
    assert "https://app.example.com/plan/plan-abc123" in payload["text"]
    assert "Acme" in payload["html"]
    attachment = payload["attachments"][0]
    assert attachment["filename"] == "marketing-plan-acme-2025-01-01.pdf"
    assert base64.b64decode(attachment["content"]) == b"%PDF"
    await notifier.close()


async def test_provider_error_returns_false():
    notifier = make_notifier(lambda request: httpx.Response(422, json={"message": "invalid"}))
    assert await notifier.send_share(make_plan(), "b@example.com", "jane") is False
    await notifier.close()


async def test_transport_error_returns_false():
    def handler(request):
        raise httpx.ConnectError("connection refused")

    notifier = make_notifier(handler)
    assert await notifier.send_completion(make_plan(), "a@example.com") is False
    await notifier.close()


async def test_missing_email_id_returns_false():
    notifier = make_notifier(lambda request: httpx.Response(200, json={}))
    assert await notifier.send_completion(make_plan(), "a@example.com") is False
    await notifier.close()


def test_share_template_escapes_message_in_html():
    email = EmailTemplates().share(
        make_plan(),
        "https://app.example.com/plan/plan-abc123",
        "jane",
        "<script>alert(1)</script>",
    )
    assert email.subject == "jane shared a marketing plan with you"
    assert "<script>" not in email.html
    assert "&lt;script&gt;" in email.html
    assert "<script>alert(1)</script>" in email.text


@pytest.mark.parametrize("has_attachment", [True, False])
def test_completion_template_mentions_attachment(has_attachment):
    email = EmailTemplates().completion(make_plan(), "https://x/plan/1", has_attachment=has_attachment)
    assert ("attached to this email" in email.text) is has_attachment
    assert "One-page visual marketing plan" in email.html


def test_html_emails_extend_shared_layout():
    templates = EmailTemplates()
    email = templates.completion(make_plan(businessName="Acme"), "https://x/plan/1")

    assert email.html.startswith("<!DOCTYPE html>")
    assert "<title>Your Marketing Plan is Ready!</title>" in email.html
    assert 'href="https://x/plan/1"' in email.html
    assert "The marketing plan for Acme is ready." in email.html
    assert "<!DOCTYPE html>" not in email.text


def test_unknown_parent_template_is_notification_error():
    templates = EmailTemplates()
    with pytest.raises(NotificationError, match="template rendering failed"):
        templates._render("s", '{% extends "missing" %}', "text")
