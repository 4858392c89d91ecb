"""Email delivery through the Resend REST API.

Sends plan completion and plan share emails, optionally with the rendered
PDF attached. Delivery is best-effort from the orchestrator's point of
view: send methods return False on provider or transport failures instead
of raising.

Requires environment variables:
    RESEND_API_KEY: API key for https://resend.com
    EMAIL_FROM: Sender address (optional)

Gracefully degrades when the key is not set (local dev): sends are skipped
and report False.
"""

import base64
import logging
from typing import Optional, Protocol, runtime_checkable

import httpx

from marketing_plan.plans.schemas import Plan
from marketing_plan.notifications.templates import EmailTemplates, RenderedEmail
from marketing_plan.rendering.pdf import RenderedDocument

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com"


@runtime_checkable
class Notifier(Protocol):
    """What the orchestrator needs from a notification gateway."""

    async def send_completion(
        self,
        plan: Plan,
        recipient: str,
        attachment: Optional[RenderedDocument] = None,
    ) -> bool: ...


class EmailNotifier:
    """Sends plan emails via Resend."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: str = "MarketingPlan.ai <noreply@marketingplan.ai>",
        app_base_url: str = "http://localhost:3000",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.sender = sender
        self.app_base_url = app_base_url.rstrip("/")
        self.enabled = bool(api_key)
        self.templates = EmailTemplates()

        if client is not None:
            self._client = client
        elif self.enabled:
            self._client = httpx.AsyncClient(
                base_url=RESEND_API_URL,
                headers={
                    "Authorization": f"Bearer {api_key}",
                    "Content-Type": "application/json",
                },
                timeout=30.0,
            )
        else:
            self._client = None

        if self.enabled:
            logger.info(f"Email notifications enabled (from: {sender})")
        else:
            logger.warning("RESEND_API_KEY not set; emails will not be sent")

    def plan_url(self, plan: Plan) -> str:
        return f"{self.app_base_url}/plan/{plan.id}"

    async def send_completion(
        self,
        plan: Plan,
        recipient: str,
        attachment: Optional[RenderedDocument] = None,
    ) -> bool:
        """Tell recipient their plan is ready, optionally attaching the PDF."""
        email = self.templates.completion(
            plan,
            self.plan_url(plan),
            has_attachment=attachment is not None,
        )
        return await self._send(recipient, email, attachment, label=f"{plan.id} completion")

    async def send_share(
        self,
        plan: Plan,
        recipient: str,
        sender_name: str,
        message: Optional[str] = None,
    ) -> bool:
        """Share a plan link with someone else, with an optional personal note."""
        email = self.templates.share(plan, self.plan_url(plan), sender_name, message)
        return await self._send(recipient, email, None, label=f"{plan.id} share")

    async def _send(
        self,
        recipient: str,
        email: RenderedEmail,
        attachment: Optional[RenderedDocument],
        label: str,
    ) -> bool:
        if not self.enabled or self._client is None:
            logger.warning(f"[{label}] Email disabled; skipping send to {recipient}")
            return False

        payload = {
            "from": self.sender,
            "to": [recipient],
            "subject": email.subject,
            "html": email.html,
            "text": email.text,
        }
        if attachment is not None:
            payload["attachments"] = [
                {
                    "filename": attachment.filename,
                    "content": base64.b64encode(attachment.content).decode("ascii"),
                }
            ]

        try:
            resp = await self._client.post("/emails", json=payload)
            resp.raise_for_status()
            email_id = resp.json().get("id")
        except httpx.HTTPStatusError as e:
            error_body = e.response.text[:500] if e.response is not None else "no response body"
            logger.error(f"[{label}] Resend API error: {e.response.status_code} - {error_body}")
            return False
        except httpx.HTTPError as e:
            logger.error(f"[{label}] Resend HTTP error: {e}")
            return False
        except ValueError as e:
            logger.error(f"[{label}] Resend returned an unreadable response: {e}")
            return False

        if not email_id:
            logger.error(f"[{label}] Resend accepted the request but returned no email id")
            return False

        logger.info(f"[{label}] Email sent to {recipient} (id: {email_id})")
        return True

    async def close(self):
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
