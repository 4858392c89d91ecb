"""Email bodies rendered with Jinja2.

HTML templates are autoescaped (share messages are user-supplied);
plain-text templates are not.
"""

from dataclasses import dataclass
from typing import Optional

from jinja2 import BaseLoader, DictLoader, Environment, TemplateError

from marketing_plan.errors import NotificationError
from marketing_plan.plans.schemas import Plan

INCLUDED_ITEMS = [
    "One-page visual marketing plan",
    "Comprehensive implementation guide",
    "Strategic insights and analysis",
    "Phased action plans (30/60/90 days)",
    "KPIs and success metrics",
]

_LAYOUT_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{{ subject }}</title>
</head>
<body style="font-family: 'Inter', Arial, sans-serif; line-height: 1.6; color: #333; background-color: #f8fafc; margin: 0; padding: 0;">
    <div style="max-width: 600px; margin: 0 auto; background: white;">
        <div style="background: linear-gradient(135deg, #2563eb, #9333ea); color: white; padding: 40px 30px; text-align: center;">
            <h1 style="margin: 0; font-size: 28px; font-weight: bold;">MarketingPlan.ai</h1>
        </div>
        <div style="padding: 40px 30px;">
            {% block body %}{% endblock %}
            <div style="background: #f0f9ff; border-left: 4px solid #2563eb; padding: 20px; margin: 30px 0; border-radius: 6px;">
                <h3 style="color: #1e40af; margin: 0 0 15px; font-size: 18px;">What's Included:</h3>
                <ul style="margin: 0; padding-left: 20px; color: #4b5563;">
                {% for item in included %}
                    <li style="margin-bottom: 8px;">{{ item }}</li>
                {% endfor %}
                </ul>
            </div>
            <div style="text-align: center; margin: 30px 0;">
                <a href="{{ plan_url }}" style="display: inline-block; background: #2563eb; color: white; text-decoration: none; padding: 15px 30px; border-radius: 8px; font-weight: bold; font-size: 16px;">View Plan Online</a>
            </div>
        </div>
        <div style="background: #f9fafb; padding: 30px; text-align: center; border-top: 1px solid #e5e7eb;">
            <p style="margin: 0; color: #9ca3af; font-size: 12px;">MarketingPlan.ai</p>
        </div>
    </div>
</body>
</html>
"""

COMPLETION_HTML = """{% extends "layout" %}
{% block body %}
<h2 style="color: #1f2937; font-size: 24px; margin: 0 0 20px;">Your Marketing Plan is Ready!</h2>
<p style="font-size: 16px; color: #4b5563;">
{% if business_name %}Great news! The marketing plan for {{ business_name }} is ready.{% else %}Great news! Your comprehensive marketing plan is ready.{% endif %}
{% if has_attachment %} It is attached to this email as a PDF.{% endif %}
</p>
{% endblock %}
"""

COMPLETION_TEXT = """Your Marketing Plan is Ready!

{% if business_name %}Great news! The marketing plan for {{ business_name }} is ready.{% else %}Great news! Your comprehensive marketing plan is ready.{% endif %}
{% if has_attachment %}It is attached to this email as a PDF.
{% endif %}

WHAT'S INCLUDED:
{% for item in included %}
- {{ item }}
{% endfor %}

View your plan online: {{ plan_url }}
"""

SHARE_HTML = """{% extends "layout" %}
{% block body %}
<h2 style="color: #1f2937; font-size: 24px; margin: 0 0 20px;">{{ sender_name }} shared a marketing plan with you</h2>
<p style="font-size: 16px; color: #4b5563;">
{% if business_name %}{{ sender_name }} thought you'd like to see the marketing plan for {{ business_name }}.{% else %}{{ sender_name }} thought you'd like to see this marketing plan.{% endif %}
</p>
{% if message %}
<blockquote style="border-left: 4px solid #9333ea; margin: 20px 0; padding: 10px 20px; color: #4b5563; font-style: italic;">{{ message }}</blockquote>
{% endif %}
{% endblock %}
"""

SHARE_TEXT = """{{ sender_name }} shared a marketing plan with you

{% if business_name %}{{ sender_name }} thought you'd like to see the marketing plan for {{ business_name }}.{% else %}{{ sender_name }} thought you'd like to see this marketing plan.{% endif %}
{% if message %}

"{{ message }}"
{% endif %}

WHAT'S INCLUDED:
{% for item in included %}
- {{ item }}
{% endfor %}

View the plan online: {{ plan_url }}
"""


@dataclass
class RenderedEmail:
    subject: str
    html: str
    text: str


class EmailTemplates:
    """Renders the subject, HTML and text parts of outgoing emails."""

    def __init__(self):
        self.html_env = Environment(
            loader=DictLoader({"layout": _LAYOUT_HTML}),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.text_env = Environment(
            loader=BaseLoader(),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def _render(self, subject: str, html_source: str, text_source: str, **context) -> RenderedEmail:
        context = {"subject": subject, "included": INCLUDED_ITEMS, **context}
        try:
            html = self.html_env.from_string(html_source).render(**context)
            text = self.text_env.from_string(text_source).render(**context)
        except TemplateError as e:
            raise NotificationError("Email template rendering failed", details=str(e)) from e
        return RenderedEmail(subject=subject, html=html, text=text.strip() + "\n")

    def completion(self, plan: Plan, plan_url: str, has_attachment: bool = False) -> RenderedEmail:
        return self._render(
            "Your Marketing Plan is Ready!",
            COMPLETION_HTML,
            COMPLETION_TEXT,
            business_name=business_name_of(plan),
            plan_url=plan_url,
            has_attachment=has_attachment,
        )

    def share(
        self,
        plan: Plan,
        plan_url: str,
        sender_name: str,
        message: Optional[str] = None,
    ) -> RenderedEmail:
        return self._render(
            f"{sender_name} shared a marketing plan with you",
            SHARE_HTML,
            SHARE_TEXT,
            business_name=business_name_of(plan),
            plan_url=plan_url,
            sender_name=sender_name,
            message=message,
        )


def business_name_of(plan: Plan) -> Optional[str]:
    name = (plan.business_context or {}).get("businessName")
    return str(name).strip() if name else None
