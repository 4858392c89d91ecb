"""PDF export for completed marketing plans.

Generates A4 PDFs from a plan's generated content using WeasyPrint:
cover page, the one-page 9-square plan, the implementation guide, and
strategic insights. String fields are treated as markdown.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from html import escape
from typing import Any, Protocol, runtime_checkable

import markdown

from marketing_plan.errors import RenderError
from marketing_plan.plans.schemas import Plan

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# (onePagePlan key, row title, [(square, label, field)]) in reading order
ONE_PAGE_LAYOUT = [
    ("before", "Before: Prospects", [
        (1, "Target Market", "targetMarket"),
        (2, "Message", "message"),
        (3, "Media", "media"),
    ]),
    ("during", "During: Leads", [
        (4, "Lead Capture", "leadCapture"),
        (5, "Lead Nurture", "leadNurture"),
        (6, "Sales Conversion", "salesConversion"),
    ]),
    ("after", "After: Customers", [
        (7, "Deliver Experience", "deliverExperience"),
        (8, "Lifetime Value", "lifetimeValue"),
        (9, "Referrals", "referrals"),
    ]),
]

GUIDE_FIELDS = [
    ("executiveSummary", "Executive Summary"),
    ("actionPlans", "Action Plans"),
    ("timeline", "Timeline"),
    ("resources", "Resources"),
    ("kpis", "KPIs and Success Metrics"),
    ("templates", "Templates and Tools"),
]

INSIGHT_FIELDS = [
    ("strengths", "Strengths"),
    ("opportunities", "Opportunities"),
    ("positioning", "Positioning"),
    ("competitiveAdvantage", "Competitive Advantage"),
    ("growthPotential", "Growth Potential"),
    ("risks", "Risks"),
    ("investments", "Recommended Investments"),
    ("roi", "Expected ROI"),
]

PHASE_LABELS = {
    "phase1": "Phase 1 (Days 1-30)",
    "phase2": "Phase 2 (Days 31-90)",
    "phase3": "Phase 3 (Days 91-180)",
}


@dataclass
class RenderedDocument:
    """A rendered, downloadable document."""

    content: bytes
    content_type: str
    filename: str

    @property
    def disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


@runtime_checkable
class DocumentRenderer(Protocol):
    def render(self, plan: Plan) -> RenderedDocument: ...


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def plan_filename(plan: Plan) -> str:
    """marketing-plan-<business-slug>-<YYYY-MM-DD>.pdf, slug omitted when unnamed."""
    business_name = (plan.business_context or {}).get("businessName")
    slug = slugify(str(business_name)) if business_name else ""

    date_part = ""
    if plan.created_at:
        try:
            date_part = datetime.fromisoformat(
                plan.created_at.replace("Z", "+00:00")
            ).strftime("%Y-%m-%d")
        except ValueError:
            date_part = ""
    if not date_part:
        date_part = datetime.now(timezone.utc).strftime("%Y-%m-%d")

    parts = ["marketing-plan"]
    if slug:
        parts.append(slug)
    parts.append(date_part)
    return "-".join(parts) + ".pdf"


def _md(value: Any) -> str:
    """Render a content value (string, list, or nested dict) as HTML."""
    if value is None or value == "":
        return '<p class="empty">Not provided</p>'
    if isinstance(value, str):
        return markdown.markdown(value, extensions=["tables"])
    if isinstance(value, list):
        items = "".join(f"<li>{_md_inline(v)}</li>" for v in value)
        return f"<ul>{items}</ul>"
    if isinstance(value, dict):
        rows = ""
        for key, v in value.items():
            label = PHASE_LABELS.get(key, _humanize(key))
            rows += f"<h4>{escape(label)}</h4>{_md(v)}"
        return rows
    return f"<p>{escape(str(value))}</p>"


def _md_inline(value: Any) -> str:
    if isinstance(value, str):
        html = markdown.markdown(value)
        # Single paragraph inside a list item
        if html.startswith("<p>") and html.endswith("</p>") and html.count("<p>") == 1:
            html = html[3:-4]
        return html
    return _md(value)


def _humanize(key: str) -> str:
    words = re.sub(r"([a-z])([A-Z])", r"\1 \2", key).replace("_", " ")
    return words[:1].upper() + words[1:]


class PdfRenderer:
    """Renders completed plans to PDF bytes."""

    def render(self, plan: Plan) -> RenderedDocument:
        """Render plan to a PDF document.

        Raises:
            RenderError: If the plan has no generated content or rendering fails.
        """
        if not isinstance(plan.generated_content, dict):
            raise RenderError(f"Plan {plan.id} has no generated content to render")

        try:
            from weasyprint import HTML
        except ImportError as e:
            raise RenderError(
                "weasyprint is required for PDF export. "
                "Install with: pip install weasyprint>=60.0",
                details=str(e),
            ) from e

        html_str = self.build_html(plan)
        try:
            pdf_bytes = HTML(string=html_str).write_pdf()
        except Exception as e:
            raise RenderError(f"PDF rendering failed for plan {plan.id}", details=str(e)) from e

        document = RenderedDocument(
            content=pdf_bytes,
            content_type=PDF_CONTENT_TYPE,
            filename=plan_filename(plan),
        )
        logger.info(f"Generated PDF for plan {plan.id}: {len(pdf_bytes)} bytes ({document.filename})")
        return document

    def build_html(self, plan: Plan) -> str:
        """Build the complete HTML document for PDF rendering."""
        content = plan.generated_content or {}
        context = plan.business_context or {}
        business_name = context.get("businessName") or "Your Business"
        industry = context.get("industry") or ""
        now = datetime.now().strftime("%B %d, %Y")

        one_page = content.get("onePagePlan") or {}
        squares_html = ""
        for section_key, section_title, squares in ONE_PAGE_LAYOUT:
            section = one_page.get(section_key) or {}
            cells = ""
            for number, label, field in squares:
                cells += f'''
                <div class="square">
                    <div class="square-label"><span class="square-number">{number}</span>{label}</div>
                    <div class="square-body">{_md(section.get(field))}</div>
                </div>'''
            squares_html += f'''
            <div class="row">
                <h3 class="row-title">{section_title}</h3>
                <div class="squares">{cells}</div>
            </div>'''

        guide = content.get("implementationGuide") or {}
        guide_html = "".join(
            f'<h3>{label}</h3><div class="prose">{_md(guide.get(key))}</div>'
            for key, label in GUIDE_FIELDS
            if key in guide
        )

        insights = content.get("strategicInsights") or {}
        insights_html = "".join(
            f'<h3>{label}</h3><div class="prose">{_md(insights.get(key))}</div>'
            for key, label in INSIGHT_FIELDS
            if key in insights
        )

        title = f"Marketing Plan: {escape(str(business_name))}"
        industry_line = f"<p class=\"subtitle\">{escape(str(industry))}</p>" if industry else ""

        return f'''<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <title>{title}</title>
    <style>
        @page {{
            size: A4;
            margin: 2cm 2cm;
            @bottom-center {{
                content: counter(page);
                font-family: 'Inter', sans-serif;
                font-size: 8pt;
                color: #94a3b8;
            }}
        }}
        @page:first {{
            @bottom-center {{ content: none; }}
        }}
        body {{
            font-family: 'Inter', 'Helvetica', sans-serif;
            font-size: 10pt;
            line-height: 1.5;
            color: #1e293b;
        }}
        .cover {{
            page-break-after: always;
            text-align: center;
            padding-top: 30%;
        }}
        .cover h1 {{ font-size: 28pt; color: #1e40af; margin-bottom: 0.3em; }}
        .cover .subtitle {{ font-size: 14pt; color: #475569; }}
        .cover .meta {{ font-size: 10pt; color: #64748b; margin-top: 3em; }}
        h2 {{
            font-size: 18pt;
            color: #0f172a;
            border-bottom: 3px solid #2563eb;
            padding-bottom: 0.3em;
            margin-bottom: 1em;
        }}
        h3 {{ font-size: 12pt; color: #1e40af; margin: 1.2em 0 0.4em; }}
        h4 {{ font-size: 10pt; color: #334155; margin: 0.8em 0 0.3em; }}
        .section {{ page-break-before: always; }}
        .row {{ margin-bottom: 1em; }}
        .row-title {{ margin-top: 0.5em; }}
        .squares {{ display: flex; gap: 0.5em; }}
        .square {{
            flex: 1;
            border: 1px solid #cbd5e1;
            border-radius: 4px;
            padding: 0.5em;
            font-size: 8.5pt;
        }}
        .square-label {{ font-weight: bold; color: #1e40af; margin-bottom: 0.3em; }}
        .square-number {{
            display: inline-block;
            background: #2563eb;
            color: white;
            width: 1.5em;
            height: 1.5em;
            line-height: 1.5em;
            text-align: center;
            border-radius: 50%;
            margin-right: 0.4em;
        }}
        .prose p {{ margin: 0 0 0.6em; }}
        .empty {{ color: #94a3b8; font-style: italic; }}
    </style>
</head>
<body>
    <section class="cover">
        <h1>{title}</h1>
        {industry_line}
        <p class="meta">Generated {now}</p>
    </section>

    <section>
        <h2>One-Page Marketing Plan</h2>
        {squares_html}
    </section>

    <section class="section">
        <h2>Implementation Guide</h2>
        {guide_html or _md(None)}
    </section>

    <section class="section">
        <h2>Strategic Insights</h2>
        {insights_html or _md(None)}
    </section>
</body>
</html>'''
