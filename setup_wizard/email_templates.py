"""
Setup Wizard Email Templates
HTML and plain-text bodies for the staff notification and the customer confirmation
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from dateutil import parser as date_parser

from .schemas import FIRST_PARTY_ACCESS, SubmissionPayload
from .utils.sanitization import sanitize_string

NOT_PROVIDED = "Not provided"
NONE_SPECIFIED = "None specified"
NOT_SPECIFIED = "Not specified"

PER_USER_LICENSE_LABEL = "Per-User License ($200/month per developer) - SALES FOLLOW-UP REQUIRED"
API_TOKEN_LICENSE_LABEL = "API Token (Pay-as-you-go)"

ACCESS_METHOD_LABELS = {
    "first-party": "First-Party API (Direct)",
    "bedrock": "AWS Bedrock",
    "vertex": "Google Cloud Vertex AI",
}

THIRD_PARTY_ORG_UUID = "N/A (Third-party access)"

RESOURCE_LINKS = [
    ("Getting Started Guide", "https://docs.anthropic.com/en/docs/claude-code/getting-started"),
    ("Console Dashboard", "https://console.anthropic.com"),
    ("Support Center", "https://support.anthropic.com/en"),
]

PER_USER_NEXT_STEPS = [
    "Our sales team will contact you soon to arrange your per-user licensing",
    "In the meantime, you can start using Claude Code with API tokens",
    "Complete your SSO setup if you haven't already",
]

SELF_SERVICE_NEXT_STEPS = [
    "Use your API tokens to begin using Claude Code immediately",
    "Complete your SSO setup if you haven't already",
    "Set up workspace spending limits as needed",
]

CELL_STYLE = "padding: 10px; border: 1px solid #ddd;"
STRIPE_STYLE = "background: #f5f5f5;"
FOOTER_NOTE = "This email was automatically generated by the Claude Code Enterprise Setup Wizard."


class EmailKind(str, Enum):
    NOTIFICATION = "notification"
    CONFIRMATION = "confirmation"


@dataclass(frozen=True)
class EmailContent:
    html: str
    text: str


# ============================================
# Display labels
# ============================================


def license_display(payload: SubmissionPayload) -> str:
    return PER_USER_LICENSE_LABEL if payload.is_per_user else API_TOKEN_LICENSE_LABEL


def access_method_display(payload: SubmissionPayload) -> str:
    """Known access methods get a friendly label, anything else is shown as sent"""
    method = payload.access_method
    if not method:
        return NOT_SPECIFIED
    return ACCESS_METHOD_LABELS.get(method, method)


def org_uuid_display(payload: SubmissionPayload) -> str:
    if payload.org_uuid:
        return payload.org_uuid
    if payload.access_method == FIRST_PARTY_ACCESS:
        return NOT_PROVIDED
    return THIRD_PARTY_ORG_UUID


def format_completed_at(value: Optional[str]) -> str:
    """Render the wizard completion time as e.g. ``1/15/2025, 2:30:00 PM UTC``"""
    if not value:
        return NOT_PROVIDED
    try:
        moment = date_parser.parse(value)
    except (ValueError, OverflowError):
        return value

    hour = moment.hour % 12 or 12
    meridiem = "AM" if moment.hour < 12 else "PM"
    formatted = (
        f"{moment.month}/{moment.day}/{moment.year}, "
        f"{hour}:{moment.minute:02d}:{moment.second:02d} {meridiem}"
    )
    zone = moment.tzname()
    if not zone and moment.utcoffset() is not None:
        offset = moment.strftime("%z")
        zone = f"UTC{offset[:3]}:{offset[3:5]}"
    return f"{formatted} {zone}" if zone else formatted


def customer_rows(payload: SubmissionPayload) -> list[tuple[str, str]]:
    """Label/value pairs shared by the HTML and text notification bodies"""
    return [
        ("Company Name", payload.company_name or NOT_PROVIDED),
        ("Contact Name", payload.your_name or NOT_PROVIDED),
        ("Email", payload.email or NOT_PROVIDED),
        ("Role", payload.role or NOT_PROVIDED),
        ("Team Size", payload.team_size or NOT_PROVIDED),
        ("Timeline", payload.timeline or NOT_PROVIDED),
        ("License Type", license_display(payload)),
        ("Access Method", access_method_display(payload)),
        ("Organization UUID", org_uuid_display(payload)),
        ("Current AI Tools", payload.current_tools or NONE_SPECIFIED),
    ]


# ============================================
# Staff notification
# ============================================


def notification_template(payload: SubmissionPayload) -> EmailContent:
    """New wizard submission notification for the enterprise team"""
    timestamp = format_completed_at(payload.completed_at)

    html_rows = []
    for index, (label, value) in enumerate(customer_rows(payload)):
        row_style = f' style="{STRIPE_STYLE}"' if index % 2 == 0 else ""
        value_style = CELL_STYLE
        if label == "License Type" and payload.is_per_user:
            value_style += " color: red; font-weight: bold;"
        html_rows.append(
            f"""
            <tr{row_style}>
                <td style="{CELL_STYLE}"><strong>{label}</strong></td>
                <td style="{value_style}">{sanitize_string(value)}</td>
            </tr>"""
        )

    sales_notice_html = ""
    sales_notice_text = ""
    if payload.is_per_user:
        sales_notice_html = """
        <div style="background: #fff3cd; border: 2px solid #ffc107; padding: 15px; margin-top: 20px; border-radius: 5px;">
            <h3 style="color: #856404; margin-top: 0;">⚠️ Sales Follow-up Required</h3>
            <p style="color: #856404;">This customer selected the per-user license option and requires sales team follow-up to arrange licensing transition.</p>
        </div>
        """
        sales_notice_text = (
            "ATTENTION: Sales Follow-up Required\n"
            "This customer selected the per-user license option and requires sales team follow-up.\n\n"
        )

    html = f"""
        <h2>New Claude Code Enterprise Setup Wizard Submission</h2>
        <p><strong>Timestamp:</strong> {sanitize_string(timestamp)}</p>

        <h3>Customer Information</h3>
        <table style="border-collapse: collapse; width: 100%; max-width: 600px;">{"".join(html_rows)}
        </table>
        {sales_notice_html}
        <p style="margin-top: 20px; color: #666; font-size: 12px;">
            {FOOTER_NOTE}
        </p>
    """

    text_rows = "\n".join(f"{label}: {value}" for label, value in customer_rows(payload))
    text = (
        "New Claude Code Enterprise Setup Wizard Submission\n"
        "===================================================\n"
        f"Timestamp: {timestamp}\n"
        "\n"
        "CUSTOMER INFORMATION\n"
        "--------------------\n"
        f"{text_rows}\n"
        "\n"
        f"{sales_notice_text}"
        f"{FOOTER_NOTE}\n"
    )

    return EmailContent(html=html, text=text)


# ============================================
# Customer confirmation
# ============================================


def confirmation_template(payload: SubmissionPayload) -> EmailContent:
    """Thank-you email with next steps for the person who filled in the wizard"""
    greeting_name = payload.your_name or "there"

    if payload.is_per_user:
        steps_heading = "What happens next:"
        steps = PER_USER_NEXT_STEPS
    else:
        steps_heading = "You're ready to get started!"
        steps = SELF_SERVICE_NEXT_STEPS

    steps_html = "\n".join(f"                <li>{step}</li>" for step in steps)
    links_html = "\n".join(
        f'                <li><a href="{url}">{title}</a></li>' for title, url in RESOURCE_LINKS
    )

    html = f"""
        <h2>Thank you for setting up Claude Code!</h2>
        <p>Hello {sanitize_string(greeting_name)},</p>
        <p>We've received your setup information for {sanitize_string(payload.company_name)}.</p>

        <p><strong>{steps_heading}</strong></p>
        <ul>
{steps_html}
        </ul>

        <p><strong>Helpful Resources:</strong></p>
        <ul>
{links_html}
        </ul>

        <p>If you have any questions, please don't hesitate to reach out to our support team.</p>

        <p>Best regards,<br>The Claude Code Team</p>
    """

    steps_text = "\n".join(f"- {step}" for step in steps)
    links_text = "\n".join(f"- {title}: {url}" for title, url in RESOURCE_LINKS)
    text = (
        "Thank you for setting up Claude Code!\n"
        "\n"
        f"Hello {greeting_name},\n"
        "\n"
        f"We've received your setup information for {payload.company_name}.\n"
        "\n"
        f"{steps_heading}\n"
        f"{steps_text}\n"
        "\n"
        "Helpful Resources:\n"
        f"{links_text}\n"
        "\n"
        "If you have any questions, please don't hesitate to reach out to our support team.\n"
        "\n"
        "Best regards,\n"
        "The Claude Code Team\n"
    )

    return EmailContent(html=html, text=text)


TEMPLATES = {
    EmailKind.NOTIFICATION: notification_template,
    EmailKind.CONFIRMATION: confirmation_template,
}


def render_email(kind: EmailKind, payload: SubmissionPayload) -> EmailContent:
    return TEMPLATES[kind](payload)
