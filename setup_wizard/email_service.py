"""
Setup Wizard Email Service using SMTP (raw or Gmail) or Resend
Composes the notification/confirmation emails and hands them to a mail transport
"""

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass, field
from email.message import EmailMessage
from email.utils import getaddresses, make_msgid
from typing import Optional

import resend

from .config import Settings
from .email_templates import EmailKind, render_email
from .schemas import SubmissionPayload

logger = logging.getLogger(__name__)

NOTIFICATION_SENDER = '"Claude Code Setup Wizard" <noreply@anthropic.com>'
CONFIRMATION_SENDER = '"Claude Code Team" <noreply@anthropic.com>'
CONFIRMATION_SUBJECT = "Claude Code Setup - Next Steps"

GMAIL_SMTP_HOST = "smtp.gmail.com"
GMAIL_SMTP_PORT = 465


def header_value(value: Optional[str]) -> Optional[str]:
    """Fold CR/LF and runs of whitespace into single spaces for use in a header"""
    if value is None:
        return None
    return " ".join(value.split())


@dataclass(frozen=True)
class OutgoingEmail:
    sender: str
    to: str
    subject: str
    text: str
    html: str
    cc: list[str] = field(default_factory=list)
    reply_to: Optional[str] = None

    @property
    def recipients(self) -> list[str]:
        """Envelope recipients: every address in To and Cc"""
        return [address for _, address in getaddresses([self.to, *self.cc]) if address]


class MailTransport:
    """Something that accepts a composed email and attempts delivery.

    ``send`` is blocking and raises on any delivery problem.
    """

    name = "transport"

    def send(self, email: OutgoingEmail) -> dict:
        raise NotImplementedError


class SMTPTransport(MailTransport):
    """Send via an SMTP server, with implicit TLS or opportunistic STARTTLS"""

    name = "smtp"

    def __init__(
        self,
        host: Optional[str],
        port: int = 587,
        secure: bool = False,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: int = 30,
    ):
        self.host = host
        self.port = port
        self.secure = secure
        self.username = username
        self.password = password
        self.timeout = timeout

    def build_message(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = email.subject
        msg["From"] = email.sender
        msg["To"] = email.to
        if email.cc:
            msg["Cc"] = ", ".join(email.cc)
        if email.reply_to:
            msg["Reply-To"] = email.reply_to
        msg["Message-ID"] = make_msgid()

        msg.set_content(email.text)
        msg.add_alternative(email.html, subtype="html")
        return msg

    def send(self, email: OutgoingEmail) -> dict:
        if not self.host:
            raise RuntimeError("Email transport not configured - SMTP host missing")

        msg = self.build_message(email)
        context = ssl.create_default_context()

        if self.secure:
            server = smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)
        else:
            server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)

        with server:
            if not self.secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls(context=context)
                    server.ehlo()
            if self.username:
                server.login(self.username, self.password or "")
            server.send_message(msg, to_addrs=email.recipients)

        logger.info(f"✅ SMTP email sent successfully via {self.host}")
        return {"id": msg["Message-ID"], "success": True}


class ResendTransport(MailTransport):
    """Send via the Resend API"""

    name = "resend"

    def __init__(self, api_key: Optional[str]):
        self.api_key = api_key

    def send(self, email: OutgoingEmail) -> dict:
        if not self.api_key:
            raise RuntimeError("Email transport not configured - RESEND_API_KEY missing")

        resend.api_key = self.api_key
        email_data = {
            "from": email.sender,
            "to": [email.to],
            "subject": email.subject,
            "html": email.html,
            "text": email.text,
        }
        if email.cc:
            email_data["cc"] = list(email.cc)
        if email.reply_to:
            email_data["reply_to"] = email.reply_to

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response


def create_transport(settings: Settings) -> MailTransport:
    """
    Pick the transport named by EMAIL_SERVICE.
    Priority order:
    1. gmail - Gmail SMTP with an app password
    2. resend - Resend API
    3. anything else - raw SMTP from the SMTP_* settings
    """
    if settings.email_service == "gmail":
        return SMTPTransport(
            host=GMAIL_SMTP_HOST,
            port=GMAIL_SMTP_PORT,
            secure=True,
            username=settings.email_user,
            password=settings.email_app_password,
        )

    if settings.email_service == "resend":
        return ResendTransport(settings.resend_api_key)

    return SMTPTransport(
        host=settings.smtp_host,
        port=settings.smtp_port,
        secure=settings.smtp_secure,
        username=settings.smtp_user,
        password=settings.smtp_pass,
    )


def build_email(kind: EmailKind, payload: SubmissionPayload, settings: Settings) -> OutgoingEmail:
    """Render the bodies for ``kind`` and address them"""
    content = render_email(kind, payload)

    if kind == EmailKind.CONFIRMATION:
        return OutgoingEmail(
            sender=settings.email_from or CONFIRMATION_SENDER,
            to=header_value(payload.email),
            subject=CONFIRMATION_SUBJECT,
            text=content.text,
            html=content.html,
        )

    cc = []
    if payload.is_per_user:
        if settings.sales_email:
            cc.append(settings.sales_email)
        else:
            logger.warning(
                f"⚠️ Per-user submission from {payload.company_name} but SALES_EMAIL is not configured"
            )

    follow_up = "SALES REQUIRED" if payload.is_per_user else "API Setup"
    return OutgoingEmail(
        sender=settings.email_from or NOTIFICATION_SENDER,
        to=settings.notification_recipient,
        subject=f"[Claude Code Setup] {header_value(payload.company_name)} - {follow_up}",
        text=content.text,
        html=content.html,
        cc=cc,
        reply_to=header_value(payload.email),
    )


async def send_templated_email(
    kind: EmailKind,
    payload: SubmissionPayload,
    settings: Settings,
    transport: MailTransport,
) -> dict:
    """
    Render and send one wizard email

    Args:
        kind: Which email to send (staff notification or customer confirmation)
        payload: The validated submission
        settings: Addressing configuration
        transport: Where to hand the composed email

    Returns:
        Transport response dict
    """
    email = build_email(kind, payload, settings)
    logger.info(f"📧 Sending {kind.value} email via {transport.name} to: {email.to}")
    return await asyncio.to_thread(transport.send, email)
