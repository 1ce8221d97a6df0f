"""Transactional email delivery over SMTP."""

import asyncio
import html
import re
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr

import structlog
from mjml import mjml_to_html

from formconsult.config import settings
from formconsult.services.email_templates import (
    consultation_approved_template,
    consultation_rejected_template,
)

logger = structlog.get_logger(__name__)

SMTP_TIMEOUT_SECONDS = 30


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile an MJML template to the HTML that is actually sent."""
    result = mjml_to_html(mjml_content)
    if result.get("errors"):
        logger.warning("mjml_compilation_warnings", errors=result["errors"])
    return result["html"]


def _html_to_text(content: str) -> str:
    """Plain-text fallback part for clients that do not render HTML."""
    content = re.sub(r"<(head|style|mj-head)\b[^>]*>.*?</\1>", " ", content, flags=re.DOTALL | re.IGNORECASE)
    content = re.sub(r"<!--.*?-->", " ", content, flags=re.DOTALL)
    content = re.sub(r"<[^>]*>", "", content)
    return re.sub(r"\s+", " ", html.unescape(content)).strip()


def _send_via_smtp(to: str, subject: str, html_content: str) -> None:
    """Blocking SMTP send; run it in a worker thread."""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = settings.email_from_address
    msg["To"] = to
    msg.attach(MIMEText(_html_to_text(html_content), "plain", "utf-8"))
    msg.attach(MIMEText(html_content, "html", "utf-8"))

    if settings.smtp_port == 465:
        context = ssl.create_default_context()
        server = smtplib.SMTP_SSL(
            settings.smtp_host, settings.smtp_port, context=context, timeout=SMTP_TIMEOUT_SECONDS
        )
    else:
        server = smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=SMTP_TIMEOUT_SECONDS)
        if settings.smtp_use_tls:
            server.starttls(context=ssl.create_default_context())

    try:
        if settings.smtp_username and settings.smtp_password:
            server.login(settings.smtp_username, settings.smtp_password)
        server.sendmail(parseaddr(settings.email_from_address)[1], [to], msg.as_string())
    finally:
        server.quit()


class EmailService:
    """Service for consultation emails."""

    @staticmethod
    def _dashboard_url() -> str:
        return f"{settings.app_url.rstrip('/')}/dashboard"

    @staticmethod
    async def send_email(to: str, subject: str, mjml_content: str) -> bool:
        """
        Compile an MJML template and send it.

        Args:
            to: Recipient address
            subject: Subject line
            mjml_content: MJML template, compiled to HTML before sending

        Returns:
            True if the message was handed to the SMTP relay, False if email
            delivery is not configured

        Raises:
            smtplib.SMTPException, OSError: If the relay rejects the message
        """
        if not settings.email_enabled:
            logger.info("email_delivery_skipped", to=to, subject=subject, reason="smtp_not_configured")
            return False

        html_content = compile_mjml_to_html(mjml_content)
        await asyncio.to_thread(_send_via_smtp, to, subject, html_content)
        logger.info("email_sent", to=to, subject=subject)
        return True

    @staticmethod
    async def send_consultation_approved(
        to: str,
        user_name: str,
        consultation_title: str,
        company_name: str,
        admin_name: str,
    ) -> bool:
        """Tell the requester their consultation was confirmed."""
        mjml_content = consultation_approved_template(
            user_name=user_name,
            consultation_title=consultation_title,
            company_name=company_name,
            admin_name=admin_name,
            dashboard_url=EmailService._dashboard_url(),
            app_url=settings.app_url,
        )
        return await EmailService.send_email(
            to,
            f"Consultation request approved - {consultation_title}",
            mjml_content,
        )

    @staticmethod
    async def send_consultation_rejected(
        to: str,
        user_name: str,
        consultation_title: str,
        company_name: str,
        admin_name: str,
        reason: str | None = None,
    ) -> bool:
        """Tell the requester their consultation was declined."""
        mjml_content = consultation_rejected_template(
            user_name=user_name,
            consultation_title=consultation_title,
            company_name=company_name,
            admin_name=admin_name,
            dashboard_url=EmailService._dashboard_url(),
            app_url=settings.app_url,
            rejection_reason=reason,
        )
        return await EmailService.send_email(
            to,
            f"Consultation request declined - {consultation_title}",
            mjml_content,
        )
