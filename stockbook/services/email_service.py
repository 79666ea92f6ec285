"""Outbound mail for account recovery.

The provider is picked by ``EMAIL_PROVIDER``: ``console`` writes the message
to the log (development), ``smtp`` and ``sendgrid`` deliver it.
"""

import logging
import smtplib
from collections.abc import Callable
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from urllib.parse import urlencode

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Content, Email, Mail, To

from stockbook.core.config import settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(Exception):
    pass


@dataclass(frozen=True)
class OutgoingEmail:
    to_email: str
    subject: str
    text_body: str
    html_body: str | None = None


def _deliver_console(email: OutgoingEmail) -> None:
    logger.info("email to=%s subject=%s\n%s", email.to_email, email.subject, email.text_body)


def _mime_message(email: OutgoingEmail) -> MIMEMultipart:
    message = MIMEMultipart("alternative")
    message["Subject"] = email.subject
    message["From"] = settings.email_from
    message["To"] = email.to_email
    message.attach(MIMEText(email.text_body, "plain", "utf-8"))
    if email.html_body:
        message.attach(MIMEText(email.html_body, "html", "utf-8"))
    return message


def _deliver_smtp(email: OutgoingEmail) -> None:
    if not settings.smtp_host:
        raise EmailDeliveryError("SMTP host is not configured")

    smtp_class = smtplib.SMTP_SSL if settings.smtp_use_ssl else smtplib.SMTP
    try:
        with smtp_class(
            host=settings.smtp_host,
            port=settings.smtp_port,
            timeout=settings.smtp_timeout_seconds,
        ) as client:
            if settings.smtp_starttls and not settings.smtp_use_ssl:
                client.starttls()
            if settings.smtp_username:
                client.login(settings.smtp_username, settings.smtp_password)
            client.sendmail(settings.email_from, [email.to_email], _mime_message(email).as_string())
    except (OSError, smtplib.SMTPException) as exc:
        raise EmailDeliveryError(str(exc)) from exc


def _deliver_sendgrid(email: OutgoingEmail) -> None:
    if not settings.sendgrid_api_key:
        raise EmailDeliveryError("SENDGRID_API_KEY is not configured")

    message = Mail(from_email=Email(settings.email_from), to_emails=To(email.to_email), subject=email.subject)
    message.add_content(Content("text/plain", email.text_body))
    if email.html_body:
        message.add_content(Content("text/html", email.html_body))

    try:
        response = SendGridAPIClient(settings.sendgrid_api_key).send(message)
    except Exception as exc:
        raise EmailDeliveryError(str(exc)) from exc
    if response.status_code >= 400:
        raise EmailDeliveryError(f"SendGrid error status: {response.status_code}")


_PROVIDERS: dict[str, Callable[[OutgoingEmail], None]] = {
    "console": _deliver_console,
    "smtp": _deliver_smtp,
    "sendgrid": _deliver_sendgrid,
}


def send_email(email: OutgoingEmail) -> None:
    deliver = _PROVIDERS.get(settings.email_provider)
    if deliver is None:
        raise EmailDeliveryError(f"Unsupported EMAIL_PROVIDER: {settings.email_provider}")
    deliver(email)
    logger.info("email sent via %s subject=%s", settings.email_provider, email.subject)


def build_password_reset_email(to_email: str, token: str) -> OutgoingEmail:
    reset_url = f"{settings.frontend_base_url.rstrip('/')}/reset.html?{urlencode({'token': token})}"
    minutes = settings.password_reset_token_expire_minutes
    return OutgoingEmail(
        to_email=to_email,
        subject="Reset your Stockbook password",
        text_body=(
            "We received a request to reset your password.\n\n"
            f"Open this link to choose a new one: {reset_url}\n\n"
            f"The link expires in {minutes} minutes. Ignore this email if you did not ask for it.\n"
        ),
        html_body=(
            "<p>We received a request to reset your password.</p>"
            f'<p><a href="{reset_url}">Choose a new password</a></p>'
            f"<p>The link expires in {minutes} minutes.</p>"
        ),
    )
