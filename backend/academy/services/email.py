from __future__ import annotations

from email.message import EmailMessage
import logging
import smtplib
import ssl
import time

from academy.core.config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    pass


_CONNECTION_ERRORS = (
    smtplib.SMTPConnectError,
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPHeloError,
    OSError,
    TimeoutError,
)


def _sender(settings) -> str:
    if settings.smtp_from_name:
        return f"{settings.smtp_from_name} <{settings.smtp_from_email}>"
    return settings.smtp_from_email


def render_letter(*, name: str | None, message: str, signature: str) -> str:
    return f"Dear {name or 'Student'},\n\n{message}\n\nBest regards,\n{signature}"


def _compose(settings, *, to_email: str, subject: str, text_content: str, html_content: str | None) -> EmailMessage:
    message = EmailMessage()
    message["From"] = _sender(settings)
    message["To"] = to_email
    message["Subject"] = subject
    message.set_content(text_content)
    if html_content:
        message.add_alternative(html_content, subtype="html")
    return message


def _deliver(settings, message: EmailMessage) -> None:
    timeout = max(1, settings.smtp_timeout_seconds)
    if settings.smtp_use_ssl:
        with smtplib.SMTP_SSL(settings.smtp_host, settings.smtp_port, timeout=timeout) as smtp:
            if settings.smtp_username:
                smtp.login(settings.smtp_username, settings.smtp_password or "")
            smtp.send_message(message)
        return

    with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=timeout) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls(context=ssl.create_default_context())
        if settings.smtp_username:
            smtp.login(settings.smtp_username, settings.smtp_password or "")
        smtp.send_message(message)


def send_email(*, to_email: str, subject: str, text_content: str, html_content: str | None = None) -> None:
    """Send one message through the configured SMTP relay.

    Connection failures are retried with linear backoff; rejections by the
    server are not. Raises ``EmailDeliveryError`` once delivery is given up.
    """
    settings = get_settings()
    if not settings.smtp_host or not settings.smtp_from_email:
        raise EmailDeliveryError("SMTP is not configured")

    message = _compose(
        settings,
        to_email=to_email,
        subject=subject,
        text_content=text_content,
        html_content=html_content,
    )
    attempts = max(1, settings.smtp_retry_attempts)
    backoff = max(0.0, settings.smtp_retry_backoff_seconds)

    for attempt in range(1, attempts + 1):
        try:
            _deliver(settings, message)
            return
        except smtplib.SMTPAuthenticationError as exc:  # pragma: no cover - transport-specific behavior
            raise EmailDeliveryError("SMTP authentication failed") from exc
        except smtplib.SMTPRecipientsRefused as exc:  # pragma: no cover - transport-specific behavior
            raise EmailDeliveryError("SMTP recipient rejected") from exc
        except smtplib.SMTPSenderRefused as exc:  # pragma: no cover - transport-specific behavior
            raise EmailDeliveryError("SMTP sender rejected") from exc
        except smtplib.SMTPDataError as exc:  # pragma: no cover - transport-specific behavior
            raise EmailDeliveryError("SMTP data rejected") from exc
        except _CONNECTION_ERRORS as exc:
            if attempt >= attempts:
                raise EmailDeliveryError("SMTP connection failed") from exc
            logger.info("SMTP attempt %d/%d to %s failed, retrying", attempt, attempts, to_email)
            if backoff > 0:
                time.sleep(backoff * attempt)
