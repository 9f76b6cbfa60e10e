"""Email client using Resend API, with SMTP as a secondary transport."""

import html
import smtplib
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from email.message import EmailMessage

import resend

from src.escrow.core.config import get_settings
from src.escrow.core.logging import get_logger

logger = get_logger(__name__)

# Thread pool for email sending with timeout support
_email_executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="email_sender")

# Shared email styles
_BODY_STYLE = (
    "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; "
    "line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;"
)
_CODE_STYLE = (
    "font-size: 28px; letter-spacing: 6px; font-weight: 600; "
    "background-color: #f3f4f6; padding: 12px 24px; border-radius: 6px; display: inline-block;"
)
_MUTED_STYLE = "color: #666; font-size: 14px;"


def _send_via_resend(to: str, subject: str, text: str, html_body: str | None) -> None:
    settings = get_settings()
    resend.api_key = settings.resend_api_key
    params: dict[str, object] = {
        "from": settings.email_from,
        "to": [to],
        "subject": subject,
        "text": text,
    }
    if html_body:
        params["html"] = html_body
    resend.Emails.send(params)  # type: ignore[arg-type]


def _send_via_smtp(to: str, subject: str, text: str, html_body: str | None) -> None:
    settings = get_settings()
    message = EmailMessage()
    message["From"] = settings.email_from
    message["To"] = to
    message["Subject"] = subject
    message.set_content(text)
    if html_body:
        message.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(
        settings.smtp_host,  # type: ignore[arg-type]
        settings.smtp_port,
        timeout=settings.email_send_timeout_seconds,
    ) as smtp:
        if settings.smtp_use_tls:
            smtp.starttls()
        if settings.smtp_user and settings.smtp_password:
            smtp.login(settings.smtp_user, settings.smtp_password)
        smtp.send_message(message)


def send_email(to: str, subject: str, text: str, html_body: str | None = None) -> bool:
    """Send an email through the configured transport.

    Resend is used when RESEND_API_KEY is set, SMTP when SMTP_HOST is set.
    With neither configured the email is only logged.

    Returns:
        True if email was sent (or logged in dev mode), False on error
    """
    settings = get_settings()

    if settings.resend_api_key:
        transport = "resend"
        sender = _send_via_resend
    elif settings.smtp_host:
        transport = "smtp"
        sender = _send_via_smtp
    else:
        # Dev mode: log email metadata instead of sending
        logger.warning("No email transport configured - email not sent", to=to, subject=subject)
        return True

    try:
        # Use thread pool with timeout to prevent hanging on slow providers
        future = _email_executor.submit(sender, to, subject, text, html_body)
        future.result(timeout=settings.email_send_timeout_seconds)
        logger.info("Email sent", to=to, subject=subject, transport=transport)
        return True
    except FuturesTimeoutError:
        logger.error(
            "Email send timed out",
            to=to,
            transport=transport,
            timeout=settings.email_send_timeout_seconds,
        )
        return False
    except Exception as e:
        logger.error("Failed to send email", to=to, transport=transport, error=str(e))
        return False


def send_verification_code_email(
    to: str, code: str, ttl_minutes: int, purpose: str | None = None
) -> bool:
    """Send a one-time verification code.

    Args:
        to: Recipient email address
        code: The 6-digit code (plaintext, never logged)
        ttl_minutes: Minutes until the code expires
        purpose: Optional action the code authorizes

    Returns:
        True if email was sent, False on error
    """
    action = f" for {purpose}" if purpose else ""
    text = (
        f"Your verification code{action} is {code}.\n"
        f"It expires in {ttl_minutes} minutes. If you did not request it, ignore this email."
    )
    return send_email(
        to,
        "Your verification code",
        text,
        _get_verification_code_html(code, ttl_minutes, purpose),
    )


def _get_verification_code_html(code: str, ttl_minutes: int, purpose: str | None) -> str:
    """Generate HTML content for verification code email."""
    safe_code = html.escape(code)
    safe_action = f" for <strong>{html.escape(purpose)}</strong>" if purpose else ""
    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
</head>
<body style="{_BODY_STYLE}">
    <h1 style="color: #2563eb; margin-bottom: 24px;">Verification code</h1>
    <p>Use the code below to confirm your request{safe_action}:</p>
    <p style="margin: 32px 0;">
        <span style="{_CODE_STYLE}">{safe_code}</span>
    </p>
    <p style="{_MUTED_STYLE} margin-top: 32px;">
        This code will expire in {ttl_minutes} minutes. If you didn't request it,
        you can safely ignore this email.
    </p>
</body>
</html>"""
