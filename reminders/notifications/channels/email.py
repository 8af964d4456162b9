"""SendGrid email delivery channel."""

import asyncio
import os
import re
from dataclasses import dataclass

from python_http_client.exceptions import HTTPError
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail


SENDGRID_API_KEY = os.environ.get("SENDGRID_API_KEY")
FROM_EMAIL = os.environ.get("FROM_EMAIL", "reminders@example.edu")
FROM_NAME = os.environ.get("FROM_NAME", "Lecture Reminders")

# Regex to match markdown links: [text](url)
MARKDOWN_LINK_PATTERN = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")

_client: SendGridAPIClient | None = None


@dataclass
class DeliveryResult:
    """Outcome of one provider call. `error` is stored verbatim on failure."""

    success: bool
    error: str | None = None
    status_code: int | None = None


def markdown_to_html(text: str) -> str:
    """
    Convert markdown-style links to HTML and wrap in basic HTML structure.

    Converts [text](url) to <a href="url">text</a> and preserves line breaks.
    """
    html_body = MARKDOWN_LINK_PATTERN.sub(r'<a href="\2">\1</a>', text)
    html_body = html_body.replace("\n", "<br>\n")

    return f"""<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
</head>
<body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.5; color: #333;">
{html_body}
</body>
</html>"""


def markdown_to_plain_text(text: str) -> str:
    """
    Convert markdown-style links to plain text with URL in parentheses.

    Converts [text](url) to text (url) for plain text email fallback.
    """
    return MARKDOWN_LINK_PATTERN.sub(r"\1 (\2)", text)


def _get_sendgrid_client() -> SendGridAPIClient | None:
    """Get or create SendGrid client singleton."""
    global _client
    if _client is None and SENDGRID_API_KEY:
        _client = SendGridAPIClient(SENDGRID_API_KEY)
    return _client


def build_mail(to_email: str, subject: str, body: str) -> Mail:
    """Build a SendGrid message with plain text and HTML parts."""
    return Mail(
        from_email=(FROM_EMAIL, FROM_NAME),
        to_emails=to_email,
        subject=subject,
        plain_text_content=markdown_to_plain_text(body),
        html_content=markdown_to_html(body),
    )


def _decode_body(body) -> str:
    if isinstance(body, bytes):
        return body.decode("utf-8", errors="replace")
    return str(body) if body is not None else ""


async def send_email(
    to_email: str,
    subject: str,
    body: str,
    timeout: float = 10.0,
) -> DeliveryResult:
    """
    Send an email via SendGrid with a bounded wait.

    The SendGrid client is blocking, so the call runs in a worker thread.
    A call that outlives `timeout` is reported as a failure; the provider may
    still deliver it, which is the accepted double-send risk.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        body: Email body (may contain markdown links)
        timeout: Seconds to wait for the provider

    Returns:
        DeliveryResult; never raises for provider or transport errors
    """
    client = _get_sendgrid_client()
    if not client:
        return DeliveryResult(
            success=False, error="SendGrid not configured (SENDGRID_API_KEY not set)"
        )

    try:
        message = build_mail(to_email, subject, body)
        response = await asyncio.wait_for(
            asyncio.to_thread(client.send, message), timeout=timeout
        )
    except asyncio.TimeoutError:
        return DeliveryResult(success=False, error=f"Provider timeout after {timeout:g}s")
    except HTTPError as e:
        status_code = getattr(e, "status_code", None)
        return DeliveryResult(
            success=False,
            error=f"HTTP {status_code}: {_decode_body(getattr(e, 'body', None))}",
            status_code=status_code,
        )
    except Exception as e:
        return DeliveryResult(success=False, error=f"{type(e).__name__}: {e}")

    if response.status_code in (200, 201, 202):
        return DeliveryResult(success=True, status_code=response.status_code)

    return DeliveryResult(
        success=False,
        error=f"HTTP {response.status_code}: {_decode_body(response.body)}",
        status_code=response.status_code,
    )
