"""Invite email delivery through the Resend HTTP API."""
import logging
from html import escape

import httpx

from nocarry.config import settings

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"

_INVITE_HTML = """\
<div style="font-family:system-ui,sans-serif;max-width:480px;margin:0 auto;padding:40px 24px">
  <h1 style="font-size:22px;font-weight:800;margin:0 0 8px">You've been invited!</h1>
  <p style="font-size:15px;margin:0 0 28px;line-height:1.6">
    <strong>{inviter}</strong> has invited you to join <strong>{project}</strong>
    as a <strong>{role}</strong>.
  </p>
  <a href="{url}" style="display:inline-block;background:#6366f1;color:#fff;padding:12px 28px;
     border-radius:8px;text-decoration:none;font-weight:700;font-size:14px">Accept Invite</a>
  <p style="color:#4b5563;font-size:12px;margin-top:32px;line-height:1.5">
    This invite link expires in {days} days.<br>
    If you didn't expect this, you can safely ignore it.
  </p>
</div>
"""


def send_invite_email(
    to: str,
    project_name: str,
    inviter_name: str,
    role_label: str,
    accept_url: str,
) -> bool:
    """Send an invite email. Returns True only if the provider accepted it.

    With no API key configured this is a no-op: the caller hands the raw
    accept link back to the inviter instead.
    """
    if not settings.RESEND_API_KEY:
        logger.info("No RESEND_API_KEY set; invite link for %s: %s", to, accept_url)
        return False

    html = _INVITE_HTML.format(
        inviter=escape(inviter_name),
        project=escape(project_name),
        role=escape(role_label),
        url=escape(accept_url, quote=True),
        days=settings.INVITE_TTL_DAYS,
    )
    try:
        resp = httpx.post(
            RESEND_ENDPOINT,
            headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
            json={
                "from": settings.RESEND_FROM_EMAIL,
                "to": [to],
                "subject": f"{inviter_name} invited you to join {project_name} on NoCarry",
                "html": html,
            },
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    except httpx.HTTPError as exc:
        logger.error("Invite email to %s failed: %s", to, exc)
        return False

    if resp.is_error:
        logger.error("Resend rejected invite email to %s (%s): %s", to, resp.status_code, resp.text)
        return False

    logger.info("Sent invite email to %s for project '%s'", to, project_name)
    return True
