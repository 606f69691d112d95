"""
Notification service — in-app notifications plus SMTP email with a logged
simulation fallback.

Both channels are fire-and-forget: a failure is logged and never reaches
the operation that triggered it.
"""

import asyncio
import html
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from hitit.config import settings
from hitit.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

HTML_TEMPLATE_BASE = """
<!DOCTYPE html>
<html>
<head>
    <style>
        body { font-family: 'Inter', -apple-system, sans-serif; background-color: #f8f9fa; color: #333; margin: 0; padding: 0; }
        .container { max-width: 600px; margin: 40px auto; background: #ffffff; border-radius: 12px; overflow: hidden; }
        .header { background: #7c3aed; padding: 30px 40px; text-align: center; }
        .header h1 { color: #ffffff; margin: 0; font-size: 24px; }
        .content { padding: 40px; line-height: 1.6; }
        .message-box { background: #f8f9fa; border-left: 4px solid #6c757d; padding: 16px 20px; font-style: italic; margin-bottom: 24px; }
        .button-wrap { text-align: center; margin-top: 30px; }
        .btn { display: inline-block; background: #7c3aed; color: #ffffff; text-decoration: none; padding: 14px 28px; border-radius: 8px; font-weight: 600; }
        .footer { background: #f1f3f5; padding: 20px; text-align: center; color: #6c757d; font-size: 13px; }
    </style>
</head>
<body>
    <div class="container">
        <div class="header">
            <h1>Hit.it</h1>
        </div>
        <div class="content">
            {body}
        </div>
        <div class="footer">
            <p>You received this email because you have a Hit.it account.</p>
        </div>
    </div>
</body>
</html>
"""


# ═══════════════════════════════════════════════════════════════
#  In-app notifications
# ═══════════════════════════════════════════════════════════════

async def create_notification(
    db: AsyncSession,
    recipient_id: int,
    sender_id: int,
    type: NotificationType,
    message: str,
    jam_id: Optional[int] = None,
) -> Optional[Notification]:
    """Store a notification for ``recipient_id``. Never raises."""
    if recipient_id == sender_id:
        return None
    try:
        async with db.begin_nested():
            notif = Notification(
                user_id=recipient_id,
                sender_id=sender_id,
                type=type,
                message=message,
                jam_id=jam_id,
            )
            db.add(notif)
        return notif
    except Exception:
        logger.exception("Failed to create notification for user %s", recipient_id)
        return None


# ═══════════════════════════════════════════════════════════════
#  Email
# ═══════════════════════════════════════════════════════════════

def render_email(body: str) -> str:
    return HTML_TEMPLATE_BASE.replace("{body}", body)


def _send_email_sync(recipient_email: str, subject: str, html_body: str) -> None:
    """Send the email, or log it when SMTP is not configured."""
    if not settings.SMTP_USERNAME or not settings.SMTP_PASSWORD:
        logger.info("Simulated email to %s: %s", recipient_email, subject)
        logger.debug("Simulated email body:\n%s", html_body)
        return

    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = f"Hit.it <{settings.SMTP_USERNAME}>"
    msg["To"] = recipient_email
    msg.attach(MIMEText(html_body, "html"))

    try:
        server = smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT)
        server.starttls()
        server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)
        server.quit()
        logger.info("Email sent to %s", recipient_email)
    except Exception as e:
        logger.error("Failed to send email to %s: %s", recipient_email, e)


async def send_invite_email(
    recipient_email: str, jam_title: str, inviter_name: str, role: str, message: Optional[str] = None
) -> None:
    """Tell a user they have been invited to collaborate on a jam."""
    subject = f"You've been invited to jam on {jam_title}!"
    jam_title, inviter_name, role = html.escape(jam_title), html.escape(inviter_name), html.escape(role)

    body = f"""
    <h2>Hey,</h2>
    <p><strong>{inviter_name}</strong> invited you to collaborate on <strong>{jam_title}</strong> as a {role}.</p>
    """
    if message:
        body += f'<div class="message-box">"{html.escape(message)}"<br><br>— {inviter_name}</div>'
    body += """
    <p>The invite expires in a week. Log into Hit.it to accept or decline it.</p>
    <div class="button-wrap">
        <a href="{frontend}/invites" class="btn">View Invite</a>
    </div>
    """.replace("{frontend}", settings.FRONTEND_URL)

    document = render_email(body)
    # SMTP is blocking, keep it off the event loop
    await asyncio.to_thread(_send_email_sync, recipient_email, subject, document)


async def send_join_request_email(
    recipient_email: str, jam_title: str, requester_name: str, role: str, message: Optional[str] = None
) -> None:
    """Tell a jam owner that someone wants to join."""
    subject = f"New request to join {jam_title}"
    jam_title, requester_name, role = html.escape(jam_title), html.escape(requester_name), html.escape(role)

    body = f"""
    <h2>Hey,</h2>
    <p><strong>{requester_name}</strong> asked to join <strong>{jam_title}</strong> as a {role}.</p>
    """
    if message:
        body += f'<div class="message-box">"{html.escape(message)}"<br><br>— {requester_name}</div>'
    body += """
    <p>Log into Hit.it to approve or deny the request.</p>
    <div class="button-wrap">
        <a href="{frontend}/requests" class="btn">Review Request</a>
    </div>
    """.replace("{frontend}", settings.FRONTEND_URL)

    document = render_email(body)
    await asyncio.to_thread(_send_email_sync, recipient_email, subject, document)
