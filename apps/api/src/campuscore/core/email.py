"""
Email Service using Resend

Handles transactional emails for tenant onboarding and password management.
"""

import asyncio
import logging
from html import escape

import resend

from campuscore.core.config import settings

logger = logging.getLogger(__name__)

resend.api_key = settings.resend_api_key

_STYLES = """
        body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
        .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
        .header { color: #1a365d; margin-bottom: 24px; }
        .button { display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
        .info-box { background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 16px 0; }
        .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
"""


def _render(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>{_STYLES}</style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>CampusCore - School Management System</p>
            </div>
        </div>
    </body>
    </html>
    """


async def send_email(
    to_email: str,
    subject: str,
    html_content: str,
) -> bool:
    """
    Send an email using Resend.

    Args:
        to_email: Recipient email address
        subject: Email subject line
        html_content: HTML content of the email

    Returns:
        True if email was sent (or logged when no API key is configured)
    """
    if not resend.api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Resend's client is synchronous
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_password_reset(to_email: str, name: str, token: str) -> bool:
    """Send the password reset link."""
    safe_name = escape(name)
    reset_url = f"{settings.frontend_url}/reset-password?token={token}"
    expires_minutes = settings.password_reset_expire_minutes

    body = f"""
            <p>Hello {safe_name},</p>

            <p>We received a request to reset the password for your CampusCore account.</p>

            <a href="{reset_url}" class="button">Reset Password</a>

            <p>Or copy and paste this link into your browser:</p>
            <p style="word-break: break-all; color: #3b82f6;">{reset_url}</p>

            <p><strong>This link expires in {expires_minutes} minutes.</strong></p>

            <p>If you didn't request a password reset, you can safely ignore this email.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Reset your CampusCore password",
        html_content=_render("Reset Your Password", body),
    )


async def send_tenant_welcome(
    to_email: str,
    admin_name: str,
    school_name: str,
    login_url: str,
) -> bool:
    """Welcome a newly registered school's administrator."""
    safe_admin_name = escape(admin_name)
    safe_school_name = escape(school_name)
    full_login_url = f"{settings.frontend_url}{login_url}"

    body = f"""
            <p>Hello {safe_admin_name},</p>

            <p><strong>{safe_school_name}</strong> is now registered on CampusCore and your
            school administrator account is ready.</p>

            <div class="info-box">
                <p><strong>Your school's login page:</strong></p>
                <p style="word-break: break-all;">{full_login_url}</p>
            </div>

            <a href="{full_login_url}" class="button">Sign In</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Welcome to CampusCore, {school_name}",
        html_content=_render("Welcome to CampusCore", body),
    )


async def send_password_changed(to_email: str, name: str) -> bool:
    """Notify a user that their password was changed."""
    safe_name = escape(name)

    body = f"""
            <p>Hello {safe_name},</p>

            <p>The password for your CampusCore account was just changed.</p>

            <p>If you did not make this change, reset your password immediately and
            contact your school administrator.</p>
    """
    return await send_email(
        to_email=to_email,
        subject="Your CampusCore password was changed",
        html_content=_render("Password Changed", body),
    )
