"""
Transactional emails for admin onboarding, password reset and member access.
Each helper renders the message and hands it to the injected EmailSender.
"""
from html import escape
from typing import Optional

from voluntold.services.email import EmailSender

_LAYOUT = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <div style="text-align: center; margin-bottom: 30px;">
    <h1 style="color: #2563eb; margin: 0;">Voluntold</h1>
  </div>
  {body}
  <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
  <p style="color: #9ca3af; font-size: 12px; text-align: center;">{footer}</p>
</div>
"""

_BUTTON = """
<div style="text-align: center; margin: 30px 0;">
  <a href="{url}" style="background-color: #2563eb; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: 600;">{label}</a>
</div>
<p style="color: #6b7280; font-size: 14px;">{expiry} If you can't click the button above, copy and paste this link into your browser:</p>
<p style="color: #6b7280; font-size: 14px; word-break: break-all;">{url}</p>
"""


def _render(body: str, footer: str) -> str:
    return _LAYOUT.format(body=body, footer=footer)


def build_setup_url(site_url: str, token: str) -> str:
    """Shared by invitations and resets; the page reads the token type."""
    return f"{site_url.rstrip('/')}/admin/setup/{token}"


def build_member_access_url(site_url: str, token: str) -> str:
    return f"{site_url.rstrip('/')}/member/{token}"


def send_admin_invitation_email(
    sender: EmailSender,
    to_email: str,
    first_name: str,
    tenant_name: str,
    setup_url: str,
    expires_days: int,
) -> bool:
    """Invite someone to become an administrator of a tenant."""
    subject = f"You're invited to join {tenant_name} as an admin - Voluntold"
    body = f"""
  <h2 style="color: #374151;">You're invited to be an admin!</h2>
  <p>Hi {escape(first_name)},</p>
  <p>You've been invited to join <strong>{escape(tenant_name)}</strong> as an administrator on Voluntold. As an admin, you'll be able to:</p>
  <ul style="color: #6b7280; margin: 20px 0;">
    <li>Manage volunteer projects and opportunities</li>
    <li>Send email broadcasts to members</li>
    <li>Create polls and gather feedback</li>
    <li>Manage organization members</li>
  </ul>
  {_BUTTON.format(url=setup_url, label="Set Up Your Admin Account", expiry=f"This invitation will expire in {expires_days} days.")}
"""
    html = _render(body, "If you didn't expect this invitation, you can safely ignore this email.")
    return sender.send(to_email, subject, html)


def send_password_reset_email(
    sender: EmailSender,
    to_email: str,
    first_name: Optional[str],
    reset_url: str,
    expires_hours: int,
) -> bool:
    subject = "Reset your Voluntold admin password"
    unit = "hour" if expires_hours == 1 else "hours"
    body = f"""
  <h2 style="color: #374151;">Reset Your Password</h2>
  <p>Hi {escape(first_name or 'Admin')},</p>
  <p>You requested a password reset for your Voluntold admin account. Click the button below to set a new password:</p>
  {_BUTTON.format(url=reset_url, label="Reset Password", expiry=f"This reset link will expire in {expires_hours} {unit} for security.")}
"""
    html = _render(
        body,
        "If you didn't request this password reset, you can safely ignore this email. Your password will not be changed.",
    )
    return sender.send(to_email, subject, html)


def send_member_access_email(
    sender: EmailSender,
    to_email: str,
    member_name: str,
    tenant_name: str,
    access_url: str,
    expires_hours: int,
) -> bool:
    subject = f"Your {tenant_name} Member Portal Access"
    body = f"""
  <h2 style="color: #1f2937;">Hello {escape(member_name)}!</h2>
  <p>You requested access to your member portal for <strong>{escape(tenant_name)}</strong>.</p>
  {_BUTTON.format(url=access_url, label="Access Member Portal", expiry=f"This link will expire in {expires_hours} hours and can only be used once. Do not share it with others.")}
"""
    html = _render(body, f"This email was sent by Voluntold on behalf of {escape(tenant_name)}.")
    return sender.send(to_email, subject, html)
