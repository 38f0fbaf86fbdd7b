"""
Email templates for MyEscrow.

All templates use inline CSS for maximum email client compatibility.
Each template function returns (subject, html_body, text_body).
"""

from __future__ import annotations

from datetime import datetime
from html import escape

# Color constants
BG_PAGE = "#F4F6FA"
BG_CARD = "#FFFFFF"
ACCENT = "#2F5BEA"
TEXT_PRIMARY = "#111827"
TEXT_SECONDARY = "#6B7280"
BORDER = "#E5E7EB"


def _base_layout(content: str, app_name: str = "MyEscrow") -> str:
    """Wrap content in the base email layout."""
    return f"""\
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{app_name}</title>
</head>
<body style="margin: 0; padding: 0; background-color: {BG_PAGE}; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
    <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="100%" style="background-color: {BG_PAGE};">
        <tr>
            <td align="center" style="padding: 40px 20px;">
                <table role="presentation" cellspacing="0" cellpadding="0" border="0" width="560" style="max-width: 560px; width: 100%;">
                    <tr>
                        <td align="center" style="padding-bottom: 24px;">
                            <span style="font-size: 22px; font-weight: 700; color: {TEXT_PRIMARY};">{app_name}</span>
                        </td>
                    </tr>
                    <tr>
                        <td style="background-color: {BG_CARD}; border: 1px solid {BORDER}; border-radius: 12px; padding: 32px;">
                            {content}
                        </td>
                    </tr>
                    <tr>
                        <td align="center" style="padding-top: 24px;">
                            <p style="color: {TEXT_SECONDARY}; font-size: 12px; line-height: 1.5; margin: 0;">
                                If you didn't request this, you can ignore the email.
                            </p>
                        </td>
                    </tr>
                </table>
            </td>
        </tr>
    </table>
</body>
</html>"""


def _format_expiry(expires_at: datetime) -> str:
    return expires_at.strftime("%b %d, %H:%M UTC")


def verification_code_email(
    name: str | None,
    code: str,
    expires_at: datetime,
    verify_url: str,
    ttl_minutes: int = 15,
) -> tuple[str, str, str]:
    """
    Verification code email sent at signup and on resend.

    Returns:
        Tuple of (subject, html_body, text_body).
    """
    greeting = f"Hi {escape(name)}," if name else "Hi there,"
    expiry = _format_expiry(expires_at)
    subject = "Verify your MyEscrow account"

    content = f"""\
<p style="color: {TEXT_PRIMARY}; font-size: 16px; line-height: 1.6; margin: 0 0 16px 0;">{greeting}</p>
<p style="color: {TEXT_PRIMARY}; font-size: 16px; line-height: 1.6; margin: 0 0 16px 0;">
    Your MyEscrow verification code is
    <strong style="font-size: 22px; letter-spacing: 4px; color: {ACCENT};">{code}</strong>.
</p>
<p style="color: {TEXT_SECONDARY}; font-size: 14px; line-height: 1.6; margin: 0 0 16px 0;">
    Enter this code on the verification page within the next {ttl_minutes} minutes ({expiry}).
</p>
<p style="color: {TEXT_SECONDARY}; font-size: 14px; line-height: 1.6; margin: 0;">
    You can also open <a href="{verify_url}" style="color: {ACCENT};">{verify_url}</a> and paste the code there.
</p>"""

    text = "\n".join([
        f"Your MyEscrow verification code is {code}.",
        f"Enter this code within {ttl_minutes} minutes ({expiry}).",
        f"Verification page: {verify_url}",
        "",
        "If you didn't request this code, you can ignore the email.",
    ])
    return subject, _base_layout(content), text
