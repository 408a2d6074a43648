"""
Email Service using Resend

Sends the marketplace's transactional emails: selection notices to tutors
and payment receipts after settlement. Email is never on the critical path;
every sender returns False instead of raising.
"""

import asyncio
import logging
from html import escape

import resend

from edubridge.core.config import settings

logger = logging.getLogger(__name__)

_STYLE = """
        <style>
            body { font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }
            .container { max-width: 600px; margin: 0 auto; padding: 40px 20px; }
            .header { color: #1a365d; margin-bottom: 24px; }
            .button { display: inline-block; background-color: #1a365d; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; margin: 24px 0; }
            .summary-box { background-color: #f9fafb; border: 1px solid #e5e7eb; padding: 16px; border-radius: 8px; margin: 16px 0; }
            .summary-box ul { margin: 8px 0 0 0; padding-left: 20px; }
            .footer { margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }
        </style>
"""


def _wrap(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        {_STYLE}
    </head>
    <body>
        <div class="container">
            <h1 class="header">{title}</h1>
            {body}
            <div class="footer">
                <p>EduBridge - Tuition Marketplace</p>
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
        True if email was sent successfully
    """
    api_key = settings.resend_api_key.get_secret_value()
    if not api_key:
        logger.warning("RESEND_API_KEY not set - logging email instead of sending")
        logger.info(f"EMAIL TO: {to_email} | SUBJECT: {subject}")
        return True

    resend.api_key = api_key

    try:
        params: resend.Emails.SendParams = {
            "from": settings.email_from,
            "to": [to_email],
            "subject": subject,
            "html": html_content,
        }

        # Run sync Resend call in thread pool to avoid blocking event loop
        email = await asyncio.to_thread(resend.Emails.send, params)
        logger.info(f"Email sent successfully to {to_email}, id: {email['id']}")
        return True
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        return False


async def send_tutor_selected(
    to_email: str,
    tutor_name: str,
    tuition_title: str,
) -> bool:
    """Tell a tutor their application was chosen and is awaiting payment."""
    safe_tutor_name = escape(tutor_name)
    safe_title = escape(tuition_title)

    dashboard_url = f"{settings.frontend_url}/dashboard/my-applications"
    body = f"""
            <p>Hello {safe_tutor_name},</p>

            <p>Good news! Your application for <strong>{safe_title}</strong> has been selected by the student.</p>

            <p>The tuition will be confirmed as soon as the student completes payment.</p>

            <a href="{dashboard_url}" class="button">View Applications</a>
    """
    return await send_email(
        to_email=to_email,
        subject=f"You were selected for {safe_title}",
        html_content=_wrap("Application Selected", body),
    )


async def send_payment_receipt(
    to_email: str,
    student_name: str,
    tuition_title: str,
    tutor_name: str,
    amount: str,
    currency: str,
) -> bool:
    """Send a payment receipt to the student who paid."""
    safe_student_name = escape(student_name)
    safe_title = escape(tuition_title)
    safe_tutor_name = escape(tutor_name)

    body = f"""
            <p>Hello {safe_student_name},</p>

            <p>Thank you for your payment. Your tutor is confirmed.</p>

            <div class="summary-box">
                <p><strong>Payment Summary:</strong></p>
                <ul>
                    <li><strong>Tuition:</strong> {safe_title}</li>
                    <li><strong>Tutor:</strong> {safe_tutor_name}</li>
                    <li><strong>Amount paid:</strong> {escape(amount)} {escape(currency.upper())}</li>
                </ul>
            </div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Payment receipt for {safe_title}",
        html_content=_wrap("Payment Received", body),
    )


async def send_tutor_payment_notice(
    to_email: str,
    tutor_name: str,
    tuition_title: str,
    tutor_amount: str,
    currency: str,
) -> bool:
    """Tell the tutor the tuition has been paid and what they will receive."""
    safe_tutor_name = escape(tutor_name)
    safe_title = escape(tuition_title)

    body = f"""
            <p>Hello {safe_tutor_name},</p>

            <p>The student has completed payment for <strong>{safe_title}</strong>. You can now get in touch and start the tuition.</p>

            <div class="summary-box">
                <p><strong>Your earnings:</strong> {escape(tutor_amount)} {escape(currency.upper())}</p>
            </div>
    """
    return await send_email(
        to_email=to_email,
        subject=f"Tuition confirmed: {safe_title}",
        html_content=_wrap("Tuition Confirmed", body),
    )
