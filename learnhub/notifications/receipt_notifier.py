"""
Payment receipt emails.
"""

from decimal import Decimal

from learnhub.core.config import settings
from learnhub.notifications.email_service import EmailMessage, EmailService, get_email_service

_NAVY = "#000E51"
_ORANGE = "#FF6F00"


class ReceiptNotifier:
    """Sends the "payment confirmed" receipt after a gateway purchase."""

    def __init__(self, email_service: EmailService | None = None):
        self.email_service = email_service or get_email_service()

    async def send_receipt(
        self,
        email: str,
        name: str,
        course_title: str,
        amount: Decimal,
        payment_id: str | None,
    ) -> bool:
        """
        Send a payment receipt.

        Args:
            email: Recipient address
            name: Recipient display name
            course_title: Title of the purchased course
            amount: Settled amount, in major currency units
            payment_id: Gateway payment identifier shown on the receipt

        Returns:
            True if the email backend accepted the message
        """
        message = _build_receipt_email(email, name, course_title, amount, payment_id)
        return await self.email_service.send_email(message)


def _build_receipt_email(
    email: str,
    name: str,
    course_title: str,
    amount: Decimal,
    payment_id: str | None,
) -> EmailMessage:
    dashboard_url = f"{settings.FRONTEND_URL}/dashboard"
    amount_paid = f"{amount:.2f}"
    payment_ref = payment_id or "-"

    html_body = f"""
    <html>
    <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
        <div style="background: {_NAVY}; padding: 24px; border-radius: 8px 8px 0 0; text-align: center;">
            <h2 style="color: white; margin: 0; font-size: 22px;">{settings.SMTP_FROM_NAME}</h2>
        </div>
        <div style="padding: 24px; border: 1px solid #e5e7eb; border-top: none;
                    border-radius: 0 0 8px 8px;">
            <h3 style="color: {_NAVY}; margin: 0 0 16px 0; text-align: center;">Payment Confirmed!</h3>
            <p style="color: #374151;">Hi {name},</p>
            <p style="color: #374151;">Your enrollment in <strong>{course_title}</strong>
            has been confirmed.</p>
            <table style="width: 100%; border-collapse: collapse; background: #f9fafb;">
                <tr>
                    <td style="padding: 4px 8px; color: #6b7280;">Course</td>
                    <td style="padding: 4px 8px; text-align: right;"><strong>{course_title}</strong></td>
                </tr>
                <tr>
                    <td style="padding: 4px 8px; color: #6b7280;">Amount Paid</td>
                    <td style="padding: 4px 8px; text-align: right;"><strong>${amount_paid}</strong></td>
                </tr>
                <tr>
                    <td style="padding: 4px 8px; color: #6b7280;">Payment ID</td>
                    <td style="padding: 4px 8px; text-align: right; font-family: monospace;">{payment_ref}</td>
                </tr>
            </table>
            <p style="text-align: center; margin: 24px 0;">
                <a href="{dashboard_url}"
                   style="background: {_ORANGE}; color: white; padding: 12px 32px;
                          border-radius: 8px; text-decoration: none; font-weight: 600;">
                    Go to Dashboard
                </a>
            </p>
            <p style="color: #9ca3af; font-size: 12px; text-align: center;">
                If you have any questions, contact us at {settings.CONTACT_EMAIL}
            </p>
        </div>
    </body>
    </html>
    """

    text_body = f"""
Payment Confirmed!

Hi {name},

Your enrollment in {course_title} has been confirmed.

Course: {course_title}
Amount Paid: ${amount_paid}
Payment ID: {payment_ref}

Go to your dashboard: {dashboard_url}

If you have any questions, contact us at {settings.CONTACT_EMAIL}
"""

    return EmailMessage(
        to=email,
        subject=f"Enrollment Confirmed: {course_title}",
        body_html=html_body,
        body_text=text_body,
    )
