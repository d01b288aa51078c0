"""
Order Email Service

Confirmation and status-update emails for orders. Raises
EmailDeliveryError when the provider reports a failure; callers decide
whether that matters.
"""
import html
import logging
from typing import TYPE_CHECKING

from floresya.core.config import settings
from floresya.core.exceptions import EmailDeliveryError
from floresya.services.email_provider import EmailProvider, SendResult

if TYPE_CHECKING:
    from floresya.services.notifications import OrderPlaced, OrderStatusChanged

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "verified": {
        "title": "Payment Verified",
        "message": "We have verified your payment. Your order is being prepared.",
        "color": "#28a745",
    },
    "preparing": {
        "title": "Preparing Your Order",
        "message": "Our team is carefully preparing your order.",
        "color": "#ffc107",
    },
    "shipped": {
        "title": "Order Shipped",
        "message": "Your order has been shipped and is on its way to your address.",
        "color": "#17a2b8",
    },
    "delivered": {
        "title": "Order Delivered",
        "message": "Your order has been delivered. We hope you enjoy your flowers!",
        "color": "#28a745",
    },
    "cancelled": {
        "title": "Order Cancelled",
        "message": "Your order has been cancelled. If you have questions, contact us.",
        "color": "#dc3545",
    },
}

DEFAULT_STATUS_MESSAGE = {
    "title": "Order Update",
    "message": "Your order has been updated.",
    "color": "#6c757d",
}


def _e(value) -> str:
    return html.escape(str(value)) if value is not None else ""


class OrderEmailService:
    def __init__(self, provider: EmailProvider):
        self.provider = provider
        self.app_name = settings.APP_NAME
        self.support_email = settings.SUPPORT_EMAIL

    async def send_order_confirmation(self, event: "OrderPlaced") -> SendResult:
        subject = f"Order Confirmation {event.order_number} - {self.app_name}"
        result = await self.provider.send(
            to_email=event.recipient,
            subject=subject,
            html_content=self._get_confirmation_html(event),
        )
        return self._check(result, event.recipient, "confirmation")

    async def send_status_update(self, event: "OrderStatusChanged") -> SendResult:
        info = STATUS_MESSAGES.get(event.new_status, DEFAULT_STATUS_MESSAGE)
        subject = f"{info['title']} - Order {event.order_number}"
        result = await self.provider.send(
            to_email=event.recipient,
            subject=subject,
            html_content=self._get_status_html(event, info),
        )
        return self._check(result, event.recipient, "status update")

    def _check(self, result: SendResult, recipient: str, kind: str) -> SendResult:
        if not result.success:
            raise EmailDeliveryError(
                f"Order {kind} email failed: {result.error}",
                recipient=recipient,
            )
        logger.info(f"Order {kind} email sent to {recipient}")
        return result

    def _get_confirmation_html(self, event: "OrderPlaced") -> str:
        rows = "".join(
            f"""
                <tr>
                    <td style="padding: 8px; border-bottom: 1px solid #e5e7eb;">{_e(line.product_name)}</td>
                    <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: center;">{line.quantity}</td>
                    <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">${line.unit_price:.2f}</td>
                    <td style="padding: 8px; border-bottom: 1px solid #e5e7eb; text-align: right;">${line.total_price:.2f}</td>
                </tr>"""
            for line in event.lines
        )
        address = event.shipping_address or {}
        line_2 = f"<p>{_e(address.get('address_line_2'))}</p>" if address.get("address_line_2") else ""

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
            <meta name="viewport" content="width=device-width, initial-scale=1.0">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: #f8f9fa; padding: 20px; text-align: center;">
                <h1 style="color: #28a745; margin: 0;">{_e(self.app_name)}</h1>
            </div>
            <div style="padding: 20px;">
                <h2>Thank you for your order!</h2>
                <p><strong>Order number:</strong> {_e(event.order_number)}</p>
                <p><strong>Status:</strong> Awaiting payment verification</p>
                <table style="width: 100%; border-collapse: collapse;">
                    <thead>
                        <tr>
                            <th style="text-align: left;">Product</th>
                            <th style="text-align: center;">Qty</th>
                            <th style="text-align: right;">Unit price</th>
                            <th style="text-align: right;">Total</th>
                        </tr>
                    </thead>
                    <tbody>{rows}
                        <tr style="background-color: #f8f9fa;">
                            <td colspan="3" style="padding: 12px; font-weight: bold;">Order total:</td>
                            <td style="padding: 12px; text-align: right; font-weight: bold;">${event.total_amount:.2f} {_e(event.currency)}</td>
                        </tr>
                    </tbody>
                </table>
                <h3>Delivery address</h3>
                <p><strong>{_e(address.get('first_name'))} {_e(address.get('last_name'))}</strong></p>
                <p>{_e(address.get('address_line_1'))}</p>
                {line_2}
                <p>{_e(address.get('city'))}, {_e(address.get('state'))}</p>
                <h3>Next steps</h3>
                <ol>
                    <li>Pay using one of our available payment methods</li>
                    <li>Upload your payment proof on our website</li>
                    <li>We verify your payment and start preparing your order</li>
                </ol>
                <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
                <p style="color: #9ca3af; font-size: 12px; text-align: center;">
                    Need help? {_e(self.support_email)}<br>
                    This is an automated message, please do not reply.
                </p>
            </div>
        </body>
        </html>
        """

    def _get_status_html(self, event: "OrderStatusChanged", info: dict) -> str:
        notes = f"<p><strong>Notes:</strong> {_e(event.notes)}</p>" if event.notes else ""
        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <meta charset="utf-8">
        </head>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
            <div style="background: #f8f9fa; padding: 20px; text-align: center;">
                <h1 style="color: #28a745; margin: 0;">{_e(self.app_name)}</h1>
            </div>
            <div style="padding: 20px;">
                <h2>Your order has been updated</h2>
                <div style="background-color: {info['color']}; color: white; padding: 20px; text-align: center; border-radius: 5px;">
                    <h3 style="margin: 0 0 10px 0;">{_e(info['title'])}</h3>
                    <p style="margin: 0;">Order: {_e(event.order_number)}</p>
                </div>
                <p>{_e(info['message'])}</p>
                {notes}
                <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 30px 0;">
                <p style="color: #9ca3af; font-size: 12px; text-align: center;">
                    Need help? {_e(self.support_email)}<br>
                    This is an automated message, please do not reply.
                </p>
            </div>
        </body>
        </html>
        """
