"""Email notifications for orders."""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from enum import Enum
from html import escape
from typing import Optional

from fulfillment.config import get_settings
from fulfillment.models.order import OrderInDB, OrderStatus

logger = logging.getLogger(__name__)
settings = get_settings()

STORE_NAME = "Medico Hub"
STORE_TAGLINE = "Premium Academic Tools for Medical Students"

_STATUS_COPY = {
    OrderStatus.SHIPPED: (
        "Your order is on its way!",
        "Out for Delivery",
        "Great news! Your order has been shipped and is on its way to you. Keep an eye out for it!",
    ),
    OrderStatus.DELIVERED: (
        "Order Delivered!",
        "Successfully Delivered",
        "Your order has been marked as delivered. We hope you enjoy your new kit and tools!",
    ),
}


class NotificationKind(str, Enum):
    """Messages the order pipeline can emit."""

    ORDER_CONFIRMATION = "order_confirmation"
    ORDER_ALERT = "order_alert"
    STATUS_UPDATE = "status_update"


def _naira(amount: float) -> str:
    return f"NGN {amount:,.2f}"


class EmailService:
    """Email service for order confirmations, operator alerts and status updates."""

    @staticmethod
    def _create_confirmation_html(order: OrderInDB) -> str:
        """Create HTML email content for an order confirmation."""
        rows = "".join(
            f"""
                <tr>
                    <td style="padding: 10px; border-bottom: 1px solid #eee;">{escape(item.name)} x {item.quantity}</td>
                    <td style="padding: 10px; border-bottom: 1px solid #eee; text-align: right;">{_naira(item.unitPrice)}</td>
                </tr>"""
            for item in order.items
        )
        discount_row = (
            f"""<p style="margin: 4px 0;">Discount: <strong>-{_naira(order.financials.discount)}</strong></p>"""
            if order.financials.discount
            else ""
        )
        return f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e2e8f0; border-radius: 12px;">
            <h1 style="color: #155e75; margin-bottom: 8px;">Order Confirmed!</h1>
            <p style="color: #64748b;">Hi {escape(order.customer.name)}, thank you for shopping with {STORE_NAME}. We've received your order and are processing it.</p>

            <div style="background: #f8fafc; padding: 15px; border-radius: 8px; margin: 20px 0;">
                <h3 style="margin: 0; color: #1e293b;">Order Details</h3>
                <p style="margin: 5px 0; font-size: 14px; color: #64748b;">ID: <strong>{order.orderId}</strong></p>
                <p style="margin: 5px 0; font-size: 14px; color: #64748b;">Date: {order.createdAt:%d %b %Y}</p>
            </div>

            <table style="width: 100%; border-collapse: collapse;">
                <thead>
                    <tr style="background: #f1f5f9;">
                        <th style="padding: 10px; text-align: left;">Item</th>
                        <th style="padding: 10px; text-align: right;">Price</th>
                    </tr>
                </thead>
                <tbody>{rows}</tbody>
            </table>

            <div style="margin-top: 20px; border-top: 2px solid #f1f5f9; padding-top: 20px;">
                <p style="margin: 4px 0;">Subtotal: <strong>{_naira(order.financials.subtotal)}</strong></p>
                <p style="margin: 4px 0;">Shipping: <strong>{_naira(order.financials.shippingFee)}</strong></p>
                {discount_row}
                <p style="margin: 12px 0 0; font-size: 18px; color: #155e75;">Total Paid: <strong>{_naira(order.financials.total)}</strong></p>
            </div>

            <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; text-align: center; color: #94a3b8; font-size: 12px;">
                <p>{STORE_NAME} - {STORE_TAGLINE}</p>
            </div>
        </div>
        """

    @staticmethod
    def _create_alert_html(order: OrderInDB) -> str:
        """Create HTML email content for the operator's new-order alert."""
        return f"""
        <div style="font-family: sans-serif; padding: 20px;">
            <h2 style="color: #dc2626;">New Order Alert</h2>
            <p>Order: <strong>{order.orderId}</strong></p>
            <p>Customer: <strong>{escape(order.customer.name)}</strong> ({escape(str(order.customer.email))})</p>
            <p>Phone: {escape(order.customer.phone)}</p>
            <p>Deliver to: {escape(order.customer.address)}, {escape(order.customer.region)}</p>
            <p>Total: <strong>{_naira(order.financials.total)}</strong></p>
            <br/>
            <a href="{settings.admin_url}/store"
               style="background: #155e75; color: white; padding: 12px 24px; text-decoration: none; border-radius: 8px; font-weight: bold;">
               View in Admin Panel
            </a>
        </div>
        """

    @staticmethod
    def _create_status_html(order: OrderInDB, headline: str, message: str) -> str:
        """Create HTML email content for a customer status update."""
        return f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; border: 1px solid #e2e8f0; border-radius: 12px;">
            <h1 style="color: #155e75; margin-bottom: 8px;">{headline}!</h1>
            <p style="color: #64748b;">Hi {escape(order.customer.name)}, {message}</p>

            <div style="background: #f8fafc; padding: 15px; border-radius: 8px; margin: 20px 0;">
                <p style="margin: 5px 0; font-size: 14px; color: #64748b;">Order ID: <strong>{order.orderId}</strong></p>
                <p style="margin: 5px 0; font-size: 14px; color: #64748b;">Status: <span style="text-transform: uppercase; font-weight: bold; color: #155e75;">{order.status.value}</span></p>
            </div>

            <div style="margin-top: 30px; padding-top: 20px; border-top: 1px solid #eee; text-align: center; color: #94a3b8; font-size: 12px;">
                <p>{STORE_NAME} - {STORE_TAGLINE}</p>
                <p>If you have any questions, reply to this email.</p>
            </div>
        </div>
        """

    @staticmethod
    def _deliver(recipient: str, subject: str, html_content: str, text_content: str) -> None:
        """Send one message over SMTP. Blocking; run it in a worker thread."""
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = settings.smtp_from_email
        msg["To"] = recipient
        msg.attach(MIMEText(text_content, "plain"))
        msg.attach(MIMEText(html_content, "html"))

        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=30) as server:
            server.starttls()
            if settings.smtp_username and settings.smtp_password:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)

    async def _send(self, recipient: str, subject: str, html_content: str, text_content: str) -> bool:
        """Send an email, logging and swallowing SMTP failures."""
        if not settings.smtp_configured:
            logger.warning("SMTP is not configured. Skipping email '%s'", subject)
            return False
        if not recipient:
            logger.warning("No recipient for email '%s'", subject)
            return False

        try:
            await asyncio.to_thread(self._deliver, recipient, subject, html_content, text_content)
            logger.info("Email '%s' sent to %s", subject, recipient)
            return True

        except smtplib.SMTPAuthenticationError as e:
            logger.error("SMTP authentication failed. Check credentials: %s", e)
            return False
        except (smtplib.SMTPException, OSError) as e:
            logger.error("SMTP error sending '%s' to %s: %s", subject, recipient, e)
            return False

    async def send_order_confirmation(self, order: OrderInDB) -> bool:
        """Send the customer their order confirmation."""
        text_content = (
            f"Hi {order.customer.name},\n\n"
            f"Thank you for shopping with {STORE_NAME}. Your order {order.orderId} has been received.\n"
            f"Total paid: {_naira(order.financials.total)}\n"
        )
        return await self._send(
            str(order.customer.email),
            f"Order Confirmed - {order.orderId}",
            self._create_confirmation_html(order),
            text_content,
        )

    async def send_admin_order_alert(self, order: OrderInDB) -> bool:
        """Alert the store operator about a new order."""
        text_content = (
            f"New order {order.orderId} from {order.customer.name} ({order.customer.email}).\n"
            f"Total: {_naira(order.financials.total)}\n"
        )
        return await self._send(
            settings.admin_email,
            f"NEW ORDER RECEIVED - {order.orderId}",
            self._create_alert_html(order),
            text_content,
        )

    async def send_order_status_update(self, order: OrderInDB) -> bool:
        """Tell the customer their order shipped or was delivered."""
        copy = _STATUS_COPY.get(order.status)
        if copy is None:
            # No emails for generic statuses like 'pending'
            return False

        subject, headline, message = copy
        return await self._send(
            str(order.customer.email),
            f"{subject} - {order.orderId}",
            self._create_status_html(order, headline, message),
            f"Hi {order.customer.name}, {message}\nOrder ID: {order.orderId}\n",
        )


class NotificationDispatcher:
    """Fire-and-forget delivery of order notifications.

    ``send`` schedules the email on the running event loop and returns at
    once. Delivery failures are logged and never reach the caller.
    """

    def __init__(self, emails: Optional[EmailService] = None) -> None:
        self.emails = emails or email_service
        self._tasks: set[asyncio.Task] = set()

    def send(self, kind: NotificationKind, order: OrderInDB) -> None:
        """Schedule a notification for an order."""
        try:
            loop = asyncio.get_running_loop()
            task = loop.create_task(self._deliver(kind, order))
        except RuntimeError:
            logger.error("No running event loop; dropped %s for order %s", kind.value, order.orderId)
            return
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _deliver(self, kind: NotificationKind, order: OrderInDB) -> None:
        try:
            if kind == NotificationKind.ORDER_CONFIRMATION:
                await self.emails.send_order_confirmation(order)
            elif kind == NotificationKind.ORDER_ALERT:
                await self.emails.send_admin_order_alert(order)
            elif kind == NotificationKind.STATUS_UPDATE:
                await self.emails.send_order_status_update(order)
        except Exception as e:
            logger.error("Failed to send %s for order %s: %s", kind.value, order.orderId, e, exc_info=True)

    async def drain(self) -> None:
        """Wait for notifications still in flight (used at shutdown)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# Global email service and dispatcher instances
email_service = EmailService()
notification_dispatcher = NotificationDispatcher()
