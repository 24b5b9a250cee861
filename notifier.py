from __future__ import annotations
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr

from errors import NotificationError
from schemas import CartLine, Order
from settings import Settings

logger = logging.getLogger(__name__)

SENDER_NAME = "Anvi's Tea Orders"


def format_item(line, currency: str) -> str:
    if not isinstance(line, CartLine):
        return str(line)
    return f"{line.name} x {line.qty} ({currency}{line.price} each)"


def format_items(order: Order, currency: str) -> str:
    return "\n".join(format_item(line, currency) for line in order.cart)


class EmailNotifier:
    """Emails the shop operator a summary of each new order."""

    def __init__(self, settings: Settings):
        self.settings = settings

    @property
    def configured(self) -> bool:
        return bool(self.settings.ORDER_EMAIL_USER and self.settings.ORDER_EMAIL_PASS)

    def format_message(self, order: Order) -> EmailMessage:
        s = self.settings
        msg = EmailMessage()
        msg["From"] = formataddr((SENDER_NAME, s.ORDER_EMAIL_USER or ""))
        msg["To"] = s.notify_to or ""
        msg["Subject"] = f"New order #{order.id} from {order.name}"
        msg.set_content(
            f"Name: {order.name}\n"
            f"Phone: {order.phone}\n"
            f"Address: {order.address}\n\n"
            f"Items:\n{format_items(order, s.ORDER_CURRENCY_SYMBOL)}\n\n"
            f"Placed at: {order.createdAt.isoformat()}"
        )
        return msg

    def send(self, order: Order) -> None:
        if not self.configured:
            raise NotificationError("ORDER_EMAIL_USER / ORDER_EMAIL_PASS not set")
        s = self.settings
        msg = self.format_message(order)
        try:
            with smtplib.SMTP_SSL(s.SMTP_HOST, s.SMTP_PORT) as smtp:
                smtp.login(s.ORDER_EMAIL_USER, s.ORDER_EMAIL_PASS)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Error sending order email: {e}") from e

    def notify(self, order: Order) -> None:
        # Runs detached from the request; failures are only logged
        try:
            self.send(order)
        except Exception:
            logger.exception("Error sending order email for order %s", order.id)
        else:
            logger.info("Order email sent for order %s", order.id)
