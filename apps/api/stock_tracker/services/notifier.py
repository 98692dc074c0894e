from __future__ import annotations

import html
import logging

from stock_tracker.core.errors import DeliveryError
from stock_tracker.schemas.alert import AlertRecord
from stock_tracker.services.mail_sender import MailMessage, MailSender

logger = logging.getLogger(__name__)


def format_threshold(value: float) -> str:
    """Shortest exact text for a threshold: 100.0 -> "100", 1234.5678 -> "1234.5678"."""
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


def format_subject(alert: AlertRecord) -> str:
    return f"Alert: {alert.index_symbol} {alert.condition} {format_threshold(alert.threshold)}"


def format_body(alert: AlertRecord, current_price: float) -> str:
    symbol = html.escape(alert.index_symbol)
    condition = html.escape(alert.condition)
    return f"""
      <h2>Price Alert Triggered!</h2>
      <p>{symbol}: ${current_price:.2f}</p>
      <p>Your threshold: ${format_threshold(alert.threshold)} ({condition})</p>
    """


class EmailNotifier:
    def __init__(self, sender: MailSender) -> None:
        self.sender = sender

    async def notify(self, alert: AlertRecord, current_price: float) -> None:
        message = MailMessage(
            to=alert.email,
            subject=format_subject(alert),
            html=format_body(alert, current_price),
        )
        try:
            await self.sender.send(message)
        except DeliveryError:
            raise
        except Exception as exc:
            raise DeliveryError(f"Failed to send alert email to {alert.email}: {exc}") from exc
        logger.info("Alert %s notified %s at %.2f", alert.id, alert.email, current_price)
