"""Outbound customer/merchant emails.

There is no mail transport; messages are written to the structured log so
they can be picked up by whatever ships logs.
"""
from collections import deque
from datetime import datetime
from typing import Optional
from shared.core import get_logger

logger = get_logger(__name__)

class EmailNotifier:
    """Logs outgoing mail and keeps the most recent ``history`` messages."""

    def __init__(self, history: int = 100):
        self.sent: deque[dict] = deque(maxlen=history)

    def send(self, to: Optional[str], subject: str, html: str) -> bool:
        if not to:
            return False
        self.sent.append({"to": to, "subject": subject, "html": html})
        logger.info(f"Email queued: {subject}", extra={"extra_fields": {"to": to, "subject": subject}})
        return True

def shipment_details_email(customer_name: str, order_id: str, shipment_id: str,
                           barcode_image: Optional[str], cod: float,
                           delivery_date: Optional[str], notes: str = "") -> tuple[str, str]:
    """Subject and HTML body telling a customer their order has shipped."""
    when = ""
    if delivery_date:
        try:
            when = datetime.fromisoformat(delivery_date).date().isoformat()
        except ValueError:
            when = delivery_date
    subject = f"Shipment Details for Order #{order_id}"
    html = (
        f"<h1>Hello {customer_name},</h1>"
        f"<p>Your order #{order_id} has been shipped via FlashLine.</p>"
        f"<p><strong>Tracking Number:</strong> {shipment_id}</p>"
        f"<p><strong>Expected Delivery:</strong> {when}</p>"
        f"<p><strong>COD Amount:</strong> {cod} NIS</p>"
        f"<br/><img src=\"{barcode_image or ''}\" alt=\"Barcode\" />"
        f"<p>Notes: {notes}</p>"
    )
    return subject, html
