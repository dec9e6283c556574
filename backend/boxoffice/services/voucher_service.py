"""
Proof-of-purchase voucher: a QR code the venue scans at the door.
"""

import base64
import json
import time
from io import BytesIO

import qrcode

from boxoffice.core.logging import get_logger

logger = get_logger(__name__)


def voucher_payload(booking_id: str, transaction_id: str) -> str:
    return json.dumps({
        "bookingId": booking_id,
        "transactionId": transaction_id,
        "timestamp": int(time.time() * 1000),
    })


def generate_voucher(booking_id: str, transaction_id: str) -> str:
    """Render the voucher as a PNG data URL."""
    qr = qrcode.QRCode(
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=2,
    )
    qr.add_data(voucher_payload(booking_id, transaction_id))
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = BytesIO()
    img.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    logger.debug("voucher_generated", booking_id=booking_id, bytes=len(encoded))
    return f"data:image/png;base64,{encoded}"
