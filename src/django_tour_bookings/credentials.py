"""Check-in credential generation.

The confirmation email carries a QR code encoding the check-in URL, which
contains the booking's tracking token. Staff scan it on tour day and
``checkin.lookup_for_check_in`` resolves the token back to the booking.
"""

import base64
from abc import ABC, abstractmethod
from io import BytesIO

import qrcode
from qrcode import constants


class BaseCredentialGenerator(ABC):
    """Abstract credential generator."""

    @abstractmethod
    def encode(self, payload: str) -> str:
        """Render ``payload`` into an image and return it as a data URL."""
        raise NotImplementedError


class QRCodeGenerator(BaseCredentialGenerator):
    """Render payloads as PNG QR codes."""

    box_size = 8
    border = 2
    fill_color = "#1f2937"
    back_color = "#ffffff"

    def encode(self, payload: str) -> str:
        if not payload:
            raise ValueError("Cannot encode an empty check-in payload")

        qr = qrcode.QRCode(
            version=None,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(payload)
        qr.make(fit=True)

        image = qr.make_image(fill_color=self.fill_color, back_color=self.back_color)
        buffer = BytesIO()
        image.save(buffer, format="PNG")
        encoded = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/png;base64,{encoded}"
