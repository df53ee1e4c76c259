"""UPI deep links and their QR codes."""

from __future__ import annotations

from urllib.parse import quote

import qrcode
import qrcode.image.svg


# Characters encodeURIComponent leaves alone; UPI apps expect that encoding
_URI_COMPONENT_SAFE = "-_.!~*'()"


def build_upi_url(upi_id: str, payee_name: str, amount: float, currency: str = "INR") -> str:
    """
    Build a ``upi://pay`` link for a fixed amount.

    >>> build_upi_url("shop@ybl", "Meena Store", 12)
    'upi://pay?pa=shop%40ybl&pn=Meena%20Store&am=12.00&cu=INR'
    """
    return (
        f"upi://pay?pa={quote(upi_id, safe=_URI_COMPONENT_SAFE)}"
        f"&pn={quote(payee_name, safe=_URI_COMPONENT_SAFE)}"
        f"&am={amount:.2f}"
        f"&cu={quote(currency, safe=_URI_COMPONENT_SAFE)}"
    )


def render_qr_svg(data: str) -> str:
    """Render ``data`` as a standalone SVG QR code."""
    image = qrcode.make(data, image_factory=qrcode.image.svg.SvgPathImage)
    return image.to_string(encoding="unicode")
