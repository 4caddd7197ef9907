import base64
import io

import qrcode
import structlog

from addna import config

logger = structlog.get_logger()


def verify_url_for(dna: str, base_url: str = None) -> str:
    base_url = (base_url or config.PUBLIC_VERIFY_URL).rstrip('/')
    return f"{base_url}/verify?dna={dna}"


def make_qr_data_url(payload: str, box_size: int = 4, border: int = 1) -> str:
    """Render `payload` as a QR code and return it as a PNG data URL."""
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(payload)
    qr.make(fit=True)
    image = qr.make_image()

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    encoded = base64.b64encode(buffer.getvalue()).decode('ascii')
    return f"data:image/png;base64,{encoded}"
