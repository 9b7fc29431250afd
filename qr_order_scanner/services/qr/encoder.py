import xml.etree.ElementTree as ET

import qrcode
from qrcode.image.svg import SvgPathImage

SVG_NS = "http://www.w3.org/2000/svg"


def render_qr_svg(data: str, size: int = 200, border: int = 4) -> str:
    """scannable QR code as a standalone SVG document sized to `size` px."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=border,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(image_factory=SvgPathImage)

    root = ET.fromstring(img.to_string(encoding="unicode"))
    root.set("width", str(size))
    root.set("height", str(size))
    return ET.tostring(root, encoding="unicode", default_namespace=SVG_NS)
