# Two-Factor - QR Code Rendering
#
# Turns an otpauth:// URI into a data URI the front end can drop straight
# into an <img> tag. SVG output keeps the dependency on pure-Python qrcode
# (no imaging library needed). Rendering happens in-process; the URI holds
# the shared secret and is never sent to a third-party QR service.

import base64
import io

import qrcode
import qrcode.image.svg


class QrRenderer:
    """Renders provisioning URIs as SVG QR codes."""

    MIME_TYPE = "image/svg+xml"

    def __init__(self, box_size: int = 10, border: int = 4):
        self.box_size = box_size
        self.border = border

    def render(self, uri: str) -> str:
        """Return ``data:image/svg+xml;base64,...`` for ``uri``."""
        qr = qrcode.QRCode(
            box_size=self.box_size,
            border=self.border,
            image_factory=qrcode.image.svg.SvgPathImage,
        )
        qr.add_data(uri)
        qr.make(fit=True)

        buffer = io.BytesIO()
        qr.make_image().save(buffer)
        encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
        return f"data:{self.MIME_TYPE};base64,{encoded}"
