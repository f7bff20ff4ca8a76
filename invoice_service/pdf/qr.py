from reportlab.graphics import renderPDF
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing


def render_qr_pdf(value: str, size: float, level: str = "H", border: int = 2) -> bytes:
    """Render ``value`` as a square QR code on a one-page PDF of ``size`` points."""
    widget = QrCodeWidget(value, barLevel=level, barBorder=border)
    x0, y0, x1, y1 = widget.getBounds()
    width, height = x1 - x0, y1 - y0
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return renderPDF.drawToString(drawing)
