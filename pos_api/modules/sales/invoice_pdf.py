"""
Factura térmica en PDF (ancho 300pt, alto según cantidad de líneas).
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from io import BytesIO
from typing import List, Optional
import os

from reportlab.pdfgen import canvas
from reportlab.lib.utils import simpleSplit

from pos_api.core.config import settings
from pos_api.modules.sales.utils import amount_to_words

PAGE_WIDTH = 300
MARGIN = 10

HEADER_HEIGHT = 160
ROW_HEIGHT = 14
TOTALS_HEIGHT = 90
QR_HEIGHT = 120
FOOTER_HEIGHT = 40

DEFAULT_CUSTOMER = "CONSUMIDOR FINAL"


@dataclass
class InvoiceLine:
    quantity: int
    description: str
    line_total: Decimal


@dataclass
class InvoiceDocument:
    invoice_number: int
    date: datetime
    seller_name: str
    total: Decimal
    customer_name: Optional[str] = None
    customer_rtn: Optional[str] = None
    lines: List[InvoiceLine] = field(default_factory=list)

    @property
    def file_name(self) -> str:
        return f"{self.invoice_number}.pdf"


def invoice_from_sale(sale) -> InvoiceDocument:
    """Armar el documento a partir de una venta ya persistida con sus detalles"""
    return InvoiceDocument(
        invoice_number=sale.invoice_number,
        date=sale.date,
        seller_name=sale.seller_name or "",
        total=Decimal(sale.total),
        customer_name=sale.customer_name,
        customer_rtn=sale.customer_rtn,
        lines=[
            InvoiceLine(quantity=d.quantity, description=d.description, line_total=Decimal(d.line_total))
            for d in sale.details
        ]
    )


def page_height(line_count: int) -> int:
    return HEADER_HEIGHT + line_count * ROW_HEIGHT + TOTALS_HEIGHT + QR_HEIGHT + FOOTER_HEIGHT


def _rule(pdf, y):
    pdf.line(MARGIN, y, PAGE_WIDTH - MARGIN, y)


def render_invoice(doc: InvoiceDocument, logo_path: Optional[str] = None,
                   qr_path: Optional[str] = None) -> bytes:
    """Dibujar la factura y devolver los bytes del PDF"""
    logo_path = settings.LOGO_PATH if logo_path is None else logo_path
    qr_path = settings.QR_PATH if qr_path is None else qr_path

    height = page_height(len(doc.lines))
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, height))
    pdf.setTitle(doc.file_name)

    y = height - 10

    # ============ ENCABEZADO ============
    if logo_path and os.path.exists(logo_path):
        logo_width = 70
        pdf.drawImage(logo_path, (PAGE_WIDTH - logo_width) / 2, y - 40, logo_width, 40,
                      preserveAspectRatio=True, mask='auto')
        y -= 45

    pdf.setFont("Helvetica-Bold", 10)
    pdf.drawCentredString(PAGE_WIDTH / 2, y, settings.COMPANY_NAME)
    y -= 11

    pdf.setFont("Helvetica", 7)
    for line in settings.COMPANY_HEADER_LINES:
        pdf.drawCentredString(PAGE_WIDTH / 2, y, line)
        y -= 9

    y -= 2
    _rule(pdf, y)
    y -= 11

    # ============ DATOS DE LA VENTA ============
    pdf.setFont("Helvetica", 8)
    for text in (
        f"CLIENTE: {doc.customer_name or DEFAULT_CUSTOMER}",
        f"RTN: {doc.customer_rtn or ''}",
        f"FECHA: {doc.date.strftime('%d/%m/%Y')}",
        f"HORA: {doc.date.strftime('%H:%M:%S')}",
        f"FACTURA: {doc.invoice_number}",
        f"VENDEDOR: {doc.seller_name}",
    ):
        pdf.drawString(MARGIN, y, text)
        y -= 10

    _rule(pdf, y + 4)
    y -= 6

    # ============ DETALLE ============
    pdf.setFont("Helvetica-Bold", 8)
    pdf.drawString(MARGIN, y, "CANT")
    pdf.drawString(45, y, "DESCRIPCIÓN")
    pdf.drawRightString(PAGE_WIDTH - MARGIN, y, "TOTAL")
    y -= 4
    _rule(pdf, y)
    y -= 10

    pdf.setFont("Helvetica", 8)
    for line in doc.lines:
        pdf.drawString(MARGIN, y, str(line.quantity))
        # Descripciones largas se recortan a una línea para respetar el alto calculado
        description = simpleSplit(line.description, "Helvetica", 8, 170)
        pdf.drawString(45, y, description[0] if description else "")
        pdf.drawRightString(PAGE_WIDTH - MARGIN, y, f"{settings.CURRENCY_SYMBOL} {line.line_total:.2f}")
        y -= ROW_HEIGHT

    _rule(pdf, y + 8)
    y -= 8

    # ============ TOTALES ============
    pdf.setFont("Helvetica-Bold", 9)
    pdf.drawString(MARGIN, y, f"TOTAL A PAGAR: {settings.CURRENCY_SYMBOL} {doc.total:.2f}")
    y -= 14

    pdf.setFont("Helvetica", 8)
    for text in simpleSplit(f"SON: {amount_to_words(doc.total)}", "Helvetica", 8, PAGE_WIDTH - 2 * MARGIN):
        pdf.drawString(MARGIN, y, text)
        y -= 10

    # ============ QR Y PIE ============
    if qr_path and os.path.exists(qr_path):
        qr_size = 80
        pdf.drawImage(qr_path, (PAGE_WIDTH - qr_size) / 2, y - qr_size - 10, qr_size, qr_size,
                      preserveAspectRatio=True, mask='auto')
        y -= qr_size + 20
    else:
        y -= 20

    pdf.setFont("Helvetica", 7)
    pdf.drawCentredString(PAGE_WIDTH / 2, y, "La factura es beneficio de todos. ¡EXÍJALA!")
    y -= 12
    pdf.setFont("Helvetica", 8)
    pdf.drawCentredString(PAGE_WIDTH / 2, y, "¡GRACIAS POR SU COMPRA!")

    pdf.showPage()
    pdf.save()
    return buffer.getvalue()
