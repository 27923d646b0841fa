"""
Reporte general de ventas en PDF (tabla por día + resumen de totales).
"""
from datetime import date
from io import BytesIO
from typing import Optional
import os

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer, Image

from pos_api.core.config import settings
from pos_api.modules.reports.service import GeneralSummary

HEADER_BG = colors.HexColor('#E5E7EB')
STRIPE_BG = colors.HexColor('#F3F4F6')


def _money(value) -> str:
    return f"{settings.CURRENCY_SYMBOL} {value:,.2f}"


def render_general_report(summary: GeneralSummary, generated_on: date,
                          logo_path: Optional[str] = None) -> bytes:
    logo_path = settings.LOGO_PATH if logo_path is None else logo_path

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=40,
        leftMargin=40,
        topMargin=40,
        bottomMargin=40,
        title="reporte_general.pdf"
    )

    elements = []
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=18,
        fontName='Helvetica-Bold',
        spaceAfter=6
    )
    normal_style = ParagraphStyle('ReportNormal', parent=styles['Normal'], fontSize=11)

    # ===== ENCABEZADO =====
    header_text = [
        Paragraph("REPORTE GENERAL DE VENTAS", title_style),
        Paragraph(f"Últimos {summary.days} días", normal_style),
        Paragraph(f"Generado: {generated_on.strftime('%d/%m/%Y')}", normal_style),
    ]
    if logo_path and os.path.exists(logo_path):
        header = Table([[Image(logo_path, width=80, height=80, kind='proportional'), header_text]],
                       colWidths=[1.4 * inch, 5.8 * inch])
        header.setStyle(TableStyle([('VALIGN', (0, 0), (-1, -1), 'MIDDLE')]))
        elements.append(header)
    else:
        elements.extend(header_text)
    elements.append(Spacer(1, 24))

    # ===== TABLA POR DÍA =====
    data = [["Fecha", "Día", "Noche", "Total", "Meta", "Estado"]]
    for row in summary.rows:
        data.append([
            row.date.strftime('%d/%m/%Y'),
            _money(row.day_shift),
            _money(row.night_shift),
            _money(row.total),
            _money(row.target),
            "Cumplido" if row.met else "No cumplido"
        ])

    table = Table(data, colWidths=[1.1 * inch, 1.2 * inch, 1.2 * inch, 1.2 * inch, 1.1 * inch, 1.2 * inch],
                  repeatRows=1)
    style = [
        ('BACKGROUND', (0, 0), (-1, 0), HEADER_BG),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTNAME', (0, 1), (-1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('ALIGN', (1, 1), (4, -1), 'RIGHT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
    ]
    for index in range(2, len(data), 2):
        style.append(('BACKGROUND', (0, index), (-1, index), STRIPE_BG))
    table.setStyle(TableStyle(style))
    elements.append(table)
    elements.append(Spacer(1, 30))

    # ===== RESUMEN DE TOTALES =====
    totals = Table([
        ["RESUMEN DE TOTALES", ""],
        ["Total Turno Día:", _money(summary.total_day)],
        ["Total Turno Noche:", _money(summary.total_night)],
        ["TOTAL GENERAL:", _money(summary.total)],
    ], colWidths=[2 * inch, 1.6 * inch])
    totals.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, -1), STRIPE_BG),
        ('SPAN', (0, 0), (1, 0)),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, 0), 11),
        ('LINEBELOW', (0, 0), (-1, 0), 0.5, colors.black),
        ('LINEABOVE', (0, -1), (-1, -1), 0.5, colors.black),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('ALIGN', (1, 1), (1, -1), 'RIGHT'),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ('TOPPADDING', (0, 0), (-1, -1), 5),
    ]))
    elements.append(totals)

    doc.build(elements)
    return buffer.getvalue()
