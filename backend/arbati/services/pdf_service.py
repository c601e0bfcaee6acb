"""
PDF invoice generation.

Labels are English; customer and item names in Arabic script are drawn
as raster images since reportlab's built-in fonts cannot shape them.
"""
from io import BytesIO
from datetime import datetime
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import inch
from reportlab.lib import colors
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from arbati.core.i18n import format_money
from arbati.models.invoice import Invoice
from arbati.services.export_service import NON_LATIN, rasterize_text
from arbati.services.invoice_service import item_name

COMPANY_NAME = "Arbati"


def _money(amount, currency: str) -> str:
    if currency == "USD":
        return f"${float(amount or 0):,.2f}"
    return format_money(amount, currency).replace("ع.د ", "IQD ")


def _text(value: str, style: ParagraphStyle):
    value = value or ""
    if NON_LATIN.search(value):
        return rasterize_text(value, style.fontSize, "#374151")
    return Paragraph(value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;"), style)


def generate_invoice_pdf(invoice: Invoice) -> BytesIO:
    """
    Generate PDF for an invoice

    Args:
        invoice: Invoice with items, customer and sale loaded

    Returns:
        BytesIO buffer containing PDF data, positioned at the start
    """
    currency = invoice.currency.value
    customer = invoice.customer

    buffer = BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, topMargin=0.5*inch, bottomMargin=0.5*inch)
    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'InvoiceTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#424242'),
        alignment=TA_CENTER,
        spaceAfter=12
    )
    heading_style = ParagraphStyle(
        'InvoiceHeading',
        parent=styles['Heading2'],
        fontSize=14,
        textColor=colors.HexColor('#1f2937'),
        spaceAfter=6
    )
    normal_style = ParagraphStyle(
        'InvoiceNormal',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#374151')
    )

    title = "PAYMENT RECEIPT" if invoice.kind.value == "PAYMENT" else "INVOICE"
    elements.append(Paragraph(title, title_style))
    elements.append(Spacer(1, 0.3*inch))

    invoice_date = invoice.invoice_date or invoice.created_at
    sale_type = invoice.sale.type.value if invoice.sale else "MUFRAD"
    info_data = [[
        Paragraph(f"<b>{COMPANY_NAME}</b><br/>{'Wholesale' if sale_type == 'JUMLA' else 'Retail'} sale", normal_style),
        _text(invoice.invoice_number, normal_style),
    ], [
        Paragraph(f"<b>Currency:</b> {currency}", normal_style),
        Paragraph(
            f"<b>Date:</b> {invoice_date.strftime('%d %b %Y, %I:%M %p') if invoice_date else ''}<br/>"
            f"<b>Status:</b> {invoice.status.value.replace('_', ' ')}",
            normal_style,
        ),
    ]]
    info_table = Table(info_data, colWidths=[3.5*inch, 3*inch])
    info_table.setStyle(TableStyle([
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    if customer is not None:
        elements.append(Paragraph("<b>Bill To:</b>", heading_style))
        elements.append(_text(customer.name, normal_style))
        details = [f"Code: {customer.sku}"]
        if customer.phone:
            details.append(f"Phone: {customer.phone}")
        elements.append(Paragraph("<br/>".join(details), normal_style))
        elements.append(Spacer(1, 0.3*inch))

    items_data = [[
        Paragraph("<b>Description</b>", normal_style),
        Paragraph("<b>Quantity</b>", normal_style),
        Paragraph("<b>Rate</b>", normal_style),
        Paragraph("<b>Disc. %</b>", normal_style),
        Paragraph("<b>Amount</b>", normal_style),
    ]]
    for item in invoice.items:
        items_data.append([
            _text(item_name(item), normal_style),
            Paragraph(str(item.quantity), normal_style),
            Paragraph(_money(item.unit_price, currency), normal_style),
            Paragraph(f"{float(item.discount or 0):g}", normal_style),
            Paragraph(_money(item.line_total, currency), normal_style),
        ])

    col_widths = [2.6*inch, 0.9*inch, 1.1*inch, 0.7*inch, 1.2*inch]
    items_table = Table(items_data, colWidths=col_widths, repeatRows=1)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#f3f4f6')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.HexColor('#1f2937')),
        ('ALIGN', (1, 0), (-1, -1), 'RIGHT'),
        ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#fafafa')]),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    total_rows = [("Subtotal:", invoice.subtotal)]
    if invoice.discount:
        total_rows.append(("Discount:", -invoice.discount))
    if invoice.tax_amount:
        total_rows.append(("Tax:", invoice.tax_amount))
    total_rows += [("TOTAL:", invoice.total), ("Paid:", invoice.amount_paid), ("Due:", invoice.amount_due)]

    total_index = [label for label, _ in total_rows].index("TOTAL:")
    total_data = [
        ['', '', Paragraph(f"<b>{label}</b>", heading_style if label == "TOTAL:" else normal_style),
         Paragraph(_money(amount, currency), heading_style if label == "TOTAL:" else normal_style)]
        for label, amount in total_rows
    ]
    total_table = Table(total_data, colWidths=[2.6*inch, 0.9*inch, 1.8*inch, 1.2*inch])
    total_table.setStyle(TableStyle([
        ('ALIGN', (2, 0), (-1, -1), 'RIGHT'),
        ('LINEABOVE', (2, total_index), (-1, total_index), 1, colors.black),
        ('TOPPADDING', (0, 0), (-1, -1), 4),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 4),
    ]))
    elements.append(total_table)

    if invoice.due_date and invoice.amount_due:
        elements.append(Spacer(1, 0.4*inch))
        elements.append(Paragraph("<b>Payment Terms:</b>", heading_style))
        elements.append(Paragraph(
            f"Please pay the outstanding amount by {invoice.due_date.strftime('%d %b %Y')}.", normal_style
        ))

    if invoice.status.value == "CANCELLED":
        elements.append(Spacer(1, 0.3*inch))
        reason = f": {invoice.cancellation_reason}" if invoice.cancellation_reason else ""
        elements.append(_text(f"CANCELLED{reason}", heading_style))

    footer_style = ParagraphStyle(
        'Footer',
        parent=styles['Normal'],
        fontSize=8,
        textColor=colors.grey,
        alignment=TA_CENTER
    )
    elements.append(Spacer(1, 0.5*inch))
    elements.append(Paragraph("Thank you for your business!", footer_style))
    elements.append(Paragraph(f"Generated on {datetime.now().strftime('%d %b %Y at %I:%M %p')}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer
