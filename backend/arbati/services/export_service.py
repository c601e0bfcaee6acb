"""
Product and statement exports: browser-print HTML, PDF and XLSX.

All three paths share the column catalogue and ExportOptions. The PDF path
cannot shape Arabic script with reportlab's fonts, so for right-to-left
languages any non-Latin cell is drawn as a Pillow-rendered image instead.
"""
import io
import logging
import re
from collections import OrderedDict
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import quote

from jinja2 import Environment, PackageLoader, select_autoescape
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from PIL import Image as PILImage, ImageDraw, ImageFont, features
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, A5, LEGAL, LETTER, landscape, portrait
from reportlab.lib.units import mm
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet

from arbati.core.config import settings
from arbati.core.i18n import format_money, get_text_direction, translate
from arbati.models.product import Product
from arbati.schemas.export import ExportOptions
from arbati.services.images import to_data_uri
from arbati.services.ledger_service import ActivityEntry

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = (
    "image", "id", "name", "sku", "category", "mufrad_price",
    "jumla_price", "rmb_price", "stock_quantity", "low_stock_threshold",
)
PRICE_CURRENCIES = {"mufrad_price": "IQD", "jumla_price": "IQD", "rmb_price": "RMB"}
PAGE_SIZES = {"a4": A4, "a5": A5, "letter": LETTER, "legal": LEGAL}
NON_LATIN = re.compile(r"[^\x00-\x7FÀ-ɏ]")
RASTER_SCALE = 4

# print pages run one inline script (window.print) and embed data: images
PRINT_PAGE_CSP = (
    "default-src 'none'; script-src 'unsafe-inline'; style-src 'unsafe-inline'; "
    "img-src data:; font-src 'self';"
)

_templates = Environment(
    loader=PackageLoader("arbati", "templates"),
    autoescape=select_autoescape(["html"]),
)


class ColumnSelection:
    """
    Ordered column catalogue plus the set of selected columns.

    selected() always follows catalogue order, whatever order the columns
    were toggled in.
    """

    def __init__(self, catalogue: Sequence[str] = PRODUCT_COLUMNS, selected: Optional[Iterable[str]] = None):
        self.catalogue = tuple(catalogue)
        self._selected = set(self.catalogue)
        if selected is not None:
            unknown = set(selected) - self._selected
            if unknown:
                raise ValueError(f"Unknown columns: {', '.join(sorted(unknown))}")
            self._selected = set(selected)
            if not self._selected:
                raise ValueError("Select at least one column")

    def toggle(self, column: str) -> None:
        if column not in self.catalogue:
            raise ValueError(f"Unknown column: {column}")
        if column in self._selected:
            self._selected.discard(column)
        else:
            self._selected.add(column)

    def select_all(self) -> None:
        self._selected = set(self.catalogue)

    def deselect_all(self) -> None:
        self._selected = set()

    def is_selected(self, column: str) -> bool:
        return column in self._selected

    def selected(self) -> List[str]:
        return [c for c in self.catalogue if c in self._selected]


def export_filename(prefix: str, extension: str, now: Optional[datetime] = None) -> str:
    """e.g. products-20261018-142501.pdf"""
    return f"{prefix}-{(now or datetime.utcnow()).strftime('%Y%m%d-%H%M%S')}.{extension}"


def content_disposition(filename: str) -> str:
    """Attachment header value; non-ASCII names (customer names in invoice codes) go in filename*."""
    fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_").replace('"', "_")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"


def product_label(product: Product, locale: str) -> str:
    if locale == "ar" and product.name_ar:
        return product.name_ar
    if locale == "ku" and product.name_ku:
        return product.name_ku
    return product.name


def column_label(column: str, locale: str, with_currency: bool = False) -> str:
    label = translate(f"products.{column}", locale)
    if with_currency and column in PRICE_CURRENCIES:
        label = f"{label} ({PRICE_CURRENCIES[column]})"
    return label


def product_value(product: Product, column: str, locale: str):
    """Raw cell value: numbers stay numbers for the spreadsheet."""
    if column == "name":
        return product_label(product, locale)
    if column == "category":
        category = product.category
        if category is None:
            return ""
        if locale == "ar" and category.name_ar:
            return category.name_ar
        if locale == "ku" and category.name_ku:
            return category.name_ku
        return category.name
    if column in PRICE_CURRENCIES:
        value = getattr(product, column)
        return float(value) if value is not None else None
    return getattr(product, column)


def product_text(product: Product, column: str, locale: str) -> str:
    value = product_value(product, column, locale)
    if value is None:
        return ""
    if column in PRICE_CURRENCIES:
        return format_money(value, PRICE_CURRENCIES[column])
    return str(value)


# HTML

def render_print_html(
    title: str,
    headers: List[str],
    rows: List[List[dict]],
    options: ExportOptions,
    summary: Optional[List[tuple]] = None,
) -> str:
    """
    Full HTML document for the browser print dialog.

    rows hold cells as {"text": ...} or {"image": data_uri}. Everything is
    escaped by the template; the page calls window.print() once loaded.
    """
    locale = options.language
    template = _templates.get_template("print_table.html")
    return template.render(
        lang=locale,
        direction=get_text_direction(locale),
        rtl=options.is_rtl,
        title=title,
        headers=headers,
        rows=rows,
        summary=summary or [],
        options=options,
        page_size=options.paper_size.upper(),
        printed_on_label=translate("common.printed_on", locale),
        printed_on=options.custom_date or datetime.utcnow().strftime("%Y-%m-%d"),
        empty_label=translate("statement.empty", locale),
    )


def render_products_html(
    products: List[Product],
    columns: ColumnSelection,
    options: ExportOptions,
    images: Optional[Dict[str, bytes]] = None,
) -> str:
    locale = options.language
    images = images or {}
    selected = columns.selected()
    rows = []
    for product in products:
        row = []
        for column in selected:
            if column == "image":
                data = images.get(product.image) if product.image else None
                row.append({"image": to_data_uri(data) if data else ""})
            else:
                row.append({"text": product_text(product, column, locale)})
        rows.append(row)
    headers = [column_label(c, locale) for c in selected]
    return render_print_html(translate("products.title", locale), headers, rows, options)


def render_statement_html(customer, activity: List[ActivityEntry], options: ExportOptions) -> str:
    """Customer account statement from the merged activity feed."""
    locale = options.language
    headers = [
        translate("activity.date", locale),
        translate("activity.type", locale),
        translate("activity.description", locale),
        translate("activity.reference", locale),
        translate("activity.amount", locale),
    ]
    rows = [
        [
            {"text": entry.date.strftime("%Y-%m-%d") if entry.date != datetime.min else ""},
            {"text": translate(f"activity.{entry.type}", locale)},
            {"text": entry.description},
            {"text": entry.reference or ""},
            {"text": format_money(entry.amount, entry.currency),
             "css": "num negative" if entry.amount < 0 else "num"},
        ]
        for entry in activity
    ]
    summary = [
        (translate("statement.customer", locale), customer.name),
        (translate("statement.code", locale), customer.sku),
        (translate("statement.debt_iqd", locale), format_money(customer.debt_iqd, "IQD")),
        (translate("statement.debt_usd", locale), format_money(customer.debt_usd, "USD")),
    ]
    return render_print_html(translate("statement.title", locale), headers, rows, options, summary=summary)


# PDF

def _rtl_font(size_px: int):
    if settings.RTL_FONT_PATH:
        try:
            return ImageFont.truetype(settings.RTL_FONT_PATH, size_px)
        except OSError:
            logger.warning(f"RTL font not found at {settings.RTL_FONT_PATH}, using Pillow default")
    return ImageFont.load_default(size=size_px)


def rasterize_text(text: str, font_size: float, color: str = "#000000") -> Image:
    """Render text to a transparent PNG and wrap it as a reportlab flowable sized in points."""
    font = _rtl_font(int(font_size * RASTER_SCALE))
    kwargs = {"direction": "rtl"} if features.check("raqm") else {}

    measure = ImageDraw.Draw(PILImage.new("RGBA", (1, 1)))
    left, top, right, bottom = measure.textbbox((0, 0), text, font=font, **kwargs)
    width, height = max(1, right - left), max(1, bottom - top)

    canvas = PILImage.new("RGBA", (width + 2, height + 2), (255, 255, 255, 0))
    ImageDraw.Draw(canvas).text((1 - left, 1 - top), text, font=font, fill=color, **kwargs)
    buffer = io.BytesIO()
    canvas.save(buffer, format="PNG")
    buffer.seek(0)
    return Image(buffer, width=canvas.width / RASTER_SCALE, height=canvas.height / RASTER_SCALE)


def _pdf_cell(text: str, style: ParagraphStyle, options: ExportOptions, color: str):
    if options.is_rtl and NON_LATIN.search(text):
        return rasterize_text(text, style.fontSize, color)
    return Paragraph(_xml_escape(text), style)


def _xml_escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _page_size(options: ExportOptions):
    size = PAGE_SIZES[options.paper_size]
    return landscape(size) if options.orientation == "landscape" else portrait(size)


def _page_decorations(options: ExportOptions):
    def draw(canvas, doc):
        canvas.saveState()
        canvas.setFont("Helvetica", max(options.font_size - 1, 6))
        canvas.setFillColor(colors.HexColor("#616161"))
        width = doc.pagesize[0]
        if options.show_page_numbers:
            canvas.drawCentredString(width / 2, 6 * mm, str(doc.page))
        if options.show_footer and options.footer_text and not NON_LATIN.search(options.footer_text):
            canvas.drawString(doc.leftMargin, 6 * mm, options.footer_text)
        canvas.restoreState()
    return draw


def render_products_pdf(
    products: List[Product],
    columns: ColumnSelection,
    options: ExportOptions,
    images: Optional[Dict[str, bytes]] = None,
) -> bytes:
    """Products table as a PDF, repeating the header row on every page."""
    locale = options.language
    images = images or {}
    selected = columns.selected()
    if options.is_rtl:
        selected = list(reversed(selected))

    styles = getSampleStyleSheet()
    align = 2 if options.is_rtl else 0
    body_style = ParagraphStyle("Body", parent=styles["Normal"], fontSize=options.font_size,
                                leading=options.font_size * 1.25, alignment=align)
    header_style = ParagraphStyle("Header", parent=body_style, fontName="Helvetica-Bold",
                                  fontSize=options.header_font_size, leading=options.header_font_size * 1.25,
                                  textColor=colors.HexColor(options.header_text_color))
    title_style = ParagraphStyle("Title", parent=styles["Heading1"], fontSize=options.header_font_size + 6,
                                 alignment=align)

    data = [[_pdf_cell(column_label(c, locale), header_style, options, options.header_text_color) for c in selected]]
    for product in products:
        row = []
        for column in selected:
            if column == "image":
                png = images.get(product.image) if product.image else None
                row.append(
                    Image(io.BytesIO(png), width=options.image_size * mm, height=options.image_size * mm)
                    if png else ""
                )
            else:
                row.append(_pdf_cell(product_text(product, column, locale), body_style, options, "#000000"))
        data.append(row)

    page_size = _page_size(options)
    margin = 10 * mm
    available = page_size[0] - 2 * margin
    image_width = (options.image_size + 2 * options.image_padding + 2 * options.cell_padding) * mm
    others = [c for c in selected if c != "image"]
    rest = available - (image_width if "image" in selected else 0)
    col_widths = [image_width if c == "image" else rest / max(len(others), 1) for c in selected]

    padding = options.cell_padding * mm
    table_style = [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(options.header_bg_color)),
        ("GRID", (0, 0), (-1, -1), options.border_width * mm, colors.HexColor(options.border_color)),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("LEFTPADDING", (0, 0), (-1, -1), padding),
        ("RIGHTPADDING", (0, 0), (-1, -1), padding),
        ("TOPPADDING", (0, 0), (-1, -1), padding),
        ("BOTTOMPADDING", (0, 0), (-1, -1), padding),
    ]
    if options.row_striping:
        table_style.append(("ROWBACKGROUNDS", (0, 1), (-1, -1),
                            [colors.white, colors.HexColor(options.striping_color)]))
    if "image" in selected:
        index = selected.index("image")
        table_style.append(("ALIGN", (index, 1), (index, -1), "CENTER"))

    table = Table(data, colWidths=col_widths, repeatRows=1)
    table.setStyle(TableStyle(table_style))

    elements = []
    if options.header_type != "none":
        elements.append(_pdf_cell(translate("products.title", locale), title_style, options, "#000000"))
        if options.header_type == "date":
            printed_on = options.custom_date or datetime.utcnow().strftime("%Y-%m-%d")
            elements.append(Paragraph(printed_on, body_style))
        elif options.header_text:
            elements.append(_pdf_cell(options.header_text, body_style, options, "#000000"))
        elements.append(Spacer(1, 4 * mm))
    elements.append(table)

    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=page_size, leftMargin=margin, rightMargin=margin,
                            topMargin=margin, bottomMargin=margin + 4 * mm)
    decorate = _page_decorations(options)
    doc.build(elements, onFirstPage=decorate, onLaterPages=decorate)
    return buffer.getvalue()


# XLSX

def product_rows(products: List[Product], columns: ColumnSelection, locale: str) -> List["OrderedDict[str, object]"]:
    """Spreadsheet rows keyed by localized, currency-suffixed headers. Images are left out."""
    selected = [c for c in columns.selected() if c != "image"]
    return [
        OrderedDict((column_label(c, locale, with_currency=True), product_value(p, c, locale)) for c in selected)
        for p in products
    ]


def render_products_xlsx(products: List[Product], columns: ColumnSelection, options: ExportOptions) -> bytes:
    locale = options.language
    rows = product_rows(products, columns, locale)
    headers = [column_label(c, locale, with_currency=True) for c in columns.selected() if c != "image"]

    wb = Workbook()
    ws = wb.active
    ws.title = "Products"
    ws.sheet_view.rightToLeft = options.is_rtl

    side = Side(style="thin", color=options.border_color.lstrip("#"))
    border = Border(left=side, right=side, top=side, bottom=side)
    header_fill = PatternFill("solid", fgColor=options.header_bg_color.lstrip("#"))
    header_font = Font(bold=True, color=options.header_text_color.lstrip("#"), size=options.header_font_size)
    stripe_fill = PatternFill("solid", fgColor=options.striping_color.lstrip("#"))

    ws.append(headers)
    for cell in ws[1]:
        cell.fill = header_fill
        cell.font = header_font
        cell.border = border
        cell.alignment = Alignment(horizontal="center", vertical="center")

    for index, row in enumerate(rows, start=2):
        ws.append(list(row.values()))
        for cell in ws[index]:
            cell.border = border
            cell.font = Font(size=options.font_size)
            if options.row_striping and index % 2 == 1:
                cell.fill = stripe_fill

    for col_index, header in enumerate(headers, start=1):
        longest = max([len(str(header))] + [len(str(r.get(header) or "")) for r in rows])
        ws.column_dimensions[get_column_letter(col_index)].width = min(max(10, longest + 2), 50)
    ws.freeze_panes = "A2"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
