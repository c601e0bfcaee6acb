import asyncio
import io

import httpx
from openpyxl import load_workbook

from arbati.schemas.export import ExportOptions
from arbati.services import export_service
from arbati.services.export_service import ColumnSelection
from arbati.services.images import load_images, placeholder_png
from arbati.services.ledger_service import merge_activity


def test_print_html_sets_direction_and_escapes(db, product):
    product.name_ku = "<b>شەمعە</b> & co"
    db.commit()
    html = export_service.render_products_html([product], ColumnSelection(), ExportOptions(language="ku"))
    assert '<html lang="ku" dir="rtl">' in html
    assert "&lt;b&gt;شەمعە&lt;/b&gt; &amp; co" in html
    assert "<b>شەمعە</b>" not in html
    assert "window.print()" in html


def test_print_html_english_is_ltr_with_selected_headers(product):
    columns = ColumnSelection(selected=["name", "mufrad_price"])
    html = export_service.render_products_html([product], columns, ExportOptions(language="en"))
    assert 'dir="ltr"' in html
    assert "<th>Name</th>" in html
    assert "<th>Retail Price</th>" in html
    assert "<th>SKU</th>" not in html
    assert "ع.د 5,000" in html


def test_print_html_embeds_images_as_data_uris(product):
    product.image = "https://cdn.example.com/spark.png"
    images = {product.image: placeholder_png()}
    html = export_service.render_products_html([product], ColumnSelection(), ExportOptions(), images)
    assert 'src="data:image/png;base64,' in html


def test_print_html_striping_is_optional(product):
    plain = export_service.render_products_html([product], ColumnSelection(), ExportOptions())
    striped = export_service.render_products_html(
        [product], ColumnSelection(), ExportOptions(row_striping=True, striping_color="#EEEEEE")
    )
    assert "#EEEEEE" in striped
    assert "nth-child(even)" not in plain


def test_products_pdf_is_a_pdf(product):
    product.image = "local.png"
    pdf = export_service.render_products_pdf(
        [product], ColumnSelection(), ExportOptions(language="en"), {"local.png": placeholder_png()}
    )
    assert pdf.startswith(b"%PDF")


def test_products_pdf_rtl_rasterizes_kurdish_text(product):
    pdf = export_service.render_products_pdf(
        [product], ColumnSelection(), ExportOptions(language="ku", paper_size="a5", orientation="portrait")
    )
    assert pdf.startswith(b"%PDF")
    # rasterized cells are embedded as images
    assert b"/Subtype /Image" in pdf


def test_products_xlsx_has_currency_headers(product):
    data = export_service.render_products_xlsx([product], ColumnSelection(), ExportOptions(language="en"))
    wb = load_workbook(io.BytesIO(data))
    ws = wb["Products"]
    headers = [c.value for c in ws[1]]
    assert "Image" not in headers
    assert headers[0] == "ID"
    assert "Retail Price (IQD)" in headers
    assert "RMB Price (RMB)" in headers
    row = [c.value for c in ws[2]]
    assert row[headers.index("Retail Price (IQD)")] == 5000
    assert row[headers.index("SKU")] == "SP-001"


def test_product_rows_follow_column_order(product):
    rows = export_service.product_rows([product], ColumnSelection(selected=["sku", "name"]), "en")
    assert list(rows[0].keys()) == ["Name", "SKU"]


def test_statement_html_lists_activity(customer):
    activity = merge_activity(
        [{"id": 1, "invoice_number": "INV-1", "invoice_date": None, "total": 50000,
          "kind": "RETAIL_PRODUCT", "currency": "IQD"}],
        [{"id": 1, "amount_iqd": 20000, "amount_usd": 0}],
        [],
        customer_name=customer.name,
        customer_sku=customer.sku,
    )
    html = export_service.render_statement_html(customer, activity, ExportOptions(language="en"))
    assert "Account Statement" in html
    assert "INV-1" in html
    assert "-ع.د 20,000" in html
    assert customer.sku in html


def test_export_filename_pattern():
    name = export_service.export_filename("products", "xlsx")
    assert name.startswith("products-") and name.endswith(".xlsx")


def test_content_disposition_keeps_unicode_names():
    header = export_service.content_disposition("invoice-کاروان-2026.pdf")
    assert header.startswith('attachment; filename="invoice-')
    assert "filename*=UTF-8''invoice-" in header


def test_failed_images_become_placeholders():
    def handler(request):
        if "missing" in request.url.path:
            return httpx.Response(404)
        return httpx.Response(200, content=placeholder_png())

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            return await load_images(
                ["https://img.test/ok.png", "https://img.test/missing.png", None, "https://img.test/ok.png"],
                client=client,
            )

    images = asyncio.run(run())
    assert set(images) == {"https://img.test/ok.png", "https://img.test/missing.png"}
    assert images["https://img.test/missing.png"] == placeholder_png()
    assert images["https://img.test/ok.png"].startswith(b"\x89PNG")
