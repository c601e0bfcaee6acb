"""Locale handling: supported locales, text direction and export labels."""
from typing import Dict, Optional

from arbati.core.config import settings

RTL_LOCALES = {"ku", "ar"}

MESSAGES: Dict[str, Dict[str, str]] = {
    "en": {
        "products.title": "Products",
        "products.image": "Image",
        "products.id": "ID",
        "products.name": "Name",
        "products.sku": "SKU",
        "products.category": "Category",
        "products.mufrad_price": "Retail Price",
        "products.jumla_price": "Wholesale Price",
        "products.rmb_price": "RMB Price",
        "products.stock_quantity": "Quantity",
        "products.low_stock_threshold": "Low Stock Threshold",
        "statement.title": "Account Statement",
        "statement.customer": "Customer",
        "statement.code": "Code",
        "statement.debt_iqd": "Debt (IQD)",
        "statement.debt_usd": "Debt (USD)",
        "statement.empty": "No activity found",
        "activity.date": "Date",
        "activity.type": "Type",
        "activity.description": "Description",
        "activity.reference": "Reference",
        "activity.amount": "Amount",
        "activity.invoice": "Invoice",
        "activity.payment": "Payment",
        "activity.balance": "Balance",
        "activity.sale": "Sale",
        "invoice.title": "Invoice",
        "invoice.number": "Invoice #",
        "invoice.date": "Date",
        "invoice.status": "Status",
        "invoice.bill_to": "Bill To",
        "invoice.description": "Description",
        "invoice.quantity": "Quantity",
        "invoice.rate": "Rate",
        "invoice.amount": "Amount",
        "invoice.subtotal": "Subtotal",
        "invoice.discount": "Discount",
        "invoice.tax": "Tax",
        "invoice.total": "Total",
        "invoice.paid": "Paid",
        "invoice.due": "Due",
        "common.page": "Page",
        "common.printed_on": "Printed on",
    },
    "ar": {
        "products.title": "قائمة المنتجات",
        "products.image": "صورة",
        "products.id": "المعرف",
        "products.name": "الاسم",
        "products.sku": "الرمز",
        "products.category": "الفئة",
        "products.mufrad_price": "سعر المفرد",
        "products.jumla_price": "سعر الجملة",
        "products.rmb_price": "سعر اليوان",
        "products.stock_quantity": "الكمية",
        "products.low_stock_threshold": "حد المخزون المنخفض",
        "statement.title": "كشف الحساب",
        "statement.customer": "الزبون",
        "statement.code": "الرمز",
        "statement.debt_iqd": "الدين (د.ع)",
        "statement.debt_usd": "الدين ($)",
        "statement.empty": "لا توجد حركات",
        "activity.date": "التاريخ",
        "activity.type": "النوع",
        "activity.description": "الوصف",
        "activity.reference": "المرجع",
        "activity.amount": "المبلغ",
        "activity.invoice": "فاتورة",
        "activity.payment": "دفعة",
        "activity.balance": "رصيد",
        "activity.sale": "بيع",
        "invoice.title": "فاتورة",
        "invoice.number": "رقم الفاتورة",
        "invoice.date": "التاريخ",
        "invoice.status": "الحالة",
        "invoice.bill_to": "إلى",
        "invoice.description": "الوصف",
        "invoice.quantity": "الكمية",
        "invoice.rate": "السعر",
        "invoice.amount": "المبلغ",
        "invoice.subtotal": "المجموع الفرعي",
        "invoice.discount": "الخصم",
        "invoice.tax": "الضريبة",
        "invoice.total": "المجموع",
        "invoice.paid": "المدفوع",
        "invoice.due": "المتبقي",
        "common.page": "صفحة",
        "common.printed_on": "طُبع في",
    },
    "ku": {
        "products.title": "لیستی کاڵاکان",
        "products.image": "وێنە",
        "products.id": "ناسنامە",
        "products.name": "ناو",
        "products.sku": "کۆد",
        "products.category": "پۆل",
        "products.mufrad_price": "نرخی تاک",
        "products.jumla_price": "نرخی کۆ",
        "products.rmb_price": "نرخی یوان",
        "products.stock_quantity": "بڕ",
        "products.low_stock_threshold": "سنووری کەمی کاڵا",
        "statement.title": "کەشفی حساب",
        "statement.customer": "کڕیار",
        "statement.code": "کۆد",
        "statement.debt_iqd": "قەرز (د.ع)",
        "statement.debt_usd": "قەرز ($)",
        "statement.empty": "هیچ چالاکییەک نییە",
        "activity.date": "بەروار",
        "activity.type": "جۆر",
        "activity.description": "وەسف",
        "activity.reference": "ژمارە",
        "activity.amount": "بڕی پارە",
        "activity.invoice": "پسوڵە",
        "activity.payment": "پارەدان",
        "activity.balance": "باڵانس",
        "activity.sale": "فرۆشتن",
        "invoice.title": "پسوڵە",
        "invoice.number": "ژمارەی پسوڵە",
        "invoice.date": "بەروار",
        "invoice.status": "دۆخ",
        "invoice.bill_to": "بۆ",
        "invoice.description": "وەسف",
        "invoice.quantity": "بڕ",
        "invoice.rate": "نرخ",
        "invoice.amount": "بڕی پارە",
        "invoice.subtotal": "کۆی لاوەکی",
        "invoice.discount": "داشکاندن",
        "invoice.tax": "باج",
        "invoice.total": "کۆی گشتی",
        "invoice.paid": "دراو",
        "invoice.due": "ماوە",
        "common.page": "لاپەڕە",
        "common.printed_on": "چاپکراوە لە",
    },
}

CURRENCY_SYMBOLS = {"IQD": "ع.د ", "USD": "$", "RMB": "¥"}


def get_locale(locale: Optional[str] = None) -> str:
    """Return a supported locale, falling back to the configured default."""
    if locale and locale in settings.LOCALES:
        return locale
    return settings.DEFAULT_LOCALE


def get_text_direction(locale: str) -> str:
    return "rtl" if locale in RTL_LOCALES else "ltr"


def translate(key: str, locale: str) -> str:
    """Look a label up for a locale; English and then the key itself are fallbacks."""
    catalog = MESSAGES.get(get_locale(locale), {})
    return catalog.get(key) or MESSAGES["en"].get(key, key)


def format_money(amount, currency: str) -> str:
    """Whole-unit amount with thousands separators and the currency symbol."""
    symbol = CURRENCY_SYMBOLS.get(currency, "")
    value = round(float(amount or 0))
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,}"
