from pydantic import BaseModel, Field
from typing import List, Literal, Optional

HEX_COLOR = r"^#[0-9A-Fa-f]{6}$"


class ExportOptions(BaseModel):
    """Page and style settings shared by the print, PDF and XLSX exports."""

    paper_size: Literal["a4", "a5", "letter", "legal"] = "a4"
    orientation: Literal["portrait", "landscape"] = "landscape"
    language: Literal["ku", "en", "ar"] = "ku"

    image_size: float = Field(20, gt=0, le=100)  # mm
    image_padding: float = Field(3, ge=0, le=20)  # mm
    font_size: float = Field(9, ge=5, le=24)  # pt
    header_font_size: float = Field(10, ge=5, le=32)  # pt
    cell_padding: float = Field(4, ge=0, le=20)  # mm

    header_type: Literal["logo", "cover", "date", "none", "custom"] = "date"
    header_text: Optional[str] = None
    custom_date: Optional[str] = None
    show_page_numbers: bool = True
    show_footer: bool = False
    footer_text: Optional[str] = None

    header_bg_color: str = Field("#424242", pattern=HEX_COLOR)
    header_text_color: str = Field("#FFFFFF", pattern=HEX_COLOR)
    border_color: str = Field("#C8C8C8", pattern=HEX_COLOR)
    border_width: float = Field(0.1, ge=0, le=5)  # mm
    row_striping: bool = False
    striping_color: str = Field("#F5F5F5", pattern=HEX_COLOR)

    @property
    def is_rtl(self) -> bool:
        return self.language in ("ku", "ar")


class ProductExportRequest(BaseModel):
    format: Literal["html", "pdf", "xlsx"] = "pdf"
    scope: Literal["all", "current"] = "all"
    ids: List[int] = []  # rows on the current page when scope is "current"
    columns: Optional[List[str]] = None  # None means every column
    options: ExportOptions = Field(default_factory=ExportOptions)
