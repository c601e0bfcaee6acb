"""UI settings read by the frontend at startup."""
from fastapi import APIRouter, Depends

from arbati.api.deps import get_current_user
from arbati.core.config import settings
from arbati.core.i18n import RTL_LOCALES
from arbati.models.user import User

router = APIRouter()


@router.get("/ui")
def ui_settings(current_user: User = Depends(get_current_user)):
    return {
        "locales": settings.LOCALES,
        "defaultLocale": settings.DEFAULT_LOCALE,
        "rtlLocales": sorted(RTL_LOCALES),
        "fontSize": settings.UI_FONT_SIZE,
        "defaultPageSize": settings.DEFAULT_PAGE_SIZE,
        "maxPageSize": settings.MAX_PAGE_SIZE,
    }
