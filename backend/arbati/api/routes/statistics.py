"""Dashboard statistics: totals, low stock, top customers, notifications, sales chart and most sold."""
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from arbati.api.deps import get_db, require_permission
from arbati.core.permissions import REPORTS_VIEW, STOCK_VIEW
from arbati.models.user import User
from arbati.services import statistics_service

router = APIRouter()


@router.get("/dashboard")
def dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(REPORTS_VIEW)),
):
    """Revenue per currency, customer counts and growth, catalogue and invoice totals."""
    return statistics_service.dashboard(db)


@router.get("/low-stock")
def low_stock(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(STOCK_VIEW)),
):
    return statistics_service.low_stock(db)


@router.get("/top-customers")
def top_customers(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(REPORTS_VIEW)),
):
    return {"customers": statistics_service.top_customers(db, limit)}


@router.get("/notifications")
def notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(STOCK_VIEW)),
):
    """Low-stock products and motorcycles plus customers past their notification days."""
    return statistics_service.notifications(db)


@router.get("/sales-chart")
def sales_chart(
    time_range: Literal["7d", "30d", "90d"] = Query("90d", alias="timeRange"),
    currency: Literal["all", "IQD", "USD"] = Query("all"),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(REPORTS_VIEW)),
):
    return {"data": statistics_service.sales_chart(db, time_range, currency)}


@router.get("/most-sold")
def most_sold(
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(REPORTS_VIEW)),
):
    return {"products": statistics_service.most_sold(db, limit)}
