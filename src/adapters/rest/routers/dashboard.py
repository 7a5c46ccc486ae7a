"""Dashboard endpoint: the same summary the chat tool narrates, plus the
three-month income/expenses chart."""

from fastapi import APIRouter, Depends, Query

from factory import ServiceFactory
from adapters.rest.dependencies import get_factory

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard")
async def get_dashboard(
    months: int = Query(default=3, ge=1, le=24),
    factory: ServiceFactory = Depends(get_factory),
):
    store = factory.store
    return {
        "summary": store.dashboard_summary().to_dict(),
        "chart": [bar.to_dict() for bar in store.monthly_chart(months)],
    }
