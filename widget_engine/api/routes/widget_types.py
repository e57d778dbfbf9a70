"""Widget type catalog API routes."""

from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from widget_engine.widget_types.registry import get_widget_type_registry
from widget_engine.widget_types.schemas import WidgetTypeDefinition, WidgetTypeSummary

router = APIRouter(prefix="/widget-types", tags=["widget-types"])


# ── Helper ───────────────────────────────────────────────


def _get_or_404(type_key: str) -> WidgetTypeDefinition:
    """Get a widget type by tag or raise 404."""
    registry = get_widget_type_registry()
    definition = registry.get(type_key)
    if definition is None:
        available = registry.list_keys()
        raise HTTPException(
            status_code=404,
            detail=f"Widget type '{type_key}' not found. Available: {available}",
        )
    return definition


# -- List endpoints --


@router.get("", response_model=list[WidgetTypeSummary])
async def list_widget_types(
    category: Optional[str] = Query(
        None, description="Filter by category (chart, card, control, ...)"
    ),
    buffered: Optional[bool] = Query(
        None, description="Filter by buffered (chart-like) subscription"
    ),
) -> list[WidgetTypeSummary]:
    """List all widget types with optional filtering."""
    summaries = get_widget_type_registry().list_summaries()
    if category:
        summaries = [s for s in summaries if s.category == category]
    if buffered is not None:
        summaries = [s for s in summaries if s.buffered == buffered]
    return summaries


@router.get("/keys", response_model=list[str])
async def list_widget_type_keys() -> list[str]:
    """List every dispatchable type tag, aliases included."""
    return sorted(get_widget_type_registry().list_keys())


@router.get("/category/{category}", response_model=list[WidgetTypeDefinition])
async def list_widget_types_by_category(category: str) -> list[WidgetTypeDefinition]:
    """Get active widget types in a category."""
    return get_widget_type_registry().for_category(category)


# -- Detail endpoints --


@router.get("/{type_key}", response_model=WidgetTypeDefinition)
async def get_widget_type(type_key: str) -> WidgetTypeDefinition:
    """Get a widget type definition by tag or alias."""
    return _get_or_404(type_key)
