"""Render API routes.

POST /render renders a set of sibling widgets against the in-memory live
data adapter and command channel. POST /live/{topic} pushes a payload into
that adapter, standing in for the live transport.
"""

import logging
from typing import Any

from fastapi import APIRouter, Body

from widget_engine.adapters.memory import get_live_data_adapter
from widget_engine.rendering.engine import get_render_engine
from widget_engine.rendering.schemas import (
    DashboardRenderRequest,
    DashboardRenderResponse,
    LiveIngestResponse,
    RenderState,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["render"])


@router.post("/render", response_model=DashboardRenderResponse)
async def render_dashboard(request: DashboardRenderRequest) -> DashboardRenderResponse:
    """Run one render pass per widget, in request order.

    Faults are contained per widget and reported in each pass.
    """
    passes = get_render_engine().render_dashboard(request.widgets)
    return DashboardRenderResponse(
        passes=passes,
        rendered=sum(p.state == RenderState.RENDERED for p in passes),
        placeholders=sum(p.is_placeholder for p in passes),
        faults=sum(p.fault is not None for p in passes),
    )


@router.post("/live/{topic:path}", response_model=LiveIngestResponse)
async def ingest_live_payload(topic: str, payload: Any = Body(...)) -> LiveIngestResponse:
    """Push a payload published on ``topic`` to subscribed widgets."""
    updated = get_live_data_adapter().ingest(topic, payload)
    logger.info(f"Live payload on '{topic}' updated {updated} widget(s)")
    return LiveIngestResponse(topic=topic, widgets_updated=updated)
