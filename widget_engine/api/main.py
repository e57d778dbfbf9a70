"""Widget Engine API - widget data resolution and render dispatch.

This API serves:
- The widget type catalog (classification, bindings, renderer keys)
- Dashboard render passes (render descriptors or placeholders per widget)
- Live payload ingestion for the in-memory live data adapter
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from widget_engine import __version__
from widget_engine.api.routes import render, widget_types
from widget_engine.rendering.bindings import get_binding_registry
from widget_engine.rendering.engine import get_render_engine
from widget_engine.widget_types.registry import get_widget_type_registry

LOG_LEVEL = os.environ.get("WIDGET_ENGINE_LOG_LEVEL", "INFO").upper()
HOST = os.environ.get("WIDGET_ENGINE_HOST", "0.0.0.0")
PORT = int(os.environ.get("WIDGET_ENGINE_PORT", "8000"))
CORS_ORIGINS = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]

# Configure logging
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup: Pre-load the catalog and check every binding exists
    logger.info("Loading widget type definitions...")
    widget_type_registry = get_widget_type_registry()
    logger.info(f"Loaded {widget_type_registry.count()} widget types")

    bindings = get_binding_registry()
    missing = sorted({
        d.binding for d in widget_type_registry.list_all()
        if not bindings.is_registered(d.binding)
    })
    if missing:
        logger.warning(f"Widget types reference unregistered bindings: {missing}")

    get_render_engine()
    logger.info("Widget Engine API ready")
    yield
    # Shutdown
    logger.info("Shutting down Widget Engine API")


# Create FastAPI app
app = FastAPI(
    title="Widget Engine API",
    description="""
## Widget Data Resolution and Render Dispatch

Resolves each dashboard widget's data from its configuration and live
feed, applies the no-telemetry and no-data guards, and dispatches it to
its renderer with the widget type's prop contract.

### Key Endpoints

- `GET /v1/widget-types` - List widget types
- `GET /v1/widget-types/{type_key}` - Get a widget type definition
- `POST /v1/render` - Render a set of widgets
- `POST /v1/live/{topic}` - Push a live payload
""",
    version=__version__,
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers with /v1 prefix
app.include_router(widget_types.router, prefix="/v1")
app.include_router(render.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Widget Engine API",
        "version": __version__,
        "description": "Widget data resolution and render dispatch",
        "docs": "/docs",
        "endpoints": {
            "widget_types": "/v1/widget-types",
            "render": "/v1/render",
            "live": "/v1/live/{topic}",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    widget_type_registry = get_widget_type_registry()
    engine = get_render_engine()

    return {
        "status": "healthy",
        "widget_types_loaded": widget_type_registry.count(),
        "widget_type_tags": len(widget_type_registry.list_keys()),
        "bindings_registered": len(get_binding_registry().keys()),
        "normalizer_cache": {
            "entries": len(engine.memo),
            "hits": engine.memo.hits,
            "misses": engine.memo.misses,
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "widget_engine.api.main:app",
        host=HOST,
        port=PORT,
        reload=True,
    )
