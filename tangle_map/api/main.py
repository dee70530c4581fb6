"""FastAPI main application."""

import logging
from typing import Any, Dict, List, Optional

import structlog
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from pydantic import BaseModel, Field

from .. import __version__
from ..config import CompositionParams, settings
from ..core.clusters import Cluster, ClusterField
from ..core.pipeline import CompositionPipeline, LayerConfigurationError
from ..core.random_stream import RandomStream
from ..render.matplotlib_canvas import MatplotlibCanvas

# Configure logging
logging.basicConfig(format="%(message)s", level=settings.log_level.upper())

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Tangle Map API",
    description="Deterministic layered generative compositions",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Request/Response models
class CompositionRequest(CompositionParams):
    """Request to generate or render a composition."""

    seed: int = Field(default_factory=lambda: settings.default_seed, description="Composition seed")
    disabled_layers: List[str] = Field(default_factory=list, description="Layers to hide when painting")
    layer_order: Optional[List[str]] = Field(None, description="Paint order; missing layers follow in z order")


class LayerInfo(BaseModel):
    """Metadata of one registered layer."""

    name: str
    z_index: int
    enabled: bool
    opacity: float
    requires: List[str]


class CompositionResponse(BaseModel):
    """Generated composition data."""

    seed: int
    clusters: List[Cluster]
    layers: Dict[str, Any]
    warnings: List[str]
    call_count: int


def build_pipeline(request: CompositionRequest) -> CompositionPipeline:
    """Fresh pipeline for one request, configured from the request's layer options."""
    random = RandomStream(request.seed)
    cluster_field = ClusterField(request.width, request.height, request.padding)
    pipeline = CompositionPipeline(random, cluster_field, background=settings.background_color)

    unknown = [name for name in request.disabled_layers if name not in pipeline.slots]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown layers: {', '.join(unknown)}")
    pipeline.set_layer_states({name: False for name in request.disabled_layers})

    if request.layer_order is not None:
        try:
            pipeline.set_layer_order(request.layer_order)
        except LayerConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return pipeline


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Tangle Map API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/layers", response_model=List[LayerInfo])
async def list_layers():
    """Default layers in paint order. Nothing is generated."""
    pipeline = CompositionPipeline(RandomStream(settings.default_seed), ClusterField(
        settings.default_width, settings.default_height, settings.default_padding
    ))
    return pipeline.all_layer_info()


@app.post("/compositions/generate", response_model=CompositionResponse)
def generate_composition(request: CompositionRequest):
    """Run one generation pass and return every layer's payload."""
    logger.info("Composition generation requested", seed=request.seed, clusters=request.cluster_count)

    pipeline = build_pipeline(request)
    pipeline.generate_all_data(request)

    return CompositionResponse(
        seed=request.seed,
        clusters=pipeline.cluster_field.clusters,
        layers=pipeline.export_layer_data(),
        warnings=pipeline.validate_layers(),
        call_count=pipeline.random.call_count,
    )


@app.post("/compositions/render")
def render_composition(request: CompositionRequest):
    """Generate and paint a composition, returned as a PNG image."""
    logger.info("Composition render requested", seed=request.seed, disabled=request.disabled_layers)

    pipeline = build_pipeline(request)
    canvas = MatplotlibCanvas(request.width, request.height)
    try:
        pipeline.render_all(canvas, request, regenerate=False)
        png = canvas.to_png()
    finally:
        canvas.close()

    return Response(content=png, media_type="image/png")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
