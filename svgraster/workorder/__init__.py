"""Work order models and the builder resolving them from source names."""

from .builder import (
    BuildOptions,
    ResolvedDirectives,
    build_work_order,
    raster_path,
    resolve_directives,
    size_spec,
    vector_path,
)
from .models import (
    BackgroundOp,
    PaddingOp,
    PostProcessStep,
    RasterOutput,
    Rasterization,
    RoundOp,
    VectorConversion,
    WorkOrder,
)

__all__ = [
    "BackgroundOp",
    "BuildOptions",
    "PaddingOp",
    "PostProcessStep",
    "RasterOutput",
    "Rasterization",
    "ResolvedDirectives",
    "RoundOp",
    "VectorConversion",
    "WorkOrder",
    "build_work_order",
    "raster_path",
    "resolve_directives",
    "size_spec",
    "vector_path",
]
