"""
Render backends: the same page geometry emitted as a bitmap or as vectors.
"""

from .base import RenderBackend
from .raster import RasterBackend
from .vector import VectorBackend

BACKENDS = {
    "raster": RasterBackend,
    "vector": VectorBackend,
}


def create_backend(name: str, **kwargs) -> RenderBackend:
    """Backend instance by name ("raster" or "vector")."""
    try:
        backend_cls = BACKENDS[name]
    except KeyError:
        raise ValueError(f"Unknown backend: {name}. Valid backends: {list(BACKENDS)}") from None
    return backend_cls(**kwargs)


__all__ = [
    "BACKENDS",
    "RasterBackend",
    "RenderBackend",
    "VectorBackend",
    "create_backend",
]
