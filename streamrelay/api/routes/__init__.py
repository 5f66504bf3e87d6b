from .health import router as health_router
from .pages import router as pages_router


__all__ = ["health_router", "pages_router"]
