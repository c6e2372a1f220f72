"""SignalOne - API Routers"""
from .auth import router as auth_router
from .issues import router as issues_router
from .containers import router as containers_router

__all__ = [
    "auth_router",
    "issues_router",
    "containers_router",
]
