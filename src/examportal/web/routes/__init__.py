"""Route handlers for Web API."""

from examportal.web.routes.health import router as health_router
from examportal.web.routes.attempts import router as attempts_router
from examportal.web.routes.students import router as students_router

__all__ = [
    "health_router",
    "attempts_router",
    "students_router",
]
