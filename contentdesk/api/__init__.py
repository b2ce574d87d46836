"""contentdesk API layer: routes, schemas, and middleware."""

from contentdesk.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    status_code_for,
)
from contentdesk.api.routes import router
from contentdesk.api.schemas import (
    DocumentResponse,
    ErrorResponse,
    HealthResponse,
    JobSubmittedResponse,
    SearchResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "status_code_for",
    "router",
    "DocumentResponse",
    "ErrorResponse",
    "HealthResponse",
    "JobSubmittedResponse",
    "SearchResponse",
]
