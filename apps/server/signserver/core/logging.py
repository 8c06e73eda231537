"""Server logging setup: the shared structlog configuration plus request IDs."""

from signcommon.logging import configure_structlog as _configure_structlog
from signserver.core.request_id import add_request_id


def configure_structlog(debug: bool = True) -> None:
    """Call once from `create_app()` before any routers log anything."""
    _configure_structlog(debug=debug, extra_processors=[add_request_id])
