"""教材库业务包：教材树、页面资源、学院账号与认证。"""

from app.packages.types import AppPackage

from .api.v1 import api_router
from .core.config import get_settings
from .core.exceptions import generic_exception_handler, http_exception_handler, validation_exception_handler
from .core.logger import logger, setup_logging
from .core.responses import create_response
from .db.init_db import init_db
from .services.sse import SSEConnectionRegistry


def create_sse_registry() -> SSEConnectionRegistry:
    return SSEConnectionRegistry(keepalive_seconds=get_settings().sse_keepalive_seconds)


package = AppPackage(
    name="library",
    api_router=api_router,
    get_settings=get_settings,
    setup_logging=setup_logging,
    logger=logger,
    init_db=init_db,
    create_response=create_response,
    http_exception_handler=http_exception_handler,
    validation_exception_handler=validation_exception_handler,
    generic_exception_handler=generic_exception_handler,
    create_sse_registry=create_sse_registry,
)

__all__ = ["package", "api_router", "get_settings"]
