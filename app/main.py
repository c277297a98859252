"""应用入口：按启用的业务包组装 FastAPI 实例。"""

from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.middleware.access_token import AccessTokenHeaderMiddleware
from app.middleware.request_id import RequestIdMiddleware
from app.packages import get_active_package

package = get_active_package()
package.setup_logging()
settings = package.get_settings()
logger = package.logger

app = FastAPI(title=settings.project_name, debug=settings.debug)
# 进程内唯一的 SSE 注册表，路由通过依赖注入取用
app.state.sse_registry = package.create_sse_registry()

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Access-Token", "X-Request-ID"],
)
app.add_middleware(AccessTokenHeaderMiddleware)
# 最后添加的位于最外层，日志从请求一开始就带上 request_id
app.add_middleware(RequestIdMiddleware)

app.add_exception_handler(HTTPException, package.http_exception_handler)
app.add_exception_handler(RequestValidationError, package.validation_exception_handler)
app.add_exception_handler(Exception, package.generic_exception_handler)


@app.on_event("startup")
async def startup_event() -> None:
    package.init_db()
    logger.info(
        "Package %s running at http://127.0.0.1:%s%s", package.name, settings.app_port, settings.api_v1_str
    )


@app.get("/health")
async def health_check() -> dict:
    """健康检查，供编排器探活。"""
    return package.create_response("OK", {"status": "healthy"})


app.include_router(package.api_router, prefix=settings.api_v1_str)
