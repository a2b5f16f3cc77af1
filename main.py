# main.py
import asyncio
import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.cache import build_cache
from app.core.config import settings
from app.core.logging_config import configure_logging
from app.api.api import api_router
from app.api.errors import register_exception_handlers
from app.api.github import cache_router, github_router
from app.api.projects import project_router
from app.api.tasks import task_router
from app.integrations.github_client import GitHubClient

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger("app")

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    description="Projects, tasks and their GitHub repositories"
)

# shared resources, one per process
app.state.cache = build_cache(settings.CACHE_BACKEND, settings.REDIS_URL, settings.CACHE_TTL)
app.state.github_client = GitHubClient(
    base_url=settings.GITHUB_API_URL,
    token=settings.GITHUB_TOKEN,
    timeout=settings.GITHUB_TIMEOUT,
    per_page=settings.GITHUB_PER_PAGE,
)

# CORS配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - start) * 1000
    level = logging.ERROR if response.status_code >= 400 else logging.INFO
    logger.log(level, "%s %s - %s - %.0f ms", request.method, request.url.path, response.status_code, elapsed_ms)
    return response


# 注册路由
app.include_router(api_router)
app.include_router(project_router, prefix="/api")
app.include_router(task_router, prefix="/api")
app.include_router(github_router, prefix="/api")
app.include_router(cache_router, prefix="/api")


async def _sweep_cache(interval: int):
    while True:
        await asyncio.sleep(interval)
        app.state.cache.purge_expired()


@app.on_event("startup")
async def startup_event():
    """应用启动事件"""
    # 创建数据库表
    from app.core.database import engine, Base
    from app.models import registry  # noqa: F401  registers every model
    Base.metadata.create_all(bind=engine)

    app.state.started_at = time.time()
    app.state.sweeper = asyncio.create_task(_sweep_cache(settings.CACHE_SWEEP_INTERVAL))
    logger.info("%s %s started (%s)", settings.APP_NAME, settings.VERSION, settings.ENVIRONMENT)


@app.on_event("shutdown")
async def shutdown_event():
    sweeper = getattr(app.state, "sweeper", None)
    if sweeper:
        sweeper.cancel()
    app.state.github_client.close()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
