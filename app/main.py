import time

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

from app.bootstrap import Runtime, setup_logging
from app.dependencies import get_runtime
from app.errors import DependencyError
from app.exception_handlers import register_exception_handlers
from app.routers import resources, tools
from app.settings import get_settings
from safequery.prom import REGISTRY

settings = get_settings()
setup_logging(settings.log_level)

# ----------------------------------------------------------------------------
#  App definition
# ----------------------------------------------------------------------------
application = FastAPI(
    title="SafeQuery",
    version=settings.app_version,
    description="Schema introspection and safe read-only SQL for agents",
)
register_exception_handlers(application)

# Register only versioned API
application.include_router(tools.router, prefix="/api/v1")
application.include_router(resources.router, prefix="/api/v1")


# ----------------------------------------------------------------------------
#  Prometheus Metrics Middleware
# ----------------------------------------------------------------------------
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "method", "status_code"],
    registry=REGISTRY,
)
REQUEST_LATENCY = Histogram(
    "http_request_latency_seconds",
    "Request latency (seconds)",
    ["path", "method"],
    registry=REGISTRY,
)


@application.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.perf_counter()
    response: Response = await call_next(request)
    elapsed = time.perf_counter() - start
    route = request.scope.get("route")
    path = getattr(route, "path", None) or request.url.path
    name = getattr(route, "name", None) or path

    REQUEST_COUNT.labels(
        path=name,
        method=request.method,
        status_code=str(getattr(response, "status_code", 500)),
    ).inc()
    REQUEST_LATENCY.labels(path=name, method=request.method).observe(elapsed)
    return response


# ----------------------------------------------------------------------------
#  System Endpoints
# ----------------------------------------------------------------------------
@application.get("/healthz", response_class=PlainTextResponse, tags=["system"])
def healthz() -> str:
    return "ok"


@application.get("/readyz", response_class=PlainTextResponse, tags=["system"])
def readyz(runtime: Runtime = Depends(get_runtime)) -> str:
    """Readiness probe: ping the configured database through the runtime adapter."""
    try:
        runtime.adapter.ping()
        return "ready"
    except Exception as exc:
        raise DependencyError(message="not ready", details=[str(exc)]) from exc


@application.get("/", tags=["system"])
def root():
    return {"status": "ok", "message": "SafeQuery API is running", "version": settings.app_version}


@application.get("/metrics", tags=["system"])
def metrics():
    data = generate_latest(REGISTRY)
    return Response(content=data, media_type=CONTENT_TYPE_LATEST)


app = application
