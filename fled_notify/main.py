# fled_notify/main.py
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fled_notify.api.deps.services import Services
from fled_notify.api.routers import health as health_router
from fled_notify.api.routers import notify as notify_router
from fled_notify.api.routers import tokens as tokens_router
from fled_notify.core.config import settings
from fled_notify.core.logging import log, setup_logging


def create_app(services: Services | None = None) -> FastAPI:
    """
    Build the notify server. ``services`` is injected in tests; when it is
    None the Firebase-backed collaborators are built on first request.
    """
    app = FastAPI(title="FLED Notify Server", version="0.3.0")
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"], allow_credentials=True,
        allow_methods=["*"], allow_headers=["*"],
    )

    @app.middleware("http")
    async def add_trace(request: Request, call_next):
        trace_id = request.headers.get("X-Trace-Id", str(uuid.uuid4()))
        start = time.time()
        response = await call_next(request)
        took = int((time.time() - start) * 1000)
        log.info("request", path=request.url.path, method=request.method, status=response.status_code, took_ms=took, trace_id=trace_id)
        response.headers["X-Trace-Id"] = trace_id
        return response

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(health_router.router)
    app.include_router(notify_router.router)
    app.include_router(tokens_router.router)

    return app


app = create_app()


def run():
    import uvicorn

    setup_logging()
    log.info("notify_server_starting", host=settings.API_HOST, port=settings.API_PORT)
    uvicorn.run(app, host=settings.API_HOST, port=settings.API_PORT)


if __name__ == "__main__":
    run()
