from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from .access_gate import access_gate_middleware
from .errors import PortfolioError
from .routes_auth import router as auth_router
from .routes_blog import admin_router as blog_admin_router, router as blog_router
from .routes_dashboard import router as dashboard_router
from .routes_gallery import admin_router as gallery_admin_router, router as gallery_router
from .routes_messages import admin_router as messages_admin_router, router as messages_router
from .routes_profile import admin_router as profile_admin_router, router as profile_router
from .routes_projects import admin_router as projects_admin_router, router as projects_router
from .routes_settings import admin_router as settings_admin_router, router as settings_router
from .settings import get_settings

settings = get_settings()
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("portfolio")

app = FastAPI(title=settings.app_name)

app.middleware("http")(access_gate_middleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    logger.warning("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc)
    return JSONResponse({"detail": str(exc)}, status_code=exc.status_code)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url)
    return PlainTextResponse("Internal Server Error", status_code=500)


@app.get("/ping")
async def ping():
    return {"status": "ok"}


app.include_router(auth_router)
app.include_router(settings_router)
app.include_router(settings_admin_router)
app.include_router(projects_router)
app.include_router(projects_admin_router)
app.include_router(blog_router)
app.include_router(blog_admin_router)
app.include_router(gallery_router)
app.include_router(gallery_admin_router)
app.include_router(messages_router)
app.include_router(messages_admin_router)
app.include_router(profile_router)
app.include_router(profile_admin_router)
app.include_router(dashboard_router)
