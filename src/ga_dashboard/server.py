"""FastAPI server that exposes the GA4 new users dashboard."""
from __future__ import annotations

import logging
import secrets
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncIterator, Dict, Optional

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.responses import JSONResponse
from fastapi.security import HTTPBasic

from .client import GoogleApiClient
from .configuration import DashboardConfig
from .credentials import ServiceAccountTokenProvider
from .logging_config import setup_logging
from .service import DashboardService

logger = logging.getLogger(__name__)

CACHE_HEADERS = {"Cache-Control": "s-maxage=60, stale-while-revalidate=300"}
NO_STORE_HEADERS = {"Cache-Control": "no-store"}

basic_auth = HTTPBasic(realm="Protected", auto_error=False)


@lru_cache()
def get_config() -> DashboardConfig:
    return DashboardConfig.from_env()


@asynccontextmanager
async def lifespan(target_app: FastAPI) -> AsyncIterator[None]:
    setup_logging(get_config().log_level)
    async with httpx.AsyncClient() as http_client:
        target_app.state.http_client = http_client
        yield


app = FastAPI(title="GA4 New Users Dashboard API", version="0.1.0", lifespan=lifespan)


def get_service(request: Request, config: DashboardConfig = Depends(get_config)) -> DashboardService:
    return DashboardService(
        config=config,
        client=GoogleApiClient(request.app.state.http_client),
        token_provider=ServiceAccountTokenProvider(config),
    )


async def require_password(request: Request, config: DashboardConfig = Depends(get_config)) -> None:
    """Shared-password Basic Auth gate; a no-op when DASHBOARD_PASSWORD is unset."""
    expected = config.dashboard_password
    if not expected:
        return
    credentials = await basic_auth(request)
    if credentials is None or not secrets.compare_digest(
        credentials.password.encode("utf-8"), expected.encode("utf-8")
    ):
        raise HTTPException(
            status_code=401,
            detail="Unauthorized",
            headers={"WWW-Authenticate": 'Basic realm="Protected"'},
        )


@app.get("/health")
async def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/dashboard", dependencies=[Depends(require_password)])
async def dashboard_endpoint(
    window: Optional[str] = Query(None),
    service: DashboardService = Depends(get_service),
) -> JSONResponse:
    try:
        data = await service.build_dashboard(window)
    except Exception as exc:
        logger.exception("Failed to build dashboard")
        message = str(exc) or "Failed to load dashboard data."
        return JSONResponse({"error": message}, status_code=500, headers=NO_STORE_HEADERS)
    return JSONResponse(data.as_dict(), headers=CACHE_HEADERS)


@app.get("/api/properties/{property_id}", dependencies=[Depends(require_password)])
async def property_detail_endpoint(
    property_id: str,
    window: Optional[str] = Query(None),
    service: DashboardService = Depends(get_service),
) -> JSONResponse:
    if not property_id.strip():
        return JSONResponse({"error": "Property id is required."}, status_code=400)
    try:
        data = await service.build_property_detail(property_id.strip(), window)
    except Exception:
        logger.exception("Failed to build property detail for %s", property_id)
        return JSONResponse({"error": "Failed to load property data."}, status_code=500, headers=NO_STORE_HEADERS)
    return JSONResponse(data.as_dict(), headers=CACHE_HEADERS)
