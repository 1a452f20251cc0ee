from __future__ import annotations

from typing import Dict

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from .database import settings
from .errors import MatchValidationError, UpstreamFetchError
from .routers import blood_requests, connection_requests, donor, matching

app = FastAPI(title="BloodConnect API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(matching.router)
app.include_router(donor.router)
app.include_router(connection_requests.router)
app.include_router(blood_requests.router)


@app.exception_handler(MatchValidationError)
async def handle_match_validation(_: Request, exc: MatchValidationError) -> JSONResponse:
    return JSONResponse({"error": str(exc)}, status_code=status.HTTP_400_BAD_REQUEST)


@app.exception_handler(RequestValidationError)
async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
    messages = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        messages.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return JSONResponse({"error": "; ".join(messages) or "Invalid request"}, status_code=422)


@app.exception_handler(UpstreamFetchError)
async def handle_upstream_failure(request: Request, exc: UpstreamFetchError) -> JSONResponse:
    logger.error("Upstream failure on {} {}: {}", request.method, request.url.path, exc)
    return JSONResponse({"error": str(exc)}, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


@app.get("/health")
async def healthcheck() -> Dict[str, str]:
    return {"status": "ok"}
