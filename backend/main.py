"""
Tabie Backend API

A FastAPI backend for splitting a restaurant bill item by item.
This module sets up the app and mounts routers - all endpoint logic is in routers/.
"""

import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from database import init_db
from utils.tab_store import TabNotFoundError

# Import routers
from routers import auth, profile, tabs, claims, payments, live, receipts, notifications


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Create database tables
init_db()

# Create receipts directory if not exists
DATA_DIR = os.getenv("DATA_DIR", "data")
RECEIPT_DIR = os.path.join(DATA_DIR, "receipts")
os.makedirs(RECEIPT_DIR, exist_ok=True)

ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if origin.strip()
]

CONTENT_SECURITY_POLICY = (
    "default-src 'none'; "
    "script-src 'self'; "
    "img-src 'self' data:; "
    "connect-src 'self'; "
    "frame-ancestors 'none'"
)

# Initialize FastAPI app
app = FastAPI(
    title="Tabie API",
    description="API for splitting a restaurant tab item by item",
    version="1.0.0"
)

# Mount static files for receipts
app.mount("/static/receipts", StaticFiles(directory=RECEIPT_DIR), name="receipts")


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["Content-Security-Policy"] = CONTENT_SECURITY_POLICY
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    return response


# CORS middleware (added last so it wraps the security headers)
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TabNotFoundError)
async def tab_not_found_handler(request: Request, exc: TabNotFoundError):
    # The tab was deleted between the read and the write
    return JSONResponse(status_code=404, content={"detail": "Tab not found"})


# Include routers
app.include_router(auth.router)
app.include_router(profile.router)
app.include_router(tabs.router)
app.include_router(claims.router)
app.include_router(payments.router)
app.include_router(live.router)
app.include_router(receipts.router)
app.include_router(notifications.router)


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
