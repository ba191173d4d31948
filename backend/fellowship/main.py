import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Ensure all SQLAlchemy models are imported so relationships resolve
import fellowship.models  # noqa: F401

from fellowship.api import (
    attendance,   # /attendance
    branches,     # /branches
    expenses,     # /expenses
    groups,       # /groups
    income,       # /income
    pledges,      # /pledges, /payments
    reports,      # /reports
)

# Ops/system endpoints (/health, /version)
from fellowship.api.system import APP_NAME, APP_VERSION, router as system_router

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

DEFAULT_ORIGINS = [
    "http://localhost:3000", "http://127.0.0.1:3000",
    "http://localhost:5173", "http://127.0.0.1:5173",
]


def _cors_origins():
    raw = os.getenv("CORS_ORIGINS")
    if not raw:
        return DEFAULT_ORIGINS
    return [o.strip() for o in raw.split(",") if o.strip()]


app = FastAPI(title=APP_NAME, version=APP_VERSION)

# --- CORS for local frontend dev ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(system_router)  # /health, /version

app.include_router(branches.router)
app.include_router(groups.router)

# Finance
app.include_router(income.router)
app.include_router(expenses.router)
app.include_router(pledges.router)
app.include_router(pledges.payments_router)

app.include_router(attendance.router)
app.include_router(reports.router)
