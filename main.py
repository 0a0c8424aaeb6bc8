"""
main.py — FastAPI entrypoint for the permafrost methane risk API.

Usage:
    uvicorn main:app --reload
"""

import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from permafrost_risk.cache import ResponseCache  # noqa: E402
from permafrost_risk.router import router  # noqa: E402

# ──────────────────────────────────────────────
# Logging
# ──────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
)
logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────
# FastAPI App
# ──────────────────────────────────────────────
app = FastAPI(
    title="Permafrost Methane Risk",
    description=(
        "Fuses NASA POWER temperature and Sentinel-5P methane retrievals into "
        "per-region permafrost thaw risk, with provenance on every value."
    ),
    version="1.0.0",
)

# CORS: allow all origins for development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Provider responses are shared across requests for the cache TTL
app.state.response_cache = ResponseCache()

app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "permafrost-methane-risk"}
