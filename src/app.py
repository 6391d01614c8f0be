"""Live Sales FastAPI application.

Web server for recording live/bazar sales and checking orders out. Commands
are processed synchronously inside the sales domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# The domain is initialized at module level so uvicorn workers share it.
# PROTEAN_ENV selects the config overlay in sales/domain.toml.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sales.domain import sales  # noqa: E402
from sales.utils.logging import add_context, clear_context  # noqa: E402

sales.init()

# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Live Sales API",
    description="Order aggregation and checkout pricing for live and bazar sales",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the sales domain context for every request except the health check."""
    if request.url.path == "/health":
        return await call_next(request)
    clear_context()
    add_context(method=request.method, path=request.url.path)
    with sales.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from sales.api import (  # noqa: E402
    checkout_router,
    coupon_router,
    gift_router,
    register_error_handlers,
    sale_router,
)

app.include_router(sale_router)
app.include_router(checkout_router)
app.include_router(coupon_router)
app.include_router(gift_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(content={"status": "ok", "domain": {"name": sales.name}})
