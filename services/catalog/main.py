"""Catalog service API built with FastAPI.

Exposes a health probe and a read-only product lookup that the orders
gateway calls once per line item when it prices a new order. Persistence
is delegated to the SQLAlchemy-backed ``repo.CatalogRepo``.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel
from pythonjsonlogger import jsonlogger
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from repo import CatalogRepo, engine, init_db

logger = logging.getLogger("catalog")
if not logger.handlers:
    h = logging.StreamHandler()
    h.setFormatter(jsonlogger.JsonFormatter("%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s"))
    logger.addHandler(h)
    logger.setLevel(logging.INFO)

DB_WAIT_SECS = 30


def _wait_for_db(deadline_secs: float = DB_WAIT_SECS) -> None:
    deadline = time.time() + deadline_secs
    while True:
        try:
            with engine.connect() as conn:
                conn.execute(text("select 1"))
            return
        except OperationalError:
            if time.time() > deadline:
                raise
            time.sleep(1)


@asynccontextmanager
async def lifespan(app: FastAPI):
    _wait_for_db()
    init_db()
    yield


app = FastAPI(title="Catalog Service", lifespan=lifespan)


class ProductOut(BaseModel):
    """Public product view consumed by the orders gateway.

    Attributes:
        image: Primary image URL, if the product has any images.
        sale_price_cents: Discounted price in cents, or None when not on sale.
    """
    id: int
    name: str
    image: str | None = None
    price_cents: int
    sale_price_cents: int | None = None
    in_stock: bool


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/products/{product_id}", response_model=ProductOut)
def get_product(product_id: int):
    """Look up one product by id.

    Raises:
        HTTPException: 404 with ``PRODUCT_NOT_FOUND`` when the id is unknown.
    """
    product = CatalogRepo().get(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="PRODUCT_NOT_FOUND")
    return product


@app.middleware("http")
async def add_request_id(request: Request, call_next):
    rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = rid
    start = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
    finally:
        logger.info(
            "request handled",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
    response.headers["X-Request-ID"] = rid
    return response
