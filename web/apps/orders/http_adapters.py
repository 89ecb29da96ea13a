"""HTTP catalog client with retries, a circuit breaker and context headers.

``HttpCatalogClient`` implements ``CatalogPort`` against the catalog
service (``services/catalog``). It adds:

- Request correlation: forwards ``X-Request-ID`` from the ContextVar set by
  the gateway middleware.
- A circuit breaker shared by all client instances, so an unhealthy
  catalog is not hammered; after ``HTTP_CIRCUIT_RESET_TIMEOUT`` seconds a
  single probe is let through.
- Exponential backoff retries on transport errors and 5xx responses.

A 404 is a business answer (``ProductNotFound``), never a circuit failure.
"""

import threading
import time
from enum import Enum
from typing import Optional

import httpx
from django.conf import settings

from gateway.middleware import REQUEST_ID_CTX

from .domain import CatalogPort, ProductSnapshot
from .errors import ProductNotFound


class CircuitOpenError(RuntimeError):
    """The breaker refused the call; the catalog is considered down."""


class BreakerState(str, Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


# ---------------- Circuit Breaker ---------------- #

class CircuitBreaker:
    """Thread-safe CLOSED/OPEN/HALF_OPEN breaker.

    ``fail_threshold`` consecutive failures open the circuit. Once
    ``reset_timeout`` seconds have passed it turns HALF_OPEN and admits one
    probe; success closes it, failure re-opens it.
    """

    def __init__(self, name: str, fail_threshold: int, reset_timeout: float):
        self.name = name
        self.fail_threshold = fail_threshold
        self.reset_timeout = reset_timeout
        self._lock = threading.RLock()
        self._failures = 0
        self._state = BreakerState.CLOSED
        self._opened_at = 0.0
        self._probing = False

    @property
    def state(self) -> BreakerState:
        with self._lock:
            if (
                self._state is BreakerState.OPEN
                and time.monotonic() - self._opened_at >= self.reset_timeout
            ):
                self._state = BreakerState.HALF_OPEN
                self._probing = False
            return self._state

    def before_call(self) -> BreakerState:
        """Admit or refuse a call.

        Raises:
            CircuitOpenError: While OPEN, or while a HALF_OPEN probe is
                already running.
        """
        with self._lock:
            st = self.state
            if st is BreakerState.OPEN:
                raise CircuitOpenError(f"CIRCUIT_OPEN:{self.name}")
            if st is BreakerState.HALF_OPEN:
                if self._probing:
                    raise CircuitOpenError(f"CIRCUIT_HALF_OPEN_BUSY:{self.name}")
                self._probing = True
            return st

    def on_success(self):
        with self._lock:
            self._failures = 0
            self._state = BreakerState.CLOSED
            self._probing = False

    def on_failure(self):
        with self._lock:
            self._failures += 1
            if self._state is BreakerState.HALF_OPEN or (
                self._failures >= self.fail_threshold and self._state is not BreakerState.OPEN
            ):
                self._state = BreakerState.OPEN
                self._opened_at = time.monotonic()
                self._probing = False

    def on_finish(self):
        with self._lock:
            if self._state is BreakerState.HALF_OPEN:
                self._probing = False


_catalog_cb = CircuitBreaker(
    "catalog",
    getattr(settings, "HTTP_CIRCUIT_FAIL_THRESHOLD", 5),
    getattr(settings, "HTTP_CIRCUIT_RESET_TIMEOUT", 30.0),
)


# ---------------- Helpers ---------------- #

def _request_headers(extra: Optional[dict] = None) -> dict:
    headers: dict[str, str] = {}
    rid = REQUEST_ID_CTX.get()
    if rid and rid != "-":
        headers["X-Request-ID"] = rid
    if extra:
        headers.update(extra)
    return headers


def _retry_policy():
    """Return ``(max_retries, backoff_base_seconds)`` from settings."""
    return (
        getattr(settings, "HTTP_RETRY_MAX", 3),
        getattr(settings, "HTTP_RETRY_BACKOFF_BASE", 0.15),
    )


def _should_retry(resp: Optional[httpx.Response], exc: Optional[Exception]) -> bool:
    # Only transport errors and 5xx are worth another attempt
    if exc is not None:
        return True
    return resp is not None and 500 <= resp.status_code < 600


def _snapshot(product_id: int, data: dict) -> ProductSnapshot:
    return ProductSnapshot(
        product_id=data.get("id", product_id),
        name=data["name"],
        image=data.get("image"),
        price_cents=int(data["price_cents"]),
        sale_price_cents=(
            int(data["sale_price_cents"]) if data.get("sale_price_cents") is not None else None
        ),
    )


# ---------------- Catalog Adapter ---------------- #

class HttpCatalogClient(CatalogPort):
    """Resolves products through the catalog service's ``/products/{id}``."""

    def __init__(self, base_url: str | None = None, timeout: float | None = None):
        self.base_url = (base_url or settings.CATALOG_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.HTTP_TIMEOUT_SECS

    def resolve(self, product_id: int) -> ProductSnapshot:
        """Fetch the current snapshot of ``product_id``.

        Mappings:
        - 200 -> ``ProductSnapshot``
        - 404 -> ``ProductNotFound`` (counts as a healthy answer)

        Raises:
            ProductNotFound: When the catalog does not know the product.
            CircuitOpenError: When the breaker refuses the call.
            httpx.RequestError: Transport errors once retries are exhausted.
            httpx.HTTPStatusError: 5xx after retries, or other 4xx.
        """
        max_retries, backoff = _retry_policy()
        cap = getattr(settings, "HTTP_RETRY_MAX_SLEEP", 0.5)
        tries = 0

        state = _catalog_cb.before_call()
        headers = _request_headers({"X-Circuit-State": state.value, "X-Retry-Count": "0"})
        url = f"{self.base_url}/products/{product_id}"

        try:
            with httpx.Client(timeout=self.timeout) as client:
                while True:
                    resp = None
                    exc = None
                    try:
                        resp = client.get(url, headers=headers)
                        if resp.status_code == 200:
                            _catalog_cb.on_success()
                            return _snapshot(product_id, resp.json())
                        if resp.status_code == 404:
                            _catalog_cb.on_success()
                            raise ProductNotFound(product_id)
                        if not _should_retry(resp, None):
                            resp.raise_for_status()
                    except httpx.RequestError as e:
                        exc = e

                    tries += 1
                    headers["X-Retry-Count"] = str(tries)

                    if tries > max_retries or not _should_retry(resp, exc):
                        _catalog_cb.on_failure()
                        if exc:
                            raise exc
                        resp.raise_for_status()

                    time.sleep(min(backoff * (2 ** (tries - 1)), cap))
        finally:
            _catalog_cb.on_finish()
