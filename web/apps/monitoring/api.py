import logging

from django.conf import settings
from django.db import DatabaseError, connection
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _db_ok() -> bool:
    try:
        with connection.cursor() as cur:
            cur.execute("SELECT 1")
    except DatabaseError:
        logger.exception("health check: database unreachable")
        return False
    return True


def health_view(_request):
    """Readiness probe: 200 when the orders database answers, 503 otherwise.

    When products are resolved over HTTP the catalog circuit-breaker state is
    reported as well; an open breaker degrades checkout but not readiness.
    """
    db_ok = _db_ok()
    components = {"db": {"ok": db_ok}}

    if getattr(settings, "USE_HTTP_ADAPTERS", False):
        from apps.orders.http_adapters import BreakerState, _catalog_cb

        state = _catalog_cb.state
        components["catalog"] = {"ok": state is not BreakerState.OPEN, "circuit": state.value}

    return JsonResponse({"ok": db_ok, "components": components}, status=200 if db_ok else 503)


def live_view(_request):
    """Liveness probe: the process is up and serving requests."""
    return JsonResponse({"ok": True})
