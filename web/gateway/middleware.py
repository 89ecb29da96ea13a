"""Gateway middleware: request ids, access logging and body size limits.

``RequestIdMiddleware`` gives every request an identifier, reusing the
client's ``X-Request-ID`` header when present and generating a UUIDv4
otherwise. The id is stored on ``request.request_id`` and in
``REQUEST_ID_CTX`` so loggers and the HTTP catalog client can pick it up
without it being passed around, and it is echoed on the response. One
structured access-log line is written per request.

``ApiSizeLimitMiddleware`` rejects ``/api/`` bodies larger than
``API_MAX_BYTES`` before any view parses them.
"""

import contextvars
import logging
import os
import time
import uuid

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

REQUEST_ID_CTX = contextvars.ContextVar("request_id", default="-")
MAX_API_BYTES = int(os.getenv("API_MAX_BYTES", str(1 * 1024 * 1024)))

logger = logging.getLogger("gateway.access")


class RequestIdMiddleware(MiddlewareMixin):
    HEADER = "HTTP_X_REQUEST_ID"       # incoming header as found in request.META
    RESPONSE_HEADER = "X-Request-ID"   # header added to outgoing responses

    def process_request(self, request):
        rid = request.META.get(self.HEADER) or str(uuid.uuid4())
        request.request_id = rid
        request._started_at = time.monotonic()
        REQUEST_ID_CTX.set(rid)

    def process_response(self, request, response):
        rid = getattr(request, "request_id", REQUEST_ID_CTX.get())
        response[self.RESPONSE_HEADER] = rid

        started = getattr(request, "_started_at", None)
        logger.info(
            "request handled",
            extra={
                "method": request.method,
                "path": request.path,
                "status": response.status_code,
                "duration_ms": round((time.monotonic() - started) * 1000, 2) if started else None,
            },
        )
        return response


class ApiSizeLimitMiddleware(MiddlewareMixin):
    def process_request(self, request):
        if request.path.startswith("/api/"):
            clen = request.META.get("CONTENT_LENGTH")
            if clen and clen.isdigit() and int(clen) > MAX_API_BYTES:
                return JsonResponse({"detail": "PAYLOAD_TOO_LARGE"}, status=413)
