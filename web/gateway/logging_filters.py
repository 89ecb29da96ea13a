"""Logging filter that stamps records with the current request id.

Referenced from ``settings.LOGGING`` so the JSON formatter can always emit
``%(request_id)s``; records produced outside a request carry ``"-"``.
"""

from logging import Filter, LogRecord

from .middleware import REQUEST_ID_CTX


class RequestIdFilter(Filter):
    def filter(self, record: LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = REQUEST_ID_CTX.get()
        return True
