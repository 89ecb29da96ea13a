"""Idempotent order submission.

A checkout page that retries ``POST /api/orders/`` after a timeout must not
place the order twice. Clients send an ``Idempotency-Key`` header; the first
request with a key records a hash of its payload and, once handled, the
response it produced. A retry with the same key and payload gets that
response back; the same key with a different payload is a conflict.
"""

import hashlib
import json

from django.db import IntegrityError, transaction

from .models import IdempotencyKey

MAX_KEY_LENGTH = IdempotencyKey._meta.get_field("key").max_length


class IdempotencyConflict(ValueError):
    """The key was already used for a different payload."""

    def __init__(self):
        super().__init__("IDEMPOTENCY_CONFLICT")


def request_hash(payload: dict) -> str:
    """SHA-256 of the payload serialized with sorted keys."""
    body = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(body.encode("utf-8")).hexdigest()


@transaction.atomic
def get_or_create_idempotent(key: str, payload: dict):
    """Claim ``key`` for this payload, or return the earlier claim.

    Returns:
        tuple[bool, IdempotencyKey]: ``(existing, rec)``; ``existing`` is
        False when this call created the record and the caller must
        ``finalize`` it.

    Raises:
        IdempotencyConflict: If the key is stored with another payload hash.
    """
    h = request_hash(payload)

    try:
        # Savepoint so a duplicate key only rolls back this insert
        with transaction.atomic():
            rec = IdempotencyKey.objects.create(
                key=key, request_hash=h, response_status=0, response_body={}
            )
            return False, rec
    except IntegrityError:
        rec = IdempotencyKey.objects.select_for_update().get(key=key)
        if rec.request_hash != h:
            raise IdempotencyConflict()
        return True, rec


def finalize(rec: IdempotencyKey, status_code: int, body: dict, order_id=None):
    """Store the response replayed to later retries of the same request."""
    rec.response_status = status_code
    rec.response_body = body
    if order_id is not None:
        rec.order_id = order_id
    rec.save(update_fields=["response_status", "response_body", "order"])
