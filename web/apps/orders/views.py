"""HTTP views for the orders app.

Views are kept intentionally small: they validate requests with Pydantic
DTOs, map them to domain objects, delegate to the ``OrderService`` returned
by ``providers.get_order_service()`` and translate domain errors into HTTP
responses:

- ``ValidationError`` (domain or DTO) -> 400 ``VALIDATION_ERROR``
- ``ProductNotFound`` -> 422 ``PRODUCT_NOT_FOUND``
- ``OrderNotFound`` -> 404 ``NOT_FOUND``
- ``InvalidTransition`` / ``ConcurrentModification`` -> 409
- catalog service unreachable -> 503 ``UPSTREAM_UNAVAILABLE``

Idempotency: ``POST /api/orders/`` honours an ``Idempotency-Key`` header.
The first request is processed and its response stored; retries with the
same payload replay it with ``Idempotent-Replay: true``; the same key with a
different payload returns 409. 503 responses are not stored, so a
retry after an outage is processed again. Keys longer than 128 characters
are rejected with 400.
"""

import json
import logging

import httpx
import pydantic
from rest_framework import status
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from . import providers
from .addresses import validate_address
from .errors import (
    ConcurrentModification,
    InvalidTransition,
    OrderError,
    OrderNotFound,
    OrderNumberConflict,
    ProductNotFound,
    ValidationError,
)
from .http_adapters import CircuitOpenError
from .idempotency import MAX_KEY_LENGTH, IdempotencyConflict, finalize, get_or_create_idempotent
from .schemas import (
    AddressCheckDTO,
    AddressIn,
    CreateOrderDTO,
    ListOrdersQuery,
    OrderReadDTO,
    UpdateStatusDTO,
)

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ProductNotFound: status.HTTP_422_UNPROCESSABLE_ENTITY,
    OrderNotFound: status.HTTP_404_NOT_FOUND,
    InvalidTransition: status.HTTP_409_CONFLICT,
    ConcurrentModification: status.HTTP_409_CONFLICT,
    OrderNumberConflict: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _dto_error(exc: pydantic.ValidationError) -> Response:
    errors = json.loads(exc.json(include_url=False, include_context=False))
    return Response({"detail": "VALIDATION_ERROR", "errors": errors}, status=status.HTTP_400_BAD_REQUEST)


def _domain_error_body(exc: OrderError) -> tuple[int, dict]:
    code = ERROR_STATUS.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    body = {"detail": str(exc)}
    if isinstance(exc, ValidationError):
        body["errors"] = exc.messages
    elif exc.detail:
        body.update(exc.detail)
    return code, body


def _order_body(order) -> dict:
    return OrderReadDTO.from_domain(order).model_dump(mode="json")


class OrdersPingView(APIView):
    """Liveness endpoint for the orders module."""

    def get(self, request):
        return Response({"ok": True})


class OrdersCollectionView(APIView):
    """List orders (admin) and place new orders (checkout)."""

    throttle_classes = [ScopedRateThrottle]

    def get_throttles(self):
        # DRF evaluates throttles in initial(), before get/post
        self.throttle_scope = "orders_list" if self.request.method == "GET" else "orders_create"
        return [throttle() for throttle in self.throttle_classes]

    def get(self, request):
        """Return ``{count, limit, offset, results}``, newest first.

        Query params: ``status`` (optional filter), ``limit`` (1-100,
        default 20), ``offset`` (default 0).
        """
        try:
            query = ListOrdersQuery.model_validate(request.query_params.dict())
        except pydantic.ValidationError as e:
            return _dto_error(e)

        service = providers.get_order_service()
        orders = service.list_orders(query.status, query.limit, query.offset)
        return Response(
            {
                "count": service.count_orders(query.status),
                "limit": query.limit,
                "offset": query.offset,
                "results": [_order_body(o) for o in orders],
            },
            status=status.HTTP_200_OK,
        )

    def post(self, request):
        """Place an order.

        Returns:
            Response: 201 with the created order; 200 with the stored body on
            an idempotent replay; 400, 409, 422 or 503 on failure (see the
            module docstring).
        """
        idem_key = request.headers.get("Idempotency-Key")

        # 1) Pydantic validation
        try:
            dto = CreateOrderDTO.model_validate(request.data)
        except pydantic.ValidationError as e:
            return _dto_error(e)

        # 2) Idempotency get-or-create
        rec = None
        if idem_key and len(idem_key) > MAX_KEY_LENGTH:
            return Response(
                {
                    "detail": "VALIDATION_ERROR",
                    "errors": [f"Idempotency-Key must be at most {MAX_KEY_LENGTH} characters"],
                },
                status=status.HTTP_400_BAD_REQUEST,
            )
        if idem_key:
            try:
                existing, rec = get_or_create_idempotent(idem_key, request.data)
            except IdempotencyConflict:
                return Response({"detail": "IDEMPOTENCY_CONFLICT"}, status=status.HTTP_409_CONFLICT)
            if existing:
                if not rec.response_status:
                    return Response({"detail": "IDEMPOTENCY_IN_PROGRESS"}, status=status.HTTP_409_CONFLICT)
                resp = Response(rec.response_body, status=rec.response_status)
                resp["Idempotent-Replay"] = "true"
                return resp

        # 3) Domain
        service = providers.get_order_service()
        try:
            order = service.create_order(
                customer=dto.customer(),
                shipping_address=dto.shipping_address.to_domain(),
                billing_address=dto.billing_address.to_domain() if dto.billing_address else None,
                currency=dto.currency,
                payment_method=dto.payment_method,
                items=[i.to_domain() for i in dto.items],
                notes=dto.notes,
            )
        except OrderError as e:
            status_code, body = _domain_error_body(e)
            if rec:
                # Running out of order numbers is transient; a retry starts over
                if isinstance(e, OrderNumberConflict):
                    rec.delete()
                else:
                    finalize(rec, status_code, body)
            return Response(body, status=status_code)
        except (httpx.HTTPError, CircuitOpenError):
            logger.exception("catalog unavailable while placing order")
            if rec:
                rec.delete()
            return Response({"detail": "UPSTREAM_UNAVAILABLE"}, status=status.HTTP_503_SERVICE_UNAVAILABLE)
        except Exception:
            # Release the key so a retry is processed again
            if rec:
                rec.delete()
            raise

        # 4) Response
        body = _order_body(order)
        if rec:
            finalize(rec, status.HTTP_201_CREATED, body, order_id=order.id)
        return Response(body, status=status.HTTP_201_CREATED)


class OrderByNumberView(APIView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_detail"

    def get(self, request, order_number: str):
        try:
            order = providers.get_order_service().get_order_by_number(order_number)
        except OrderNotFound:
            return Response({"detail": "NOT_FOUND"}, status=status.HTTP_404_NOT_FOUND)
        return Response(_order_body(order), status=status.HTTP_200_OK)


class OrderStatusView(APIView):
    """Admin endpoint driving the order status lifecycle."""

    throttle_classes = [ScopedRateThrottle]
    throttle_scope = "orders_admin"

    def patch(self, request, oid):
        try:
            dto = UpdateStatusDTO.model_validate(request.data)
        except pydantic.ValidationError as e:
            return _dto_error(e)

        try:
            order = providers.get_order_service().update_order_status(
                oid,
                dto.status,
                dto.payment_status,
                force=dto.force,
                expected_version=dto.expected_version,
            )
        except OrderError as e:
            status_code, body = _domain_error_body(e)
            return Response(body, status=status_code)
        return Response(_order_body(order), status=status.HTTP_200_OK)


class ValidateAddressView(APIView):
    """Advisory address check used by the checkout form.

    Always answers 200 with ``{valid, errors}`` once the payload has the
    expected shape.
    """

    def post(self, request):
        try:
            dto = AddressIn.model_validate(request.data)
        except pydantic.ValidationError as e:
            return _dto_error(e)
        check = validate_address(dto.to_domain())
        body = AddressCheckDTO(valid=check.valid, errors=check.errors)
        return Response(body.model_dump(), status=status.HTTP_200_OK)
