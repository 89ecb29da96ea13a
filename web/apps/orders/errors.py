"""Error taxonomy for the order engine.

Every error is a ``ValueError`` whose string form is a stable, upper-case
error code (``str(err) == "PRODUCT_NOT_FOUND"``). Views map the code to an
HTTP status; extra context travels in ``err.detail``.
"""


class OrderError(ValueError):
    """Base class for order engine failures."""

    code = "ORDER_ERROR"

    def __init__(self, detail=None):
        super().__init__(self.code)
        self.detail = detail


class ValidationError(OrderError):
    """Malformed input rejected before anything is persisted.

    ``detail`` is a list of human-readable messages.
    """

    code = "VALIDATION_ERROR"

    def __init__(self, *messages: str):
        super().__init__(list(messages))

    @property
    def messages(self) -> list[str]:
        return self.detail


class ProductNotFound(OrderError):
    code = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id):
        super().__init__({"product_id": product_id})
        self.product_id = product_id


class OrderNotFound(OrderError):
    code = "NOT_FOUND"

    def __init__(self, ref):
        super().__init__({"order": str(ref)})
        self.ref = ref


class InvalidTransition(OrderError):
    """A status or payment-status move the lifecycle does not allow."""

    code = "INVALID_TRANSITION"

    def __init__(self, field: str, current: str, requested: str):
        super().__init__({"field": field, "from": current, "to": requested})
        self.field = field
        self.current = current
        self.requested = requested


class ConcurrentModification(OrderError):
    """The order changed between read and write (version mismatch)."""

    code = "CONCURRENT_MODIFICATION"

    def __init__(self, order_id, expected_version: int):
        super().__init__({"order": str(order_id), "expected_version": expected_version})


class OrderNumberTaken(OrderError):
    """Raised by repositories when a generated order number already exists."""

    code = "ORDER_NUMBER_TAKEN"


class OrderNumberConflict(OrderError):
    """No free order number found within the configured attempts."""

    code = "ORDER_NUMBER_CONFLICT"
