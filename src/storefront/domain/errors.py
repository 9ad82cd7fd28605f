"""Domain-layer error definitions.

Each error kind carries a machine-readable ``code``. Mapping codes onto a
transport (HTTP status, gRPC code, ...) is left to the outer layers.
"""

from typing import ClassVar

# ============================================================================
#                           General domain errors
# ============================================================================


class DomainError(Exception):
    """Base class for domain-layer errors."""

    code: ClassVar[str] = "domain_error"


class ValidationError(DomainError):
    """Raised when caller-supplied data violates an aggregate invariant."""

    code = "validation"

    def __init__(self, field: str, reason: str) -> None:
        super().__init__(f"Invalid {field}: {reason}")
        self.field = field
        self.reason = reason


class NotFoundError(DomainError):
    """Raised when an aggregate does not exist or has been soft-deleted."""

    code = "not_found"
    entity: ClassVar[str] = "Entity"

    def __init__(self, aggregate_id: str) -> None:
        super().__init__(f"{self.entity} {aggregate_id} not found.")
        self.aggregate_id = aggregate_id


class ConflictError(DomainError):
    """Raised on uniqueness violations and double cancellation."""

    code = "conflict"


class InvalidStateError(DomainError):
    """Raised when an aggregate is in an invalid state for the attempted action."""

    code = "invalid_state"


class InsufficientResourceError(DomainError):
    """Raised when a reservation would drive a resource below zero."""

    code = "insufficient_resource"


class AlreadyDeletedError(InvalidStateError):
    """Raised when deleting an aggregate that is already soft-deleted."""

    def __init__(self, aggregate_id: str) -> None:
        super().__init__(f"Aggregate {aggregate_id} is already deleted.")
        self.aggregate_id = aggregate_id


# ============================================================================
#                           User related errors
# ============================================================================


class UserNotFoundError(NotFoundError):
    """Raised when a user cannot be found."""

    entity = "User"


class EmailAlreadyRegisteredError(ConflictError):
    """Raised when registering an email that already belongs to a user."""

    def __init__(self, email: str) -> None:
        super().__init__(f"Email {email!r} is already registered.")
        self.email = email


# ============================================================================
#                           Product related errors
# ============================================================================


class ProductNotFoundError(NotFoundError):
    """Raised when a product cannot be found."""

    entity = "Product"


class ProductNameTakenError(ConflictError):
    """Raised when a product name is already used by another product."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Product name {name!r} is already taken.")
        self.name = name


class InsufficientStockError(InsufficientResourceError):
    """Raised when a stock adjustment would leave a negative stock level."""

    def __init__(self, product_id: str, available: int, delta: int) -> None:
        super().__init__(
            f"Product {product_id} has {available} in stock; "
            f"cannot apply a change of {delta}."
        )
        self.product_id = product_id
        self.available = available
        self.delta = delta


# ============================================================================
#                           Order related errors
# ============================================================================


class OrderNotFoundError(NotFoundError):
    """Raised when an order cannot be found."""

    entity = "Order"


class InvalidStatusTransitionError(InvalidStateError):
    """Raised when an order status transition is not allowed."""

    def __init__(self, order_id: str, current: str, target: str) -> None:
        super().__init__(
            f"Order {order_id} cannot transition from {current!r} to {target!r}."
        )
        self.order_id = order_id
        self.current = current
        self.target = target


class OrderAlreadyCanceledError(ConflictError):
    """Raised when cancelling an order that is already canceled."""

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Order {order_id} is already canceled.")
        self.order_id = order_id


# ============================================================================
#                           Audit related errors
# ============================================================================


class AuditLogNotFoundError(NotFoundError):
    """Raised when an audit log record cannot be found."""

    entity = "AuditLog"


class DuplicateAuditLogError(ConflictError):
    """Raised when an audit log with the same ID has already been recorded."""

    def __init__(self, audit_id: str) -> None:
        super().__init__(f"Audit log {audit_id} is already recorded.")
        self.audit_id = audit_id
