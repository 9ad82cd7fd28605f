"""Default implementations of the domain services."""

from .audit import AuditConsumer, AuditService
from .orders import DefaultOrderService
from .products import DefaultProductService
from .users import DefaultUserService

__all__ = [
    "AuditConsumer",
    "AuditService",
    "DefaultOrderService",
    "DefaultProductService",
    "DefaultUserService",
]
