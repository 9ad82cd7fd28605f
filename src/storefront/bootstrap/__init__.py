"""Bootstrap (composition root) for Storefront.

Assembles the application at runtime: picks a concrete repository per
aggregate from the settings, wires the transaction factory, event bus, cache
and audit pipeline, and hands the finished services to entrypoints.

Import rules:
- Entry points import *this* package (not adapters/service_layer/domain).
- This package may import every other Storefront package.
- Inner layers must not import `storefront.bootstrap`.
"""

from .bootstrap import AppContainer, bootstrap

__all__ = ["AppContainer", "bootstrap"]
