"""Interfaces (ports) between the Storefront service layer and its adapters.

Abstract contracts only: repositories, transactions, caches, the event bus,
outbound messaging, ID generation and the domain service contracts.
Implementations live in `storefront.adapters` and `storefront.service_layer`.
"""
