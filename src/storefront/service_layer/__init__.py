"""Service layer: domain services, the event bus and its handlers."""
