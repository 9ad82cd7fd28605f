"""Repository implementations, one module per kind of store."""
