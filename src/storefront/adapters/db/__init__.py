"""SQLAlchemy plumbing: engine factory, metadata, custom types and the schema."""
