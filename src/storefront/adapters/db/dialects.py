"""Supported database dialect names.

Centralizing these names as an Enum avoids scattering string literals
(e.g., "postgresql", "sqlite") throughout the adapters.
"""

from enum import Enum


class DialectName(str, Enum):
    """Enumeration of supported SQLAlchemy dialect names.

    Attributes:
        POSTGRES: PostgreSQL dialect (``"postgresql"``).
        SQLITE:   SQLite dialect (``"sqlite"``).
    """

    POSTGRES = "postgresql"
    SQLITE = "sqlite"
