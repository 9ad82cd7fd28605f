"""Render database URLs safely for terminal output."""

from sqlalchemy.engine import make_url


def sanitize_url(url: str) -> str:
    """Return *url* with its password replaced by ``***``.

    Only the password component is redacted; secrets placed in query
    parameters are shown as-is.

    Example:
        >>> sanitize_url("postgresql+psycopg://shop:s3cr3t@db:5432/storefront")
        'postgresql+psycopg://shop:***@db:5432/storefront'
    """
    return make_url(url).render_as_string(hide_password=True)
