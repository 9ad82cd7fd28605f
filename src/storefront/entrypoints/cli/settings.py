"""``storefront config``: inspect the effective configuration."""

from __future__ import annotations

import click
import click_extra as clickx

from storefront import config

from .helpers import sanitize_url


@click.group(name="config", cls=clickx.ExtraGroup)
def config_group() -> None:
    """Configuration commands."""


@config_group.command()
def show() -> None:
    """Print the settings loaded from STOREFRONT_* environment variables."""
    try:
        settings = config.load_settings()
    except config.ConfigError as e:
        raise click.ClickException(str(e)) from e

    rows = {
        "db_url": sanitize_url(settings.db_url) if settings.db_url else "<none>",
        "user_store": settings.user_store.value,
        "product_store": settings.product_store.value,
        "order_store": settings.order_store.value,
        "audit_store": settings.audit_store.value,
        "cache_backend": settings.cache_backend.value,
        "redis_url": settings.redis_url or "<none>",
        "cache_ttl": f"{int(settings.cache_ttl.total_seconds())}s",
        "default_page_size": str(settings.default_page_size),
        "audit_topic": settings.audit_topic,
    }
    width = max(len(name) for name in rows)
    for name, value in rows.items():
        click.echo(f"{name:<{width}} : {value}")
