"""User-facing status lines for the CLI.

Lines go to stderr so stdout stays machine-readable. Emoji glyphs fall back
to ASCII when stderr cannot encode them.
"""

import click

GLYPHS = {
    "warn": ("⚠️", "[!]"),
    "success": ("✅", "[OK]"),
    "error": ("❌", "[X]"),
}


def glyph(kind: str) -> str:
    """Return the marker for *kind*, or its ASCII fallback."""
    emoji, fallback = GLYPHS[kind]
    encoding = getattr(click.get_text_stream("stderr"), "encoding", None) or "ascii"
    try:
        emoji.encode(encoding)
    except UnicodeEncodeError:
        return fallback
    return emoji


def warn(msg: str) -> None:
    """Emit a yellow warning line."""
    click.secho(f"{glyph('warn')}  {msg}", fg="yellow", bold=True, err=True)


def success(msg: str) -> None:
    """Emit a green success line."""
    click.secho(f"{glyph('success')}  {msg}", fg="green", bold=True, err=True)


def error(msg: str) -> None:
    """Emit a red error line."""
    click.secho(f"{glyph('error')}  {msg}", fg="red", bold=True, err=True)
