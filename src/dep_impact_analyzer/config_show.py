"""Display of the merged configuration for the ``config`` CLI command.

Purpose
-------
Print the effective configuration (bundled defaults merged with app, host
and user files, .env and environment) either TOML-like for humans or as
JSON for tools, optionally restricted to one section such as
``[registry]``.

Contents
--------
* :func:`display_config` – prints configuration in the requested format
"""

from __future__ import annotations

import json
from typing import Any

import click

from .config import get_config


def _render_value(value: Any) -> str:
    """Render a value the way it would be written in TOML."""
    if isinstance(value, str):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return str(value)


def _echo_section(name: str, data: Any) -> None:
    click.echo(f"\n[{name}]")
    if not isinstance(data, dict):
        click.echo(f"  {data}")
        return
    for key, value in data.items():
        click.echo(f"  {key} = {_render_value(value)}")


def _selected(config: Any, section: str | None) -> dict[str, Any]:
    """Return the sections to display; exit 1 when a named one is missing."""
    if section is None:
        return dict(config.as_dict())
    data = config.get(section, default={})
    if not data:
        click.echo(f"Section '{section}' not found or empty", err=True)
        raise SystemExit(1)
    return {section: data}


def display_config(*, format: str = "human", section: str | None = None) -> None:
    """Display the current merged configuration from all sources.

    Args:
        format: ``"human"`` for TOML-like output or ``"json"``.
        section: Optional section name, e.g. ``"registry"``.

    Side Effects:
        Writes to stdout via click.echo(). Raises SystemExit(1) if the
        requested section doesn't exist.

    Example:
        >>> display_config(section="registry")  # doctest: +SKIP
        [registry]
          base_url = "https://registry.npmjs.org"
          max_concurrent = 8
    """
    sections = _selected(get_config(), section)

    if format.lower() == "json":
        click.echo(json.dumps(sections, indent=2))
        return

    for name, data in sections.items():
        _echo_section(name, data)


__all__ = [
    "display_config",
]
