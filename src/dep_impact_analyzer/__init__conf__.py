"""Static package metadata and configuration identifiers.

Contents
--------
* ``name``, ``title``, ``version``, ``homepage`` - package metadata
* ``LAYEREDCONF_*`` - identifiers used by :mod:`dep_impact_analyzer.config`
  to locate platform specific configuration directories
* :func:`print_info` - print the metadata block used by ``info``
"""

from __future__ import annotations

import click

name = "dep_impact_analyzer"
title = "Report how far declared npm dependency ranges trail the latest releases"
version = "1.0.0"
homepage = "https://github.com/dep-impact-analyzer/dep-impact-analyzer"
author = "dep-impact-analyzer maintainers"
shell_command = "dep-impact-analyzer"

# Vendor/app/slug drive the XDG, Library and AppData lookups
LAYEREDCONF_VENDOR = "dep-impact-analyzer"
LAYEREDCONF_APP = "Dependency Impact Analyzer"
LAYEREDCONF_SLUG = "dep-impact-analyzer"


def print_info() -> None:
    """Print the package metadata block."""
    fields = {
        "name": name,
        "title": title,
        "version": version,
        "homepage": homepage,
        "author": author,
        "shell_command": shell_command,
    }
    pad = max(len(key) for key in fields)
    click.echo(f"Info for {name}:\n")
    for key, value in fields.items():
        click.echo(f"    {key.ljust(pad)} = {value}")


__all__ = [
    "LAYEREDCONF_APP",
    "LAYEREDCONF_SLUG",
    "LAYEREDCONF_VENDOR",
    "name",
    "print_info",
    "title",
    "version",
]
