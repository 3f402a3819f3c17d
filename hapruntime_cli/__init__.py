"""
haproxy-runtime-cli package.

Interactive front-end over :mod:`hapruntime`. Use ``python -m hapruntime_cli``
or the ``haproxy-runtime-cli`` console script to launch it.
"""

from __future__ import annotations

from .cli import main

__all__ = ["main"]
