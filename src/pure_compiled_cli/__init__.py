"""pure-compiled-cli: command-line interface for pure-compiled.

This package provides the ``pure-compiled`` command with lazily loaded
subcommands for generation, repository listing and cache building.
"""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
