"""Project core.

Stable, non-domain-specific building blocks: config, errors, shared types
and the CLI entrypoint.
"""

from __future__ import annotations

__all__ = [
    "__version__",
]

__version__ = "0.1.0"
