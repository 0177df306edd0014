"""Legal Admin Hub: chat front-end and tool-routing layer for law-firm admin agents."""

from __future__ import annotations

from legal_admin_hub.core import __version__

__all__ = ["__version__"]
