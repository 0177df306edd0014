from __future__ import annotations

from legal_admin_hub.core.cli import main

raise SystemExit(main())
