#!/usr/bin/env python3
"""
WHOOP API client for health data.
OAuth client credentials come from WHOOP_CLIENT_ID / WHOOP_CLIENT_SECRET /
WHOOP_REDIRECT_URI; tokens are kept in ~/.config/whoop-health/tokens.json.

Runs from a checkout without installing; `pip install .` provides `whoop`.
Safe to run from cron: expired tokens are refreshed without interaction.
"""

import sys
from pathlib import Path

# Add the src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from whoop_health.cli import main


if __name__ == '__main__':
    sys.exit(main())
