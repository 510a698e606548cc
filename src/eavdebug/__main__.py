"""Allow ``python -m eavdebug``."""

from __future__ import annotations

import sys

from eavdebug.cli.main import main

sys.exit(main())
