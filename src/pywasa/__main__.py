"""Allow ``python -m pywasa``."""

from __future__ import annotations

import sys

from pywasa.cli import main

sys.exit(main())
