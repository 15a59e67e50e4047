"""Allow running with ``python -m subwayboard``."""

import sys

from .cli import main

sys.exit(main())
