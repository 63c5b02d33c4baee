"""Allow ``python -m saferm``."""

import sys

from .main import main

sys.exit(main())
