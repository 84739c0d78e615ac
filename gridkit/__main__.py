"""Allow running gridkit as ``python -m gridkit``."""

import sys

from .cli import main


sys.exit(main())
