"""
Allow running labctl as a module: python -m labwatch.cli
"""

import sys
from .labctl import main

if __name__ == "__main__":
    sys.exit(main())
