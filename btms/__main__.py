#!/usr/bin/env python3
"""Main entry point for the BTMS console"""

import sys

from btms.console import main


if __name__ == "__main__":
    sys.exit(main())
