"""Entry point for python -m nostrvanity."""

import sys

from nostrvanity.cli import main

if __name__ == "__main__":
    sys.exit(main())
