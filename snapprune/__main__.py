"""Run snapprune: python -m snapprune"""

import sys

from snapprune.cli import main

if __name__ == "__main__":
    sys.exit(main())
