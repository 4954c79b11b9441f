"""metaddr CLI entry point: python -m metaddr"""

import sys

from metaddr.cli import main

if __name__ == "__main__":
    sys.exit(main())
