"""Allow ``python -m adcmesh``."""

import sys

from adcmesh.cli.app import main

if __name__ == "__main__":
    sys.exit(main())
