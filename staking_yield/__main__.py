"""Allow running the package as a module: python -m staking_yield"""

import sys

from staking_yield.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
