# main.py
import sys

from access_route.cli import main

if __name__ == "__main__":
    sys.exit(main())
