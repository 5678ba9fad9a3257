"""Command-line interface."""
import sys

from spheremesh.main import main

if __name__ == "__main__":
    sys.exit(main())
