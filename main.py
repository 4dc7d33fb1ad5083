#!/usr/bin/env python3
"""Main entry point for Face Locker.

Delegates to the CLI module.

Usage:
    python main.py verify alice --contact alice@example.com
    python main.py calibrate
    python main.py check-gallery alice

Or use the installed script:
    face-locker verify alice
"""

import sys
from pathlib import Path


def main():
    """Main entry point - delegates to CLI."""
    if len(sys.argv) == 1:
        print(__doc__)
        print("Run 'python main.py --help' for more options")
        sys.exit(0)

    sys.path.insert(0, str(Path(__file__).parent / "src"))
    from face_locker.cli import main as cli_main
    sys.exit(cli_main())


if __name__ == "__main__":
    main()
