"""Robot Arm Backend - HTTP server entry point.

Usage:
    python main.py --port /dev/ttyUSB0 --bind 0.0.0.0:3000
    python main.py --simulate
"""

import sys

from robotarm.server.app import main


if __name__ == "__main__":
    sys.exit(main())
