"""Robot Arm Backend - HTTP control service for a six-servo robot arm.

This package provides:
- A line-oriented serial command protocol for the arm controller
- Connection supervision with automatic reconnection
- A JSON HTTP API for browser front-ends
- A simulated arm for running without hardware
"""

__version__ = "0.1.0"
