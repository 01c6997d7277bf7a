"""HTTP front end for the robot arm."""

from robotarm.server.api import arm_api
from robotarm.server.app import create_app, main

__all__ = ['arm_api', 'create_app', 'main']
