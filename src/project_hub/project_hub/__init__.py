"""Project Hub package.

Organized by feature modules (projects, tasks, team, attendance, ...)
with a thin Flask controller layer over service/repository layers.
"""

from .main import create_app

__all__ = ["create_app"]
