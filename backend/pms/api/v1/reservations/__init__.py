"""Reservations API package.

- routes: booking submission and reservation number preview
"""

from pms.api.v1.reservations.routes import router

__all__ = ["router"]
