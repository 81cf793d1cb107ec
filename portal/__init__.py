"""Portal application for MediPortal.

This package contains the staff/room/allocation models, the REST surface
and realtime change broadcasting, and :mod:`portal.sync`, the
sector-scoped synchronization layer used by the portal pages.
"""
