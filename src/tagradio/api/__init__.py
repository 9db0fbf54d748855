"""API routers for radio station service."""
