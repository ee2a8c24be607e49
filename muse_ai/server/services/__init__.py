"""Services used by the API routers."""
