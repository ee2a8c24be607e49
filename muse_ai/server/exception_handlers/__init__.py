"""
Exception handlers for the MUSE server.

Domain errors map to client error responses; anything else is logged with
an error id and returned as a 500.
"""

from .domain_handlers import domain_error_handler, status_for
from .global_handler import global_exception_handler, setup_exception_handlers

__all__ = ["domain_error_handler", "global_exception_handler", "setup_exception_handlers", "status_for"]
