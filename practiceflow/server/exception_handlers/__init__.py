"""
Exception handlers for the PracticeFlow server.

This package contains the handlers for application errors and unhandled
exceptions, and a setup function to register them with the FastAPI
application.
"""

from .global_handler import setup_exception_handlers

__all__ = ["setup_exception_handlers"]
