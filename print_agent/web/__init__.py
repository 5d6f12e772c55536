"""
Web package for the print agent: only the health blueprint lives here.
"""

from .health import health_bp

__all__ = ["health_bp"]
