# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_request, make_response
"""

from .utils import make_request, make_response

__all__ = ["make_request", "make_response"]
