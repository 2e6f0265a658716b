"""Test utilities for pico applications::

    from pico.testing import TestClient
"""

from pico.testing.client import TestClient

__all__ = ["TestClient"]
