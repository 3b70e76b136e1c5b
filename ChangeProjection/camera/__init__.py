"""
Camera Model
============

Calibrated pinhole shots with project / unproject operations.
"""

from .shot import Shot

__all__ = ['Shot']
