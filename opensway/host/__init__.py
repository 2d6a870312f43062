"""
Host adapters - Documents OpenSway reads pins from and writes motion to
"""

from .base import HostDocument
from .memory import Composition, Layer, PinProperty

__all__ = [
    'HostDocument',
    'Composition',
    'Layer',
    'PinProperty',
]
