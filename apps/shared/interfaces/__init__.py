"""
Shared Interfaces Module

Abstract interfaces that let services depend on a contract instead of a
concrete implementation from another app.
"""

from .permission_interface import IPermissionValidator

__all__ = [
    "IPermissionValidator",
]
