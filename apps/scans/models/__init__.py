"""
Scans models package
"""

from apps.scans.models.scan_log import ScanLog

__all__ = [
    'ScanLog',
]
