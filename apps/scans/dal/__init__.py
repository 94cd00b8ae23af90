from .scan_log_dal import ScanLogDAL

__all__ = ['ScanLogDAL']
