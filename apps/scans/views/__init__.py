from apps.scans.views.scan_views import EventScanListAPIView
from apps.scans.views.scan_views import EventScanStatsAPIView
from apps.scans.views.scan_views import ScanValidateAPIView
from apps.scans.views.scan_views import TicketScanListAPIView

__all__ = [
    'EventScanListAPIView',
    'EventScanStatsAPIView',
    'ScanValidateAPIView',
    'TicketScanListAPIView',
]
