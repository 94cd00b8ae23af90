"""
Scan Log Data Access Layer

Append and query the scan audit trail.
"""

from datetime import datetime
from typing import Any

from django.db.models import Count
from django.db.models import Q

from apps.scans.models import ScanLog
from apps.shared.decorators.database import handle_db_errors
from apps.shared.decorators.database import retry_on_transient_db_errors
from apps.shared.utils.paginator import ServicePaginator


class ScanLogDAL:
    """Data Access Layer for ScanLog model operations only"""

    def __init__(self, paginator: ServicePaginator | None = None):
        self.paginator = paginator or ServicePaginator()

    @handle_db_errors(operation_type="create", model_name="ScanLog")
    def create_scan_log(self, log_data: dict[str, Any]) -> ScanLog:
        return ScanLog.objects.create(**log_data)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="ScanLog")
    def get_recent_for_ticket(self, ticket_id: int, limit: int = 10) -> list[ScanLog]:
        """Latest scans of a ticket, oldest first"""
        queryset = ScanLog.objects.for_ticket(ticket_id)
        return list(reversed(queryset.order_by('-scan_time', '-id')[:limit]))

    def list_for_event(
        self,
        event_id: int,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> dict[str, Any]:
        queryset = ScanLog.objects.for_event(event_id).select_related('operator')
        if date_from:
            queryset = queryset.filter(scan_time__gte=date_from)
        if date_to:
            queryset = queryset.filter(scan_time__lte=date_to)
        return self.paginator.paginate(queryset.order_by('-scan_time', '-id'), page, page_size)

    def list_for_ticket(self, ticket_id: int, page: int = 1, page_size: int = 20) -> dict[str, Any]:
        """Full scan history of one ticket, newest first"""
        queryset = ScanLog.objects.for_ticket(ticket_id).select_related('operator')
        return self.paginator.paginate(queryset.order_by('-scan_time', '-id'), page, page_size)

    @retry_on_transient_db_errors()
    @handle_db_errors(operation_type="read", model_name="ScanLog")
    def get_event_statistics(self, event_id: int) -> dict[str, Any]:
        queryset = ScanLog.objects.for_event(event_id)
        stats = queryset.aggregate(
            total_scans=Count('id'),
            valid_scans=Count('id', filter=Q(result=ScanLog.Result.VALID)),
            invalid_scans=Count('id', filter=Q(result=ScanLog.Result.INVALID)),
            unique_tickets=Count('ticket', distinct=True),
        )
        stats['by_result_code'] = {
            row['result_code']: row['count']
            for row in queryset.values('result_code').annotate(count=Count('id')).order_by('result_code')
        }
        return stats
