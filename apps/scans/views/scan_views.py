import logging

from drf_spectacular.utils import OpenApiParameter
from drf_spectacular.utils import extend_schema
from rest_framework.permissions import IsAuthenticated

from apps.scans.serializers import ScanListQuerySerializer
from apps.scans.serializers import ScanLogSerializer
from apps.scans.serializers import ScanPageQuerySerializer
from apps.scans.serializers import ScanResultSerializer
from apps.scans.serializers import ScanValidateSerializer
from apps.shared.base.base_api_view import BaseAPIView
from apps.shared.container import get_scan_validation_service
from apps.shared.utils.responses import api_response

logger = logging.getLogger(__name__)


class BaseScanAPIView(BaseAPIView):
    """Base view for scan operations"""

    permission_classes = [IsAuthenticated]
    _service = None

    def get_service(self):
        if self._service is None:
            self._service = get_scan_validation_service()
        return self._service


@extend_schema(tags=["Scans"])
class ScanValidateAPIView(BaseScanAPIView):
    """Validate and consume a scanned ticket"""

    serializer_class = ScanValidateSerializer

    @extend_schema(request=ScanValidateSerializer, responses={200: ScanResultSerializer})
    def post(self, request):
        serializer = ScanValidateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = self.get_service().validate_scan(
            ticket_code=data['ticket_code'],
            event_id=data['event_id'],
            operator=request.user,
            scan_context=data.get('scan_context'),
            qr_data=data.get('qr_data') or None,
        )
        return api_response(ScanResultSerializer(result).data)


@extend_schema(tags=["Scans"])
class EventScanListAPIView(BaseScanAPIView):
    """Scan audit history of an event, newest first"""

    @extend_schema(
        parameters=[ScanListQuerySerializer, OpenApiParameter('event_id', int, OpenApiParameter.PATH)],
        responses={200: ScanLogSerializer(many=True)},
    )
    def get(self, request, event_id):
        query_serializer = ScanListQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)
        filters = query_serializer.validated_data

        result = self.get_service().list_event_scans(
            event_id=event_id,
            user=request.user,
            date_from=filters.get('date_from'),
            date_to=filters.get('date_to'),
            page=filters['page'],
            limit=filters['limit'],
        )
        return api_response(
            {
                'scans': ScanLogSerializer(result['scans'], many=True).data,
                'pagination': result['pagination'],
            }
        )


@extend_schema(tags=["Scans"])
class EventScanStatsAPIView(BaseScanAPIView):

    @extend_schema(parameters=[OpenApiParameter('event_id', int, OpenApiParameter.PATH)])
    def get(self, request, event_id):
        return api_response(self.get_service().get_event_scan_stats(event_id=event_id, user=request.user))


@extend_schema(tags=["Scans"])
class TicketScanListAPIView(BaseScanAPIView):
    """Scan history of one ticket, newest first"""

    @extend_schema(
        parameters=[ScanPageQuerySerializer, OpenApiParameter('ticket_id', int, OpenApiParameter.PATH)],
        responses={200: ScanLogSerializer(many=True)},
    )
    def get(self, request, ticket_id):
        query_serializer = ScanPageQuerySerializer(data=request.query_params)
        query_serializer.is_valid(raise_exception=True)

        result = self.get_service().list_ticket_scans(
            ticket_id=ticket_id,
            user=request.user,
            page=query_serializer.validated_data['page'],
            limit=query_serializer.validated_data['limit'],
        )
        return api_response(
            {
                'ticket_id': result['ticket_id'],
                'ticket_code': result['ticket_code'],
                'scans': ScanLogSerializer(result['scans'], many=True).data,
                'pagination': result['pagination'],
            }
        )
