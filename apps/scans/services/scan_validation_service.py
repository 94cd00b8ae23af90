import json
import logging
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.events.dal.event_dal import EventDAL
from apps.events.dal.guest_dal import EventGuestDAL
from apps.events.services.permission_service import EventPermissionService
from apps.scans.dal.scan_log_dal import ScanLogDAL
from apps.scans.exceptions import CorruptedQRCodeError
from apps.scans.exceptions import EventEndedError
from apps.scans.exceptions import EventFullError
from apps.scans.exceptions import EventNotActiveError
from apps.scans.exceptions import InvalidQRFormatError
from apps.scans.exceptions import QRTicketMismatchError
from apps.scans.exceptions import ScanPermissionError
from apps.scans.exceptions import ScanTimeoutError
from apps.scans.exceptions import TicketAlreadyUsedError
from apps.scans.models import ScanLog
from apps.scans.services.fraud_analyzer import FraudAnalysis
from apps.scans.services.fraud_analyzer import FraudAnalyzer
from apps.scans.services.fraud_analyzer import ScanRecord
from apps.shared.exceptions import AppError
from apps.tickets.dal.ticket_dal import ConsumeOutcome
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.exceptions import TicketNotFoundError
from apps.tickets.models import Ticket

logger = logging.getLogger(__name__)

QR_REQUIRED_KEYS = ('id', 'eventId', 'timestamp')


class Deadline:
    """Monotonic time budget of one scan"""

    def __init__(self, timeout_ms: int):
        self.timeout_ms = timeout_ms
        self._expires_at = time.monotonic() + timeout_ms / 1000

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def check(self, stage: str) -> None:
        if self.expired:
            logger.error(f'Scan deadline of {self.timeout_ms} ms exceeded at {stage}')
            raise ScanTimeoutError(timeout_ms=self.timeout_ms)


@dataclass(frozen=True)
class ScanResult:
    ticket: Ticket
    validated_at: datetime
    scan_log: ScanLog
    fraud_analysis: FraudAnalysis | None


class ScanValidationService:
    """Admits tickets at the door: gates, at-most-once consumption, audit, fraud advisory"""

    def __init__(
        self,
        ticket_dal: TicketDAL | None = None,
        event_dal: EventDAL | None = None,
        event_guest_dal: EventGuestDAL | None = None,
        scan_log_dal: ScanLogDAL | None = None,
        permission_service: EventPermissionService | None = None,
        fraud_analyzer: FraudAnalyzer | None = None,
        timeout_ms: int | None = None,
    ):
        self.ticket_dal = ticket_dal or TicketDAL()
        self.event_dal = event_dal or EventDAL()
        self.event_guest_dal = event_guest_dal or EventGuestDAL()
        self.scan_log_dal = scan_log_dal or ScanLogDAL()
        self.permission_service = permission_service or EventPermissionService(dal=self.event_dal)
        self.fraud_analyzer = fraud_analyzer or FraudAnalyzer()
        self.timeout_ms = timeout_ms or settings.SCAN_TIMEOUT_MS

    # =============================================================================
    # SCAN VALIDATION
    # =============================================================================

    def validate_scan(
        self,
        ticket_code: str,
        event_id: int,
        operator,
        scan_context: dict[str, Any] | None = None,
        qr_data: str | None = None,
    ) -> ScanResult:
        """
        Validate and consume a ticket.

        Every attempt is written to the scan log, refusals included. Of any
        number of concurrent scans of one ticket exactly one succeeds, the
        others raise TicketAlreadyUsedError.
        """
        deadline = Deadline(self.timeout_ms)
        scan_context = scan_context or {}
        scan_time = timezone.now()
        log_data = {
            'ticket_code': ticket_code,
            'operator': operator if getattr(operator, 'pk', None) else None,
            'scan_time': scan_time,
            'scan_context': scan_context,
        }

        try:
            ticket = self.ticket_dal.get_ticket_for_scan(ticket_code, event_id)
        except TicketNotFoundError as e:
            self._log_refusal({**log_data, 'event': self.event_dal.find_event_by_id(event_id)}, e)
            raise

        event = ticket.event_guest.event
        log_data.update(ticket=ticket, event=event)

        try:
            deadline.check('lookup')
            if not self.permission_service.can_scan_event(event, operator):
                logger.warning(f'Operator {getattr(operator, "pk", None)} may not scan event {event.pk}')
                raise ScanPermissionError(event_id=str(event.pk))
            if ticket.is_validated:
                raise TicketAlreadyUsedError(ticket.ticket_code, validated_at=ticket.validated_at)

            self._check_event_gates(event)
            self._check_capacity(event)
            if qr_data:
                self._check_qr_payload(qr_data, ticket)

            deadline.check('gates')
            validated_at = self._consume(ticket, event, scan_time)
        except AppError as e:
            self._log_refusal(log_data, e)
            raise

        analysis = None
        if deadline.expired:
            logger.warning(f'Skipping fraud analysis of ticket {ticket.pk}, scan budget spent')
        else:
            analysis = self.analyze_fraud(ticket.pk, scan_time, scan_context)

        scan_log = self.scan_log_dal.create_scan_log(
            {
                **log_data,
                'result': ScanLog.Result.VALID,
                'result_code': 'VALID',
                'fraud_risk_level': analysis.risk_level if analysis else '',
            }
        )
        logger.info(f'Ticket {ticket.ticket_code} admitted to event {event.pk}')
        return ScanResult(ticket=ticket, validated_at=validated_at, scan_log=scan_log, fraud_analysis=analysis)

    def analyze_fraud(self, ticket_id: int, scan_time: datetime, scan_context: dict[str, Any]) -> FraudAnalysis:
        window = self.fraud_analyzer.thresholds.recent_window * 2
        history = [
            self._to_record(log.scan_time, log.scan_context)
            for log in self.scan_log_dal.get_recent_for_ticket(ticket_id, limit=window)
        ]
        analysis = self.fraud_analyzer.analyze(self._to_record(scan_time, scan_context), history)
        if analysis.flags:
            logger.warning(
                f'Fraud advisory for ticket {ticket_id}: {analysis.risk_level} {analysis.flag_types}'
            )
        return analysis

    # =============================================================================
    # SCAN HISTORY
    # =============================================================================

    def list_event_scans(
        self,
        event_id: int,
        user,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        event = self.event_dal.get_event_by_id(event_id)
        self.permission_service.validate_organizer_access(event, user, action='view_scans')

        result = self.scan_log_dal.list_for_event(event.pk, date_from, date_to, page=page, page_size=limit)
        return {'scans': result['items'], 'pagination': result['meta']}

    def get_event_scan_stats(self, event_id: int, user) -> dict[str, Any]:
        event = self.event_dal.get_event_by_id(event_id)
        self.permission_service.validate_organizer_access(event, user, action='view_scans')

        stats = self.scan_log_dal.get_event_statistics(event.pk)
        stats['validated_tickets'] = self.ticket_dal.count_validated_for_event(event.pk)
        return {'event_id': event.pk, **stats}

    def list_ticket_scans(self, ticket_id: int, user, page: int = 1, limit: int = 20) -> dict[str, Any]:
        """Every scan of one ticket, refusals included"""
        ticket = self.ticket_dal.get_ticket_by_id(ticket_id)
        event = ticket.event_guest.event
        self.permission_service.validate_organizer_access(event, user, action='view_scans')

        result = self.scan_log_dal.list_for_ticket(ticket.pk, page=page, page_size=limit)
        return {
            'ticket_id': ticket.pk,
            'ticket_code': ticket.ticket_code,
            'scans': result['items'],
            'pagination': result['meta'],
        }

    # =============================================================================
    # GATES AND CONSUMPTION
    # =============================================================================

    @staticmethod
    def _check_event_gates(event) -> None:
        if not event.is_published:
            raise EventNotActiveError(event_status=event.status)
        if event.event_date and event.event_date < timezone.now():
            raise EventEndedError(event_date=event.event_date)

    def _check_capacity(self, event) -> None:
        if event.max_attendees and self.ticket_dal.count_validated_for_event(event.pk) >= event.max_attendees:
            raise EventFullError(max_attendees=event.max_attendees)

    @staticmethod
    def _check_qr_payload(qr_data: str, ticket: Ticket) -> None:
        try:
            payload = json.loads(qr_data)
        except (TypeError, ValueError):
            raise CorruptedQRCodeError()

        if not isinstance(payload, dict):
            raise InvalidQRFormatError(missing_keys=list(QR_REQUIRED_KEYS))
        missing = [key for key in QR_REQUIRED_KEYS if payload.get(key) in (None, '')]
        if missing:
            raise InvalidQRFormatError(missing_keys=missing)
        if str(payload['id']) != str(ticket.pk):
            raise QRTicketMismatchError()

    def _consume(self, ticket: Ticket, event, scan_time: datetime) -> datetime:
        with transaction.atomic():
            if event.max_attendees:
                # serializes admissions of the event while capacity is counted
                event = self.event_dal.get_event_for_update(event.pk)

            result = self.ticket_dal.consume_ticket(ticket.pk, scan_time)

            if result.outcome == ConsumeOutcome.CONSUMED:
                if event.max_attendees and self.ticket_dal.count_validated_for_event(event.pk) > event.max_attendees:
                    # rolls the consumption back with the transaction
                    raise EventFullError(max_attendees=event.max_attendees)
                self.event_guest_dal.mark_present(ticket.event_guest_id, scan_time)

        if result.outcome == ConsumeOutcome.ALREADY_CONSUMED:
            raise TicketAlreadyUsedError(ticket.ticket_code, validated_at=result.validated_at)
        if result.outcome == ConsumeOutcome.NOT_FOUND:
            raise TicketNotFoundError(identifier=ticket.ticket_code)
        return result.validated_at

    def _log_refusal(self, log_data: dict[str, Any], error: AppError) -> None:
        self.scan_log_dal.create_scan_log(
            {**log_data, 'result': ScanLog.Result.INVALID, 'result_code': error.error_code}
        )
        logger.warning(f'Scan of {log_data["ticket_code"]} refused: {error.error_code}')

    @staticmethod
    def _to_record(scan_time: datetime, context: dict[str, Any] | None) -> ScanRecord:
        context = context or {}
        coordinates = context.get('coordinates') or {}
        return ScanRecord(
            scan_time=timezone.localtime(scan_time),
            location=context.get('location') or context.get('checkpoint'),
            device=context.get('device'),
            latitude=_to_float(coordinates.get('latitude', context.get('latitude'))),
            longitude=_to_float(coordinates.get('longitude', context.get('longitude'))),
        )


def _to_float(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
