from typing import Callable

from apps.events.dal.event_dal import EventDAL
from apps.events.dal.guest_dal import EventGuestDAL
from apps.events.services.permission_service import EventPermissionService
from apps.scans.dal.scan_log_dal import ScanLogDAL
from apps.scans.services.fraud_analyzer import FraudAnalyzer
from apps.scans.services.scan_validation_service import ScanValidationService
from apps.shared.cache.cache_manager import CacheManager
from apps.tickets.dal.generation_job_dal import GenerationJobDAL
from apps.tickets.dal.ticket_dal import TicketDAL
from apps.tickets.queue.producer import GenerationQueueProducer
from apps.tickets.queue.registry import JobRegistry
from apps.tickets.services.enrichment_service import TicketEnrichmentService
from apps.tickets.services.generation_job_service import GenerationJobService
from apps.tickets.services.result_reconciler import ResultReconciler


class Container:
    """
    Simple DI Container for managing service dependencies.

    Allows easy service creation and dependency injection without
    the complexity of enterprise factory patterns. Nothing is built at
    import time: every call returns fresh instances from the factories.
    """

    def __init__(self):
        # Service factory functions - can be overridden for testing
        self._dal_factories = {}
        self._service_factories = {}

        self._setup_default_factories()

    def _setup_default_factories(self):
        """Set up default factory functions for services"""
        self._dal_factories = {
            'event_dal': EventDAL,
            'event_guest_dal': EventGuestDAL,
            'ticket_dal': TicketDAL,
            'scan_log_dal': ScanLogDAL,
        }

        self._service_factories = {
            'cache_manager': CacheManager,
            'permission_service': EventPermissionService,
            'job_registry': JobRegistry,
            'queue_producer': GenerationQueueProducer,
            'fraud_analyzer': FraudAnalyzer,
        }

    def permission_service(self) -> EventPermissionService:
        """Create EventPermissionService with dependencies"""
        return self._service_factories['permission_service'](dal=self._dal_factories['event_dal']())

    def job_registry(self) -> JobRegistry:
        return self._service_factories['job_registry'](cache_manager=self._service_factories['cache_manager']())

    def queue_producer(self) -> GenerationQueueProducer:
        return self._service_factories['queue_producer'](registry=self.job_registry())

    def generation_job_service(self) -> GenerationJobService:
        """Create GenerationJobService with all dependencies injected"""
        ticket_dal = self._dal_factories['ticket_dal']()
        event_dal = self._dal_factories['event_dal']()
        return GenerationJobService(
            job_dal=GenerationJobDAL(ticket_dal=ticket_dal),
            ticket_dal=ticket_dal,
            event_dal=event_dal,
            enrichment_service=TicketEnrichmentService(ticket_dal=ticket_dal),
            producer=self.queue_producer(),
            permission_service=self.permission_service(),
        )

    def result_reconciler(self) -> ResultReconciler:
        return ResultReconciler(
            job_dal=GenerationJobDAL(ticket_dal=self._dal_factories['ticket_dal']()),
            registry=self.job_registry(),
        )

    def scan_validation_service(self) -> ScanValidationService:
        """Create ScanValidationService with all dependencies injected"""
        return ScanValidationService(
            ticket_dal=self._dal_factories['ticket_dal'](),
            event_dal=self._dal_factories['event_dal'](),
            event_guest_dal=self._dal_factories['event_guest_dal'](),
            scan_log_dal=self._dal_factories['scan_log_dal'](),
            permission_service=self.permission_service(),
            fraud_analyzer=self._service_factories['fraud_analyzer'](),
        )

    # Override methods for testing
    def override_ticket_dal(self, factory: Callable):
        """Override TicketDAL factory for testing"""
        self._dal_factories['ticket_dal'] = factory

    def override_queue_producer(self, factory: Callable):
        """Override GenerationQueueProducer factory for testing"""
        self._service_factories['queue_producer'] = factory

    def override_job_registry(self, factory: Callable):
        """Override JobRegistry factory for testing"""
        self._service_factories['job_registry'] = factory

    def override_permission_service(self, factory: Callable):
        """Override PermissionService factory for testing"""
        self._service_factories['permission_service'] = factory

    def reset_to_defaults(self):
        """Reset all factories to defaults - useful for test cleanup"""
        self._setup_default_factories()


# Global container instance
_container = Container()


def get_container() -> Container:
    """Get the global container instance"""
    return _container


# Convenient functions for quick service access
def get_permission_service():
    """Quick access to EventPermissionService"""
    return get_container().permission_service()


def get_generation_job_service():
    """Quick access to GenerationJobService"""
    return get_container().generation_job_service()


def get_result_reconciler():
    return get_container().result_reconciler()


def get_queue_producer():
    return get_container().queue_producer()


def get_job_registry():
    return get_container().job_registry()


def get_scan_validation_service():
    """Quick access to ScanValidationService"""
    return get_container().scan_validation_service()
