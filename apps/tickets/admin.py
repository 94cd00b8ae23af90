from django.contrib import admin
from django.utils.html import format_html

from .models import Ticket
from .models import TicketGenerationJob
from .models import TicketTemplate
from .models import TicketType


@admin.register(TicketType)
class TicketTypeAdmin(admin.ModelAdmin):
    list_display = ["name", "event", "type", "quantity", "price", "currency"]
    list_filter = ["type", "currency"]
    search_fields = ["name", "event__title"]
    autocomplete_fields = ["event"]


@admin.register(TicketTemplate)
class TicketTemplateAdmin(admin.ModelAdmin):
    list_display = ["name", "source_files_path", "is_customizable"]
    search_fields = ["name", "source_files_path"]


@admin.register(Ticket)
class TicketAdmin(admin.ModelAdmin):
    list_display = ["ticket_code", "event_display", "guest_display", "ticket_type", "validated_display", "generated_at"]
    list_filter = ["is_validated", "ticket_type__type"]
    search_fields = ["ticket_code", "event_guest__guest__email", "event_guest__event__title"]
    readonly_fields = ["ticket_code", "is_validated", "validated_at", "generated_at", "created_at", "updated_at"]
    raw_id_fields = ["event_guest"]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("event_guest__event", "event_guest__guest", "ticket_type")

    def event_display(self, obj):
        return obj.event_guest.event.title

    event_display.short_description = "Event"

    def guest_display(self, obj):
        return obj.event_guest.guest.full_name

    guest_display.short_description = "Guest"

    def validated_display(self, obj):
        if obj.is_validated:
            return format_html(
                '<span style="color: green;">Used {}</span>', obj.validated_at.strftime("%Y-%m-%d %H:%M")
            )
        return format_html('<span style="color: gray;">Not used</span>')

    validated_display.short_description = "Validation"


@admin.register(TicketGenerationJob)
class TicketGenerationJobAdmin(admin.ModelAdmin):
    list_display = ["uid", "event", "status_display", "progress_display", "created_at", "completed_at"]
    list_filter = ["status", "created_at"]
    search_fields = ["uid", "event__title"]
    readonly_fields = [
        "uid",
        "status",
        "tickets_count",
        "tickets_processed",
        "details",
        "error_message",
        "started_at",
        "completed_at",
        "created_at",
        "updated_at",
    ]

    def has_add_permission(self, request):
        return False

    def status_display(self, obj):
        colors = {"pending": "gray", "processing": "orange", "completed": "green", "failed": "red"}
        return format_html(
            '<span style="color: {};">{}</span>', colors.get(obj.status, "black"), obj.get_status_display()
        )

    status_display.short_description = "Status"

    def progress_display(self, obj):
        return f"{obj.tickets_processed} / {obj.tickets_count}"

    progress_display.short_description = "Processed"
