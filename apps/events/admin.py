from django.contrib import admin
from django.db import models
from django.utils import timezone
from django.utils.html import format_html

from .models import Event
from .models import EventGuest
from .models import Guest


class EventGuestInline(admin.TabularInline):
    model = EventGuest
    extra = 0
    fields = ["guest", "status", "invitation_code", "is_present", "check_in_time"]
    readonly_fields = ["invitation_code", "check_in_time"]
    autocomplete_fields = ["guest"]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("guest", "event")


@admin.register(Event)
class EventAdmin(admin.ModelAdmin):
    inlines = [EventGuestInline]

    list_display = [
        "title",
        "organizer",
        "date_display",
        "status_display",
        "capacity_display",
        "created_at",
    ]
    list_filter = ["status", "event_date", "created_at"]
    search_fields = ["title", "description", "location", "organizer__email"]
    readonly_fields = ["created_at", "updated_at", "deleted_at", "capacity_display"]
    autocomplete_fields = ["organizer"]

    fieldsets = (
        ("Basic Information", {"fields": ("title", "description", "organizer", "status")}),
        ("Date and Place", {"fields": ("event_date", "location", "max_attendees")}),
        (
            "System Fields",
            {"fields": ("created_at", "updated_at", "deleted_at", "capacity_display"), "classes": ("collapse",)},
        ),
    )

    actions = ["publish_events", "archive_events"]

    def get_queryset(self, request):
        return (
            super()
            .get_queryset(request)
            .select_related("organizer")
            .annotate(
                guest_count=models.Count("event_guests", distinct=True),
                present_count=models.Count(
                    "event_guests", filter=models.Q(event_guests__is_present=True), distinct=True
                ),
            )
        )

    def save_model(self, request, obj, form, change):
        if not change:
            obj.created_by = request.user
        obj.updated_by = request.user
        super().save_model(request, obj, form, change)

    def date_display(self, obj):
        if not obj.event_date:
            return format_html('<span style="color: gray;">Not scheduled</span>')
        color = "green" if obj.event_date > timezone.now() else "gray"
        return format_html('<span style="color: {};">{}</span>', color, obj.event_date.strftime("%Y-%m-%d %H:%M"))

    date_display.short_description = "Event Date"

    def status_display(self, obj):
        colors = {"draft": "orange", "published": "green", "archived": "gray"}
        return format_html(
            '<span style="color: {};">{}</span>', colors.get(obj.status, "black"), obj.get_status_display()
        )

    status_display.short_description = "Status"

    def capacity_display(self, obj):
        present = getattr(obj, "present_count", 0)
        if obj.max_attendees:
            return f"{present} / {obj.max_attendees}"
        return f"{present} / unlimited"

    capacity_display.short_description = "Present / Capacity"

    def publish_events(self, request, queryset):
        count = queryset.update(status=Event.Status.PUBLISHED)
        self.message_user(request, f"{count} events published.")

    publish_events.short_description = "Publish"

    def archive_events(self, request, queryset):
        count = queryset.update(status=Event.Status.ARCHIVED)
        self.message_user(request, f"{count} events archived.")

    archive_events.short_description = "Archive"


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ["full_name", "email", "phone", "created_at"]
    search_fields = ["first_name", "last_name", "email", "phone"]
    readonly_fields = ["created_at", "updated_at"]


@admin.register(EventGuest)
class EventGuestAdmin(admin.ModelAdmin):
    list_display = ["event_link", "guest", "status_display", "is_present", "check_in_time"]
    list_filter = ["status", "is_present", "event__status"]
    search_fields = ["event__title", "guest__email", "guest__first_name", "guest__last_name", "invitation_code"]
    readonly_fields = ["invitation_code", "check_in_time", "created_at", "updated_at"]

    actions = ["mark_as_confirmed", "mark_as_cancelled"]

    def get_queryset(self, request):
        return super().get_queryset(request).select_related("event", "guest")

    def event_link(self, obj):
        return format_html('<a href="/admin/events/event/{}/change/">{}</a>', obj.event_id, obj.event.title)

    event_link.short_description = "Event"

    def status_display(self, obj):
        colors = {"pending": "orange", "confirmed": "green", "cancelled": "red"}
        return format_html(
            '<span style="color: {};">{}</span>', colors.get(obj.status, "black"), obj.get_status_display()
        )

    status_display.short_description = "Status"

    def mark_as_confirmed(self, request, queryset):
        count = queryset.filter(status=EventGuest.Status.PENDING).update(status=EventGuest.Status.CONFIRMED)
        self.message_user(request, f"{count} guests confirmed.")

    mark_as_confirmed.short_description = "Confirm"

    def mark_as_cancelled(self, request, queryset):
        count = queryset.exclude(status=EventGuest.Status.CANCELLED).update(status=EventGuest.Status.CANCELLED)
        self.message_user(request, f"{count} invitations cancelled.")

    mark_as_cancelled.short_description = "Cancel"
