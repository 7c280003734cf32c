from django.contrib import admin
from .models import NotificationLogEntry


@admin.register(NotificationLogEntry)
class NotificationLogEntryAdmin(admin.ModelAdmin):
    list_display = ('recipient_email', 'subject', 'kind', 'status', 'tournament', 'sent_at')
    list_filter = ('status', 'kind', 'sent_at')
    search_fields = ('recipient_email', 'subject', 'provider_message_id')

    # Log is append-only
    def has_change_permission(self, request, obj=None):
        return False
