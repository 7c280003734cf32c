from django.contrib import admin
from .models import Tournament, Registration


@admin.register(Tournament)
class TournamentAdmin(admin.ModelAdmin):
    list_display = ('name', 'game', 'status', 'entry_fee', 'current_teams', 'max_teams', 'start_date')
    list_filter = ('status', 'game')
    search_fields = ('name', 'game')
    readonly_fields = ('current_teams',)
    date_hierarchy = 'start_date'


@admin.register(Registration)
class RegistrationAdmin(admin.ModelAdmin):
    list_display = ('team_name', 'tournament', 'user', 'status', 'payment_status', 'created_at')
    list_filter = ('status', 'payment_status', 'tournament')
    search_fields = ('team_name', 'user__username', 'contact_email', 'transaction_id')
    # Status moves go through the state machine, not the admin form
    readonly_fields = ('status', 'payment_status', 'transaction_id', 'gateway_order_id', 'created_at', 'updated_at')
