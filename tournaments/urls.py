from django.urls import path
from .views import (
    TournamentListCreateView,
    TournamentDetailView,
    RegisterTournamentView,
    MyRegistrationsView,
    RegistrationDetailView,
    CancelRegistrationView,
    RegistrationTransitionView,
    PendingRegistrationsMaintenanceView,
)

urlpatterns = [
    path("", TournamentListCreateView.as_view(), name="tournament-list-create"),
    path("<int:tournament_id>/", TournamentDetailView.as_view(), name="tournament-detail"),
    path("<int:tournament_id>/register/", RegisterTournamentView.as_view(), name="tournament-register"),

    # Registrations
    path("registrations/me/", MyRegistrationsView.as_view(), name="my-registrations"),
    path("registrations/<uuid:registration_id>/", RegistrationDetailView.as_view(), name="registration-detail"),
    path("registrations/<uuid:registration_id>/cancel/", CancelRegistrationView.as_view(), name="registration-cancel"),
    path(
        "registrations/<uuid:registration_id>/transition/",
        RegistrationTransitionView.as_view(),
        name="registration-transition",
    ),

    # Maintenance
    path("maintenance/pending/", PendingRegistrationsMaintenanceView.as_view(), name="pending-registrations-maintenance"),
]
