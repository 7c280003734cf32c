from .tournaments import TournamentListCreateView, TournamentDetailView
from .registrations import (
    RegisterTournamentView,
    MyRegistrationsView,
    RegistrationDetailView,
    CancelRegistrationView,
    RegistrationTransitionView,
    PendingRegistrationsMaintenanceView,
)
