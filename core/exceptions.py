from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger("cos")


class RegistrationError(APIException):
    """
    Base class for registration/payment/notification domain errors.

    Every subclass carries a machine readable ``default_code`` and an HTTP
    status, so the exception handler below can render it without a lookup
    table.
    """
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Registration error."
    default_code = "registration_error"

    @property
    def code(self) -> str:
        return self.default_code


class NotFound(RegistrationError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Requested record was not found."
    default_code = "not_found"


class InvalidTransition(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Requested state change is not allowed."
    default_code = "invalid_transition"

    def __init__(self, current=None, target=None, detail=None):
        self.current = current
        self.target = target
        if detail is None and current is not None:
            detail = f"Cannot transition from '{current}' to '{target}'"
        super().__init__(detail)


class StaleState(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Registration was modified by another request."
    default_code = "stale_state"

    def __init__(self, registration_id=None, expected=None, actual=None):
        self.registration_id = registration_id
        self.expected = expected
        self.actual = actual
        detail = None
        if registration_id is not None:
            detail = (
                f"Registration {registration_id} is no longer '{expected}'"
                + (f" (now '{actual}')" if actual else "")
            )
        super().__init__(detail)


class UnresolvedRecipient(RegistrationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Could not resolve recipient email."
    default_code = "unresolved_recipient"


class PaymentProviderError(RegistrationError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_detail = "Payment provider request failed."
    default_code = "payment_provider_error"


class RegistrationValidationError(RegistrationError):
    default_detail = "Invalid registration data."
    default_code = "invalid_registration"


class RegistrationClosed(RegistrationError):
    default_detail = "Tournament is not open for registration."
    default_code = "registration_closed"


class TournamentFull(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Tournament is full."
    default_code = "tournament_full"


class AlreadyRegistered(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "You have already registered for this tournament."
    default_code = "already_registered"


class TeamNameTaken(RegistrationError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Team name already registered for this tournament."
    default_code = "team_name_taken"


def custom_exception_handler(exc, context):
    """
    Wrap DRF + Django exceptions into a consistent response format.

    Success responses (2xx) are not touched.
    Only errors come through here.
    """
    response = drf_exception_handler(exc, context)

    # Domain errors: flatten to {code, detail}
    if response is not None and isinstance(exc, RegistrationError):
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": {"code": exc.code, "detail": str(exc.detail)},
            },
            status=response.status_code,
        )

    # If DRF handled it, wrap it
    if response is not None:
        return Response(
            {
                "success": False,
                "status_code": response.status_code,
                "errors": response.data,
            },
            status=response.status_code,
        )

    # Unhandled exceptions -> 500
    logger.exception("Unhandled API exception", exc_info=exc)

    return Response(
        {
            "success": False,
            "status_code": status.HTTP_500_INTERNAL_SERVER_ERROR,
            "errors": {"code": "internal_error", "detail": "Internal server error."},
        },
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
