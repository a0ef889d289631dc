"""API views for the booking domain."""

from __future__ import annotations

import structlog  # type: ignore
from django.db.models import Q  # type: ignore

from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore
from rest_framework.views import APIView  # type: ignore

from . import services
from .exceptions import AvailabilityError, BookingConflictError, ValidationError
from .models import Booking
from .repositories import BookingRepository
from .serializers import (
    ApprovalValidationRequestSerializer,
    BookingCreateSerializer,
    BookingDatesSerializer,
    BookingReasonSerializer,
    BookingSerializer,
    DateValidationRequestSerializer,
)

logger = structlog.get_logger(__name__)


def _is_staff(user) -> bool:
    return bool(getattr(user, "is_staff", False) or getattr(user, "is_superuser", False))


def _is_equipment_owner(user, booking: Booking) -> bool:
    return booking.equipment.owner_id == user.id


def _first_error(errors) -> str:
    """Flatten DRF serializer errors into a single message."""
    if isinstance(errors, dict):
        for field, messages in errors.items():
            message = _first_error(messages)
            return message if field == "non_field_errors" else f"{field}: {message}"
    if isinstance(errors, (list, tuple)) and errors:
        return _first_error(errors[0])
    return str(errors)


def _availability_error_response(exc: AvailabilityError) -> Response:
    return Response({"valid": False, "error": exc.message}, status=exc.status_code)


# ============================================================================
# VALIDATION ENDPOINTS
# ============================================================================

class AvailabilityCheckView(APIView):
    """Base for the validation endpoints: every failure becomes ``{valid: false, error}``."""

    permission_classes = [permissions.IsAuthenticated]
    request_serializer_class = None

    def post(self, request):  # type: ignore
        serializer = self.request_serializer_class(data=request.data)
        if not serializer.is_valid():
            return _availability_error_response(ValidationError(_first_error(serializer.errors)))

        try:
            return self.evaluate(request, serializer.validated_data)
        except AvailabilityError as exc:
            return _availability_error_response(exc)
        except Exception as exc:
            logger.error("availability_check_failed", view=type(self).__name__, error=str(exc), exc_info=True)
            return Response(
                {"valid": False, "error": "Internal server error."},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )

    def evaluate(self, request, data) -> Response:
        raise NotImplementedError

    def handle_exception(self, exc):  # type: ignore
        # Parse, authentication and method errors keep the {valid, error} shape.
        response = super().handle_exception(exc)
        if isinstance(response.data, dict) and "valid" not in response.data:
            response.data = {
                "valid": False,
                "error": _first_error(response.data.get("detail", response.data)),
            }
        return response


class BookingDatesValidationView(AvailabilityCheckView):
    """Checks a candidate period against pending, confirmed and running bookings."""

    request_serializer_class = DateValidationRequestSerializer

    def evaluate(self, request, data) -> Response:
        result = services.validate_new_booking(
            data.get("equipment_id"),
            data.get("start_date"),
            data.get("end_date"),
            exclude_booking_id=data.get("booking_id"),
        )
        if result.valid:
            return Response({"valid": True, "message": "These dates are available."})

        return Response(
            {
                "valid": False,
                "error": "These dates overlap an existing booking.",
                "message": f"These dates overlap {len(result.conflicts)} existing booking(s).",
                "conflicting_bookings": [c.to_dict(include_renter=False) for c in result.conflicts],
            }
        )


class BookingApprovalValidationView(AvailabilityCheckView):
    """Checks whether the owner can accept a pending request."""

    request_serializer_class = ApprovalValidationRequestSerializer

    def evaluate(self, request, data) -> Response:
        booking_id = services.parse_identifier(data.get("booking_id"), "booking_id")
        booking = BookingRepository().get_booking(booking_id)
        if not (_is_staff(request.user) or _is_equipment_owner(request.user, booking)):
            return Response(
                {"valid": False, "error": "Only the equipment owner can approve this booking."},
                status=status.HTTP_403_FORBIDDEN,
            )

        result = services.validate_approval(booking.pk)
        if result.valid:
            return Response({"valid": True, "message": "This booking can be accepted without conflict."})

        return Response(
            {
                "valid": False,
                "error": "Date conflict detected.",
                "message": (
                    f"These dates overlap {len(result.conflicts)} booking(s) "
                    "already confirmed or in progress."
                ),
                "conflicting_bookings": [c.to_dict() for c in result.conflicts],
            }
        )


# ============================================================================
# BOOKING RESOURCE
# ============================================================================

class IsBookingStakeholder(permissions.BasePermission):
    """The renter, the equipment owner and staff can see a booking."""

    def has_object_permission(self, request, view, obj: Booking):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if _is_staff(user):
            return True
        return obj.renter_id == user.id or _is_equipment_owner(user, obj)


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Viewset for rental requests and the owner/renter workflow."""

    queryset = Booking.objects.select_related("equipment", "equipment__owner", "renter").all()
    serializer_class = BookingSerializer
    permission_classes = [permissions.IsAuthenticated, IsBookingStakeholder]
    filterset_fields = ["status", "equipment"]

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if _is_staff(user):
            return qs
        role = self.request.query_params.get("as")
        if role == "owner":
            return qs.filter(equipment__owner=user)
        if role == "renter":
            return qs.filter(renter=user)
        return qs.filter(Q(renter=user) | Q(equipment__owner=user))

    def handle_exception(self, exc):  # type: ignore
        if isinstance(exc, BookingConflictError):
            return Response(
                {
                    "detail": exc.message,
                    "conflicting_bookings": [c.to_dict(include_renter=False) for c in exc.conflicts],
                },
                status=status.HTTP_409_CONFLICT,
            )
        if isinstance(exc, AvailabilityError):
            return Response({"detail": exc.message}, status=exc.status_code)
        return super().handle_exception(exc)

    def _respond(self, booking: Booking, status_code=status.HTTP_200_OK) -> Response:
        serializer = BookingSerializer(booking, context=self.get_serializer_context())
        return Response(serializer.data, status=status_code)

    def _require_owner(self, booking: Booking) -> None:
        user = self.request.user
        if not (_is_staff(user) or _is_equipment_owner(user, booking)):
            self.permission_denied(self.request, message="Only the equipment owner can do this.")

    def _require_renter(self, booking: Booking) -> None:
        if booking.renter_id != self.request.user.id:
            self.permission_denied(self.request, message="Only the renter can do this.")

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.create_booking(
            renter=request.user,
            equipment_id=data["equipment_id"],
            start_date=data["start_date"],
            end_date=data["end_date"],
            message=data.get("message", ""),
        )
        return self._respond(booking, status.HTTP_201_CREATED)

    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_owner(booking)
        return self._respond(services.approve_booking(booking))

    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_owner(booking)
        serializer = BookingReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        return self._respond(services.reject_booking(booking, reason=serializer.validated_data["reason"]))

    @action(detail=True, methods=["post"], url_path="propose-dates")
    def propose_dates(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_owner(booking)
        serializer = BookingDatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.propose_dates(
            booking,
            start_date=data["start_date"],
            end_date=data["end_date"],
            message=data.get("message", ""),
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"], url_path="change-dates")
    def change_dates(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_renter(booking)
        serializer = BookingDatesSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        booking = services.change_booking_dates(
            booking,
            start_date=data["start_date"],
            end_date=data["end_date"],
        )
        return self._respond(booking)

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        serializer = BookingReasonSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        reason = serializer.validated_data["reason"]

        user = request.user
        if booking.renter_id == user.id:
            source = Booking.CancellationSource.RENTER
        elif _is_equipment_owner(user, booking) or _is_staff(user):
            source = Booking.CancellationSource.OWNER
        else:
            return Response(status=status.HTTP_403_FORBIDDEN)
        return self._respond(services.cancel_booking(booking, source=source, reason=reason))

    @action(detail=True, methods=["post"])
    def start(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_owner(booking)
        return self._respond(services.start_booking(booking))

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        booking: Booking = self.get_object()  # type: ignore
        self._require_owner(booking)
        return self._respond(services.complete_booking(booking))
