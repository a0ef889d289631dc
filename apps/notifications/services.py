"""Email notifications for the booking workflow."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from django.conf import settings  # type: ignore
from django.core.mail import send_mail  # type: ignore
from django.utils.html import escape, strip_tags  # type: ignore

if TYPE_CHECKING:  # pragma: no cover
    from apps.bookings.models import Booking

logger = logging.getLogger(__name__)


def _format_day(value) -> str:
    return value.strftime("%d/%m/%Y")


def _frontend_url(path: str) -> str:
    base = getattr(settings, "FRONTEND_URL", "").rstrip("/")
    return f"{base}{path}"


def _layout(title: str, body: str) -> str:
    return f"""
    <html>
    <body>
        <h2>{title}</h2>
        {body}
        <p>Best regards,<br>The {settings.PLATFORM_NAME} team</p>
    </body>
    </html>
    """


def send_email_notification(recipient_email: str, subject: str, html_message: str) -> bool:
    """
    Send one transactional email.

    Args:
        recipient_email: Recipient address
        subject: Email subject
        html_message: HTML body; the plain-text part is derived from it

    Returns:
        bool: True if the backend accepted the message
    """
    if not recipient_email:
        logger.warning(f"Skipping email without recipient: {subject}")
        return False

    try:
        send_mail(
            subject=subject,
            message=strip_tags(html_message),
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient_email],
            html_message=html_message,
            fail_silently=False,
        )
        logger.info(f"Email sent successfully to {recipient_email}: {subject}")
        return True

    except Exception as e:
        logger.error(f"Failed to send email to {recipient_email}: {e}", exc_info=True)
        return False


def send_booking_request_to_owner_email(booking: "Booking") -> bool:
    """Tell the owner a renter is waiting for a decision."""
    owner = booking.equipment.owner
    subject = f"New rental request for {booking.equipment.title}"

    note = ""
    if booking.message:
        note = f"<p><strong>Message:</strong> {escape(booking.message)}</p>"

    body = f"""
        <p>Hello {escape(owner.display_name)},</p>
        <p><strong>{escape(booking.renter.display_name)}</strong> would like to rent
        <strong>{escape(booking.equipment.title)}</strong>.</p>
        <ul>
            <li><strong>From:</strong> {_format_day(booking.start_date)}</li>
            <li><strong>To:</strong> {_format_day(booking.end_date)}</li>
            <li><strong>Total:</strong> {booking.total_price} {booking.currency}</li>
        </ul>
        {note}
        <p><a href="{_frontend_url('/dashboard/bookings')}">Review the request</a></p>
    """

    return send_email_notification(owner.email, subject, _layout("New rental request", body))


def send_booking_accepted_email(booking: "Booking") -> bool:
    subject = f"Your booking for {booking.equipment.title} is confirmed"

    body = f"""
        <p>Hello {escape(booking.renter.display_name)},</p>
        <p>The owner accepted your request for <strong>{escape(booking.equipment.title)}</strong>.</p>
        <ul>
            <li><strong>From:</strong> {_format_day(booking.start_date)}</li>
            <li><strong>To:</strong> {_format_day(booking.end_date)}</li>
            <li><strong>Total:</strong> {booking.total_price} {booking.currency}</li>
        </ul>
    """

    return send_email_notification(booking.renter.email, subject, _layout("Booking confirmed", body))


def send_booking_rejected_email(booking: "Booking") -> bool:
    """Let the renter know the owner declined the request."""
    subject = f"Your request for {booking.equipment.title} was not accepted"

    reason = ""
    if booking.rejection_reason:
        reason = f"<p><strong>Owner's message:</strong> {escape(booking.rejection_reason)}</p>"

    body = f"""
        <p>Hello {escape(booking.renter.display_name)},</p>
        <p>Unfortunately the owner did not accept your booking request for
        <strong>{escape(booking.equipment.title)}</strong>.</p>
        {reason}
        <p>Plenty of other equipment is available on the platform.</p>
        <p><a href="{_frontend_url('/search')}">Browse equipment</a></p>
    """

    return send_email_notification(booking.renter.email, subject, _layout("Request not accepted", body))


def send_date_proposal_email(booking: "Booking") -> bool:
    """Send the owner's alternative dates to the renter."""
    owner = booking.equipment.owner
    subject = f"New dates proposed for {booking.equipment.title}"

    note = ""
    if booking.proposal_message:
        note = f"<p><strong>Message:</strong> {escape(booking.proposal_message)}</p>"

    body = f"""
        <p>Hello {escape(booking.renter.display_name)},</p>
        <p><strong>{escape(owner.display_name)}</strong> suggests other dates for renting
        <strong>{escape(booking.equipment.title)}</strong>:</p>
        <ul>
            <li><strong>Requested:</strong> {_format_day(booking.start_date)} - {_format_day(booking.end_date)}</li>
            <li><strong>Proposed:</strong> {_format_day(booking.proposed_start_date)}
                - {_format_day(booking.proposed_end_date)}</li>
        </ul>
        {note}
        <p><a href="{_frontend_url('/dashboard/bookings')}">Answer the proposal</a></p>
    """

    return send_email_notification(booking.renter.email, subject, _layout("Date proposal", body))


def send_rental_started_email(booking: "Booking") -> bool:
    subject = f"Your rental of {booking.equipment.title} has started"

    body = f"""
        <p>Hello {escape(booking.renter.display_name)},</p>
        <p>The rental of <strong>{escape(booking.equipment.title)}</strong> has started.
        Please return it by {_format_day(booking.end_date)}.</p>
    """

    return send_email_notification(booking.renter.email, subject, _layout("Rental started", body))


def send_rental_completed_email(booking: "Booking") -> bool:
    subject = f"Thank you for renting {booking.equipment.title}"

    body = f"""
        <p>Hello {escape(booking.renter.display_name)},</p>
        <p>Your rental of <strong>{escape(booking.equipment.title)}</strong> is complete.
        You can now leave a review for the owner.</p>
    """

    return send_email_notification(booking.renter.email, subject, _layout("Rental completed", body))
