"""
Booking notifications.

Messages are sent on a detached daemon thread after the booking transaction
commits. Delivery failures are logged and swallowed: they never change the
outcome of the booking, cancellation or edit that triggered them.
"""

import logging
import smtplib
import threading
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional, Tuple

from salon_booking.core.config import SmtpSettings
from salon_booking.domain.entities import Appointment
from salon_booking.domain.interfaces import INotifier

logger = logging.getLogger(__name__)

Message = Tuple[str, str, str]  # (destination, subject, body)


class EmailNotifier(INotifier):
    """Send plain-text + HTML email through an SMTP relay with STARTTLS."""

    def __init__(self, settings: SmtpSettings, timeout: int = 10):
        self.settings = settings
        self.timeout = timeout

    def send(self, destination: str, subject: str, body: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.settings.sender
        msg["To"] = destination
        msg.attach(MIMEText(body, "plain", "utf-8"))
        msg.attach(
            MIMEText(f"<pre style='font-family:sans-serif'>{body}</pre>", "html", "utf-8")
        )

        with smtplib.SMTP(
            self.settings.host, self.settings.port, timeout=self.timeout
        ) as server:
            server.starttls()
            server.login(self.settings.user, self.settings.password)
            server.sendmail(self.settings.user, [destination], msg.as_string())
        logger.info(
            "Email sent",
            extra={"context": {"destination": destination, "subject": subject}},
        )


class LogNotifier(INotifier):
    """Used when SMTP credentials are not configured: records the message only."""

    def send(self, destination: str, subject: str, body: str) -> None:
        logger.info(
            "Email delivery disabled; notification not sent",
            extra={"context": {"destination": destination, "subject": subject}},
        )


def _describe(appointment: Appointment) -> List[str]:
    lines = [
        f"Date: {appointment.date.isoformat() if appointment.date else '-'}",
        f"Time: {appointment.time}",
        f"Service: {appointment.service}",
        f"Client: {appointment.client_name}",
    ]
    if appointment.client_email:
        lines.append(f"Email: {appointment.client_email}")
    if appointment.client_phone:
        lines.append(f"Phone: {appointment.client_phone}")
    if appointment.note:
        lines.append(f"Note: {appointment.note}")
    return lines


class NotificationDispatcher:
    """Builds booking messages and delivers them off the request path."""

    def __init__(
        self,
        notifier: INotifier,
        salon_name: str = "NailsCata",
        salon_inbox: Optional[str] = None,
        notify_client: bool = True,
    ):
        self.notifier = notifier
        self.salon_name = salon_name
        self.salon_inbox = salon_inbox or None
        self.notify_client = notify_client

    def appointment_booked(self, appointment: Appointment) -> Optional[threading.Thread]:
        details = "\n".join(_describe(appointment))
        messages: List[Message] = []
        if self.salon_inbox:
            messages.append(
                (
                    self.salon_inbox,
                    f"{self.salon_name}: new appointment {appointment.date} {appointment.time}",
                    f"A new appointment was booked.\n\n{details}",
                )
            )
        if self.notify_client and appointment.client_email:
            messages.append(
                (
                    appointment.client_email,
                    f"{self.salon_name}: your appointment is confirmed",
                    f"Hi {appointment.client_name},\n\n"
                    f"Your appointment is booked.\n\n{details}\n\nSee you soon!",
                )
            )
        return self._dispatch("appointment_booked", appointment, messages)

    def appointment_cancelled(
        self, appointment: Appointment
    ) -> Optional[threading.Thread]:
        details = "\n".join(_describe(appointment))
        messages: List[Message] = []
        if self.salon_inbox:
            messages.append(
                (
                    self.salon_inbox,
                    f"{self.salon_name}: appointment cancelled {appointment.date} {appointment.time}",
                    f"An appointment was cancelled. The slot is free again.\n\n{details}",
                )
            )
        if self.notify_client and appointment.client_email:
            messages.append(
                (
                    appointment.client_email,
                    f"{self.salon_name}: your appointment was cancelled",
                    f"Hi {appointment.client_name},\n\n"
                    f"Your appointment has been cancelled.\n\n{details}",
                )
            )
        return self._dispatch("appointment_cancelled", appointment, messages)

    def appointment_rescheduled(
        self, previous: Appointment, current: Appointment
    ) -> Optional[threading.Thread]:
        details = "\n".join(_describe(current))
        moved = f"Moved from {previous.date} {previous.time} to {current.date} {current.time}."
        messages: List[Message] = []
        if self.salon_inbox:
            messages.append(
                (
                    self.salon_inbox,
                    f"{self.salon_name}: appointment rescheduled",
                    f"{moved}\n\n{details}",
                )
            )
        if self.notify_client and current.client_email:
            messages.append(
                (
                    current.client_email,
                    f"{self.salon_name}: your appointment was rescheduled",
                    f"Hi {current.client_name},\n\n{moved}\n\n{details}",
                )
            )
        return self._dispatch("appointment_rescheduled", current, messages)

    def _dispatch(
        self, event_name: str, appointment: Appointment, messages: List[Message]
    ) -> Optional[threading.Thread]:
        if not messages:
            logger.debug(
                "No notification recipients",
                extra={"context": {"event": event_name, "appointment_id": appointment.id}},
            )
            return None

        def deliver():
            for destination, subject, body in messages:
                try:
                    self.notifier.send(destination, subject, body)
                except Exception as e:
                    logger.error(
                        "Notification delivery failed",
                        extra={
                            "context": {
                                "event": event_name,
                                "appointment_id": appointment.id,
                                "destination": destination,
                                "error": str(e),
                            }
                        },
                        exc_info=True,
                    )

        thread = threading.Thread(
            target=deliver, name=f"notify-{event_name}-{appointment.id}", daemon=True
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.error(
                "Could not start notification thread",
                extra={"context": {"event": event_name, "error": str(e)}},
            )
            return None
        return thread


def build_dispatcher(settings: SmtpSettings, salon_name: str) -> NotificationDispatcher:
    """Pick the SMTP notifier when credentials exist, else the logging one."""
    notifier: INotifier = EmailNotifier(settings) if settings.enabled else LogNotifier()
    if not settings.enabled:
        logger.warning(
            "SMTP_USER/SMTP_PASSWORD not set; booking emails are disabled",
            extra={"context": {"smtp_host": settings.host}},
        )
    return NotificationDispatcher(
        notifier,
        salon_name=salon_name,
        salon_inbox=settings.salon_inbox,
        notify_client=settings.notify_client,
    )
