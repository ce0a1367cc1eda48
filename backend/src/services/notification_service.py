# pyright: reportUnknownMemberType=false, reportMissingTypeStubs=false
import base64
import html
import logging
from datetime import datetime

import resend

from core.config import (
    EMAIL_FROM_ADDRESS, PHARMACY_ADDRESS, PHARMACY_NAME, PHARMACY_PHONE, RESEND_API_KEY
)
from core.constants import CALENDAR_INVITE_FILENAME, CONFIRMATION_EMAIL_SUBJECT
from models import Appointment
from utils.calendar_invite import build_calendar_invite
from utils.datetime_utils import format_date_fr, format_time, to_utc

logger = logging.getLogger(__name__)

VACCINE_LABELS = {
    "covid": "COVID-19",
    "grippe": "Grippe",
}


class NotificationService:
    """Service for sending booking confirmation emails to patients."""

    @staticmethod
    def _confirmation_html(appointment: Appointment) -> str:
        patient = appointment.patient
        first_name = html.escape((patient.first_name or "").strip().split(" ")[0]) if patient else ""
        services = ", ".join(VACCINE_LABELS.get(s, s) for s in appointment.services or [])
        address = html.escape(PHARMACY_ADDRESS or PHARMACY_NAME)
        contact = (
            f" n'hésitez pas à nous contacter au <strong>{html.escape(PHARMACY_PHONE)}</strong> ou par retour de mail."
            if PHARMACY_PHONE else " n'hésitez pas à nous contacter par retour de mail."
        )
        return f"""
      <p>Bonjour {first_name},</p>
      <p>Nous vous confirmons votre rendez-vous de vaccination à la {html.escape(PHARMACY_NAME)} :</p>
      <p>Date : <strong>{format_date_fr(appointment.appointment_date)}</strong><br/>
      Heure : <strong>{format_time(appointment.appointment_time)}</strong><br/>
      Vaccin(s) : <strong>{html.escape(services)}</strong><br/>
      Adresse : <strong>{address}</strong></p>
      <p>Merci de vous présenter quelques minutes à l'avance, muni(e) de votre carte d'identité.</p>
      <p>Si vous avez un empêchement ou si vous souhaitez modifier votre rendez-vous,{contact}</p>
      <p>À très bientôt,<br/>{html.escape(PHARMACY_NAME)}</p>
    """

    @staticmethod
    def build_invite(appointment: Appointment, now: datetime | None = None) -> str:
        """Calendar invite text for an appointment."""
        services = ", ".join(VACCINE_LABELS.get(s, s) for s in appointment.services or [])
        description_lines = [f"Vaccination : {services}"] if services else []
        if appointment.notes:
            description_lines.append(appointment.notes)
        return build_calendar_invite(
            start=to_utc(appointment.appointment_date, appointment.appointment_time),
            summary=f"Rendez-vous {PHARMACY_NAME}",
            description="\n".join(description_lines),
            location=PHARMACY_ADDRESS or PHARMACY_NAME,
            uid_domain=EMAIL_FROM_ADDRESS.split("@")[-1],
            now=now,
        )

    @staticmethod
    def send_appointment_confirmation(appointment: Appointment) -> bool:
        """
        Send the booking confirmation email with a calendar invite attached.

        Never raises: the booking is already committed when this runs, so a
        failure is logged and reported to the caller instead.

        Args:
            appointment: Committed appointment, with its patient loaded

        Returns:
            True if the email was handed to the provider, False otherwise
        """
        try:
            patient = appointment.patient
            if not patient or not patient.email:
                logger.warning(f"Appointment {appointment.id} has no patient email, skipping confirmation")
                return False

            if not RESEND_API_KEY:
                logger.warning("RESEND_API_KEY not configured, skipping confirmation email")
                return False

            resend.api_key = RESEND_API_KEY
            invite = NotificationService.build_invite(appointment)
            response = resend.Emails.send({
                "from": EMAIL_FROM_ADDRESS,
                "to": [patient.email],
                "subject": CONFIRMATION_EMAIL_SUBJECT,
                "html": NotificationService._confirmation_html(appointment),
                "attachments": [
                    {
                        "filename": CALENDAR_INVITE_FILENAME,
                        "content": base64.b64encode(invite.encode("utf-8")).decode("ascii"),
                        "content_type": "text/calendar",
                    }
                ],
            })
            logger.info(f"Sent confirmation email for appointment {appointment.id}: {response}")
            return True

        except Exception as e:
            logger.exception(f"Failed to send appointment confirmation: {e}")
            return False
