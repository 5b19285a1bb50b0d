"""Database models for EZ Check-in"""

from ez_checkin.models.event_form import EventForm, PublishedForm
from ez_checkin.models.form_field import FormField
from ez_checkin.models.registration import Registration, RegistrationStatus

__all__ = [
    "EventForm",
    "PublishedForm",
    "FormField",
    "Registration",
    "RegistrationStatus",
]
