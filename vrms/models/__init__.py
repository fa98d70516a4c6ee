"""Database models."""

from vrms.models.company import Company, Property
from vrms.models.profile import Profile
from vrms.models.promotion import Promotion
from vrms.models.customer import Customer
from vrms.models.chat import Conversation, Message, Participant, SupportTicket
from vrms.models.notification import Notification

__all__ = [
    "Company",
    "Property",
    "Profile",
    "Promotion",
    "Customer",
    "Conversation",
    "Participant",
    "Message",
    "SupportTicket",
    "Notification",
]
