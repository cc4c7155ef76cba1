"""
SendPulse Domain Models

Plain data types shared between the components of the client.
"""

from dataclasses import dataclass, field
from typing import Any

from messaging_sendpulse.config.settings import TOKEN_EXPIRY_MARGIN_SECONDS


@dataclass(frozen=True)
class AccessToken:
    """
    OAuth2 bearer token owned by TokenManager.

    expires_at is already reduced by the safety margin, so the token is
    usable while now < expires_at.
    """

    value: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def expires_in(self, now: float) -> int:
        return max(0, int(self.expires_at - now))

    @classmethod
    def issue(cls, value: str, expires_in: float, now: float) -> "AccessToken":
        """Build a token from an `expires_in` response, applying the margin."""
        return cls(value=value, expires_at=now + expires_in - TOKEN_EXPIRY_MARGIN_SECONDS)


@dataclass(frozen=True)
class Channel:
    """Provider-side sending identity (a WhatsApp bot bound to one number)."""

    id: str
    display_name: str = ""
    phone_number: str = ""
    active: bool = True


@dataclass
class Contact:
    """Provider-side contact record."""

    phone: str
    id: str | None = None
    name: str | None = None
    variables: dict[str, Any] = field(default_factory=dict)
    tags: list[str] = field(default_factory=list)
    conversation_open: bool | None = None


@dataclass(frozen=True)
class SendTarget:
    """
    Message destination: either a phone number or a provider contact id.

    conversation_open is only known when the target was built from a
    Contact lookup; None means "unknown, let the provider decide".
    """

    phone: str | None = None
    contact_id: str | None = None
    conversation_open: bool | None = None

    def __post_init__(self) -> None:
        if bool(self.phone) == bool(self.contact_id):
            raise ValueError("SendTarget needs exactly one of phone or contact_id")

    @classmethod
    def to_phone(cls, phone: str) -> "SendTarget":
        return cls(phone=phone)

    @classmethod
    def to_contact(cls, contact_id: str) -> "SendTarget":
        return cls(contact_id=contact_id)

    @classmethod
    def from_contact(cls, contact: Contact) -> "SendTarget":
        """Target a known contact, carrying its conversation window state."""
        if contact.id:
            return cls(contact_id=contact.id, conversation_open=contact.conversation_open)
        return cls(phone=contact.phone, conversation_open=contact.conversation_open)

    @property
    def is_phone(self) -> bool:
        return self.phone is not None
