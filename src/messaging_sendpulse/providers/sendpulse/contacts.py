"""
SendPulse Contact Directory

Create/update and look up provider-side contacts, with a short-lived
in-memory cache keyed by normalized phone number.
"""

import logging
import time
from collections.abc import Callable
from typing import Any

from messaging_sendpulse.contracts.models import Contact
from messaging_sendpulse.contracts.payloads import ContactRecord
from messaging_sendpulse.providers.sendpulse.auth import TokenManager
from messaging_sendpulse.providers.sendpulse.channels import ChannelResolver
from messaging_sendpulse.providers.sendpulse.client import SendPulseHttpClient, raise_for_status
from messaging_sendpulse.routing.phone import mask_phone, normalize_phone

logger = logging.getLogger(__name__)

DEFAULT_CONTACT_TTL_SECONDS = 5 * 60


class ContactCache:
    """TTL cache of contacts by normalized phone."""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CONTACT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Contact, float]] = {}

    def get(self, phone: str) -> Contact | None:
        entry = self._entries.get(phone)
        if entry is None:
            return None
        contact, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[phone]
            return None
        return contact

    def set(self, phone: str, contact: Contact) -> None:
        self._entries[phone] = (contact, self._clock() + self.ttl_seconds)

    def invalidate(self, phone: str) -> None:
        self._entries.pop(phone, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def _to_contact(record: ContactRecord, fallback_phone: str) -> Contact:
    channel = record.channel_data
    return Contact(
        id=record.id,
        phone=(channel.phone if channel and channel.phone else record.phone) or fallback_phone,
        name=(channel.name if channel and channel.name else record.name) or None,
        variables=dict(record.variables),
        tags=list(record.tags),
        conversation_open=record.is_chat_opened,
    )


def _first_record(data: dict[str, Any]) -> dict[str, Any] | None:
    payload = data.get("data", data)
    if isinstance(payload, list):
        payload = payload[0] if payload else None
    return payload if isinstance(payload, dict) and payload else None


class ContactDirectory:
    """
    Provider-side contacts for the resolved channel.

    Absence is a normal outcome: get() returns None for unknown phones.
    """

    def __init__(
        self,
        http: SendPulseHttpClient,
        tokens: TokenManager,
        channels: ChannelResolver,
        country_code: str = "55",
        cache: ContactCache | None = None,
    ):
        self.http = http
        self.tokens = tokens
        self.channels = channels
        self.country_code = country_code
        self.cache = cache if cache is not None else ContactCache()

    async def get(self, phone: str, use_cache: bool = True) -> Contact | None:
        """
        Look up a contact by phone.

        Returns:
            Contact, or None when SendPulse does not know the number
        """
        normalized = normalize_phone(phone, self.country_code)

        if use_cache:
            cached = self.cache.get(normalized)
            if cached is not None:
                return cached

        token = await self.tokens.get_access_token()
        bot_id = await self.channels.resolve()

        response = await self.http.request(
            "GET",
            "/contacts/getByPhone",
            access_token=token,
            params={"phone": normalized, "bot_id": bot_id},
        )

        if response.status_code == 404:
            logger.debug("Contact not found", extra={"phone": mask_phone(normalized)})
            return None

        data = raise_for_status(response)
        record = _first_record(data)
        if data.get("success") is False or record is None:
            return None

        contact = _to_contact(ContactRecord.model_validate(record), normalized)
        self.cache.set(normalized, contact)
        return contact

    async def create_or_update(self, contact: Contact) -> Contact:
        """Upsert a contact and refresh its cache entry."""
        normalized = normalize_phone(contact.phone, self.country_code)

        token = await self.tokens.get_access_token()
        bot_id = await self.channels.resolve()

        body: dict[str, Any] = {
            "bot_id": bot_id,
            "phone": normalized,
            "variables": contact.variables,
            "tags": contact.tags,
        }
        if contact.name:
            body["name"] = contact.name

        response = await self.http.request("POST", "/contacts", access_token=token, json_data=body)
        data = raise_for_status(response)

        record = _first_record(data)
        if record is not None:
            saved = _to_contact(ContactRecord.model_validate(record), normalized)
            saved.name = saved.name or contact.name
            if not saved.variables:
                saved.variables = dict(contact.variables)
            if not saved.tags:
                saved.tags = list(contact.tags)
        else:
            saved = Contact(
                phone=normalized,
                id=contact.id,
                name=contact.name,
                variables=dict(contact.variables),
                tags=list(contact.tags),
                conversation_open=contact.conversation_open,
            )

        self.cache.set(normalized, saved)

        logger.info(
            "SendPulse contact saved",
            extra={"phone": mask_phone(normalized), "contact_id": saved.id},
        )
        return saved

    async def conversation_open(self, phone: str) -> bool:
        """Check whether the 24h conversation window is open for a phone."""
        contact = await self.get(phone)
        return bool(contact and contact.conversation_open)

    def invalidate(self, phone: str) -> None:
        self.cache.invalidate(normalize_phone(phone, self.country_code))
