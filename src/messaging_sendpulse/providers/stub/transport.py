"""
Stub SendPulse API

In-process fake of the SendPulse endpoints, served through
httpx.MockTransport. Records every request and sent message and
generates fake ids. Responses can be scripted per path to simulate
provider failures.
"""

import json
import logging
from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

import httpx

from messaging_sendpulse.routing.phone import mask_phone

logger = logging.getLogger(__name__)

STUB_BOT_ID = "stub_bot_0001"


class StubSendPulseApi:
    """
    Fake SendPulse API for development and testing.

    - Issues tokens on the OAuth endpoint
    - Lists configured bots
    - Stores contacts in memory
    - Accepts sends and returns fake message ids
    """

    def __init__(
        self,
        bots: list[dict[str, Any]] | None = None,
        token_expires_in: int = 3600,
    ):
        if bots is None:
            bots = [
                {
                    "id": STUB_BOT_ID,
                    "name": "Stub Bot",
                    "status": 3,
                    "channel_data": {"phone": 5511999990000, "name": "Stub Bot"},
                }
            ]
        self.bots = bots
        self.token_expires_in = token_expires_in
        self.contacts: dict[str, dict[str, Any]] = {}
        self.sent_messages: list[dict[str, Any]] = []
        self.requests: list[httpx.Request] = []
        self.tokens_issued = 0
        self._scripted: dict[str, deque[httpx.Response]] = defaultdict(deque)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def queue_response(
        self,
        path: str,
        status_code: int,
        json_body: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Make the next request to `path` (suffix match) return this response."""
        self._scripted[path].append(
            httpx.Response(status_code, json=json_body if json_body is not None else {}, headers=headers)
        )

    def calls(self, path: str) -> list[httpx.Request]:
        """Recorded requests whose path ends with `path`."""
        return [r for r in self.requests if r.url.path.endswith(path)]

    def add_contact(
        self,
        phone: str,
        name: str | None = None,
        is_chat_opened: bool = True,
        contact_id: str | None = None,
    ) -> dict[str, Any]:
        record = {
            "id": contact_id or f"stub_contact_{uuid4().hex[:12]}",
            "bot_id": STUB_BOT_ID,
            "channel_data": {"phone": int(phone) if phone.isdigit() else phone, "name": name},
            "is_chat_opened": is_chat_opened,
            "variables": {},
            "tags": [],
        }
        self.contacts[phone] = record
        return record

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for suffix, queue in self._scripted.items():
            if path.endswith(suffix) and queue:
                return queue.popleft()

        if path.endswith("/oauth/access_token"):
            return self._issue_token()

        if not request.headers.get("Authorization", "").startswith("Bearer "):
            return httpx.Response(401, json={"message": "Unauthorized"})

        body = json.loads(request.content) if request.content else {}

        if request.method == "GET" and path.endswith("/bots"):
            return httpx.Response(200, json={"success": True, "data": self.bots})

        if request.method == "GET" and path.endswith("/contacts/getByPhone"):
            record = self.contacts.get(request.url.params.get("phone", ""))
            if record is None:
                return httpx.Response(404, json={"success": False, "message": "Contact not found"})
            return httpx.Response(200, json={"success": True, "data": record})

        if request.method == "POST" and path.endswith("/contacts/sendByPhone"):
            return self._accept_message(body, to=body.get("phone"))

        if request.method == "POST" and path.endswith("/contacts/send"):
            return self._accept_message(body, to=body.get("contact_id"))

        if request.method == "POST" and path.endswith("/contacts"):
            phone = str(body.get("phone", ""))
            record = self.contacts.get(phone) or self.add_contact(phone, is_chat_opened=False)
            record["channel_data"]["name"] = body.get("name") or record["channel_data"]["name"]
            record["variables"] = body.get("variables") or {}
            record["tags"] = body.get("tags") or []
            return httpx.Response(200, json={"success": True, "data": record})

        return httpx.Response(404, json={"success": False, "message": f"Unknown endpoint {path}"})

    def _issue_token(self) -> httpx.Response:
        self.tokens_issued += 1
        return httpx.Response(
            200,
            json={
                "access_token": f"stub_token_{self.tokens_issued}",
                "token_type": "Bearer",
                "expires_in": self.token_expires_in,
            },
        )

    def _accept_message(self, body: dict[str, Any], to: str | None) -> httpx.Response:
        message_id = f"stub_msg_{uuid4().hex[:16]}"
        message = body.get("message", {})

        self.sent_messages.append(
            {
                "id": message_id,
                "to": to,
                "bot_id": body.get("bot_id"),
                "message": message,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

        logger.info(
            "[STUB] Accepted message",
            extra={"to": mask_phone(to) if to and to.isdigit() else to, "type": message.get("type")},
        )

        return httpx.Response(
            200,
            json={
                "success": True,
                "data": {"id": message_id, "bot_id": body.get("bot_id"), "type": message.get("type")},
            },
        )
