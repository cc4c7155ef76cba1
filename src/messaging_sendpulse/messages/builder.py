"""
WhatsApp Message Builder

Pure constructors for the message types SendPulse accepts. Each builder
enforces the WhatsApp structural limits before anything reaches the
network; none of them performs I/O.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Union
from urllib.parse import urlparse

from messaging_sendpulse.messages.templates import DEFAULT_TEMPLATE_LANGUAGE, TemplateRegistry
from messaging_sendpulse.providers.base import InvalidMessageError

logger = logging.getLogger(__name__)

# WhatsApp limits
MAX_TEXT_LENGTH = 4096
MAX_CAPTION_LENGTH = 1024
MAX_INTERACTIVE_BODY_LENGTH = 1024
MAX_BUTTONS = 3
MAX_BUTTON_TITLE_LENGTH = 20
MAX_BUTTON_ID_LENGTH = 256


@dataclass(frozen=True)
class Button:
    """A quick-reply button."""

    id: str
    title: str


@dataclass
class TextMessage:
    body: str
    preview_url: bool = False
    warnings: list[str] = field(default_factory=list, compare=False)

    @property
    def is_template(self) -> bool:
        return False

    def to_payload(self) -> dict[str, Any]:
        text: dict[str, Any] = {"body": self.body}
        if self.preview_url:
            text["preview_url"] = True
        return {"type": "text", "text": text}


@dataclass
class TemplateMessage:
    """Pre-approved template; the only type allowed outside the conversation window."""

    template_id: str
    language: str = DEFAULT_TEMPLATE_LANGUAGE
    components: list[dict[str, Any]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list, compare=False)

    @property
    def is_template(self) -> bool:
        return True

    def to_payload(self) -> dict[str, Any]:
        template: dict[str, Any] = {
            "name": self.template_id,
            "language": {"code": self.language},
        }
        if self.components:
            template["components"] = self.components
        return {"type": "template", "template": template}


@dataclass
class InteractiveButtonsMessage:
    body: str
    buttons: list[Button]
    warnings: list[str] = field(default_factory=list, compare=False)

    @property
    def is_template(self) -> bool:
        return False

    def to_payload(self) -> dict[str, Any]:
        return {
            "type": "interactive",
            "interactive": {
                "type": "button",
                "body": {"text": self.body},
                "action": {
                    "buttons": [
                        {"type": "reply", "reply": {"id": b.id, "title": b.title}}
                        for b in self.buttons
                    ]
                },
            },
        }


@dataclass
class ImageMessage:
    url: str
    caption: str | None = None
    warnings: list[str] = field(default_factory=list, compare=False)

    @property
    def is_template(self) -> bool:
        return False

    def to_payload(self) -> dict[str, Any]:
        image: dict[str, Any] = {"link": self.url}
        if self.caption:
            image["caption"] = self.caption
        return {"type": "image", "image": image}


OutboundMessage = Union[TextMessage, TemplateMessage, InteractiveButtonsMessage, ImageMessage]

ButtonSpec = Union[Button, str, dict[str, Any]]


class MessageBuilder:
    """
    Builds OutboundMessage values.

    Violations that would lose meaning (empty body, oversized text) raise
    InvalidMessageError. Violations with a deterministic fix (too many
    buttons, long titles, long captions) are truncated and reported in
    the message's `warnings` list.
    """

    def __init__(
        self,
        default_language: str = DEFAULT_TEMPLATE_LANGUAGE,
        templates: TemplateRegistry | None = None,
    ):
        self.default_language = default_language
        self.templates = templates if templates is not None else TemplateRegistry()

    def build_text(self, body: str, preview_url: bool = False) -> TextMessage:
        if not body or not body.strip():
            raise InvalidMessageError("Text message body cannot be empty")

        if len(body) > MAX_TEXT_LENGTH:
            raise InvalidMessageError(
                f"Text message exceeds {MAX_TEXT_LENGTH} characters",
                details={"length": len(body)},
            )

        return TextMessage(body=body, preview_url=preview_url)

    def build_template(
        self,
        template_id: str,
        variables: dict[str, Any] | list[Any] | None = None,
        language: str | None = None,
    ) -> TemplateMessage:
        """
        Build a template message.

        Registered templates order their variables per the registry and
        reject missing required ones. Unregistered templates send the
        variables as body parameters in the given order.

        Args:
            template_id: Approved template name
            variables: Mapping of parameter name -> value, or ordered values
            language: Language code (defaults to the builder's language)
        """
        if not template_id or not template_id.strip():
            raise InvalidMessageError("Template id cannot be empty")

        registered = self.templates.get(template_id)

        if registered is not None:
            if isinstance(variables, list):
                raise InvalidMessageError(
                    f"Template {template_id} expects named variables",
                    details={"template": template_id},
                )
            return TemplateMessage(
                template_id=template_id,
                language=language or registered.language,
                components=registered.build_components(variables or {}),
            )

        values = list(variables.values()) if isinstance(variables, dict) else list(variables or [])
        components = []
        if values:
            components.append(
                {
                    "type": "body",
                    "parameters": [{"type": "text", "text": str(v)} for v in values],
                }
            )

        return TemplateMessage(
            template_id=template_id,
            language=language or self.default_language,
            components=components,
        )

    def build_interactive_buttons(
        self,
        body: str,
        buttons: list[ButtonSpec],
    ) -> InteractiveButtonsMessage:
        """
        Build a quick-reply buttons message.

        More than 3 buttons are truncated to the first 3; titles longer
        than 20 characters are cut at 20 characters. Both produce a
        warning on the returned message instead of failing.
        """
        if not body or not body.strip():
            raise InvalidMessageError("Interactive message body cannot be empty")

        if len(body) > MAX_INTERACTIVE_BODY_LENGTH:
            raise InvalidMessageError(
                f"Interactive message body exceeds {MAX_INTERACTIVE_BODY_LENGTH} characters",
                details={"length": len(body)},
            )

        if not buttons:
            raise InvalidMessageError("Interactive message needs at least one button")

        warnings: list[str] = []

        if len(buttons) > MAX_BUTTONS:
            warnings.append(
                f"WhatsApp allows max {MAX_BUTTONS} buttons, "
                f"{len(buttons) - MAX_BUTTONS} button(s) dropped"
            )
            buttons = buttons[:MAX_BUTTONS]

        built = []
        for index, spec in enumerate(buttons):
            button = _coerce_button(spec, index)
            if len(button.title) > MAX_BUTTON_TITLE_LENGTH:
                warnings.append(
                    f"Button title truncated to {MAX_BUTTON_TITLE_LENGTH} characters: {button.title!r}"
                )
                button = Button(id=button.id, title=button.title[:MAX_BUTTON_TITLE_LENGTH])
            built.append(button)

        for warning in warnings:
            logger.warning(warning)

        return InteractiveButtonsMessage(body=body, buttons=built, warnings=warnings)

    def build_image(self, url: str, caption: str | None = None) -> ImageMessage:
        parsed = urlparse(url or "")
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise InvalidMessageError("Image URL must be an absolute http(s) URL", details={"url": url})

        warnings: list[str] = []
        if caption and len(caption) > MAX_CAPTION_LENGTH:
            warnings.append(f"Image caption truncated to {MAX_CAPTION_LENGTH} characters")
            logger.warning(warnings[-1])
            caption = caption[:MAX_CAPTION_LENGTH]

        return ImageMessage(url=url, caption=caption or None, warnings=warnings)


def _coerce_button(spec: ButtonSpec, index: int) -> Button:
    if isinstance(spec, Button):
        button = spec
    elif isinstance(spec, str):
        button = Button(id=f"btn_{index + 1}", title=spec)
    else:
        title = str(spec.get("title", ""))
        button = Button(id=str(spec.get("id") or f"btn_{index + 1}"), title=title)

    if not button.title.strip():
        raise InvalidMessageError(f"Button {index + 1} has an empty title")

    return Button(id=button.id[:MAX_BUTTON_ID_LENGTH], title=button.title)
