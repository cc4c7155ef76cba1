"""
SendPulse Messages

Outbound message types, builders and the template registry.
"""

from messaging_sendpulse.messages.builder import (
    Button,
    ImageMessage,
    InteractiveButtonsMessage,
    MessageBuilder,
    OutboundMessage,
    TemplateMessage,
    TextMessage,
)
from messaging_sendpulse.messages.templates import (
    MessageTemplate,
    TemplateComponent,
    TemplateParameter,
    TemplateRegistry,
)

__all__ = [
    "Button",
    "ImageMessage",
    "InteractiveButtonsMessage",
    "MessageBuilder",
    "OutboundMessage",
    "TemplateMessage",
    "TextMessage",
    "MessageTemplate",
    "TemplateComponent",
    "TemplateParameter",
    "TemplateRegistry",
]
