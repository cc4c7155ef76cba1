"""
WhatsApp Template Registry

Approved message templates for sending outside the 24h conversation
window. Templates must be pre-approved in the WhatsApp Business account
connected to SendPulse; the registry only describes their parameters.
"""

from dataclasses import dataclass, field
from typing import Any

from messaging_sendpulse.providers.base import InvalidMessageError

DEFAULT_TEMPLATE_LANGUAGE = "pt_BR"


@dataclass
class TemplateParameter:
    """A parameter in a template component."""

    name: str
    required: bool = True


@dataclass
class TemplateComponent:
    """A component of a template (header, body, button)."""

    type: str  # header, body, button
    parameters: list[TemplateParameter] = field(default_factory=list)
    button_index: int | None = None  # For button components
    sub_type: str = "quick_reply"


@dataclass
class MessageTemplate:
    """
    A WhatsApp message template.

    Parameter order inside each component is the order of the {{n}}
    placeholders in the approved template.
    """

    name: str
    language: str = DEFAULT_TEMPLATE_LANGUAGE
    category: str = "UTILITY"  # UTILITY, MARKETING, AUTHENTICATION
    components: list[TemplateComponent] = field(default_factory=list)
    description: str = ""

    def build_components(self, variables: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Build template components payload from variables.

        Args:
            variables: Dict mapping parameter names to values

        Returns:
            Components list for the send request

        Raises:
            InvalidMessageError: If a required parameter is missing
        """
        missing = [
            param.name
            for component in self.components
            for param in component.parameters
            if param.required and variables.get(param.name) in (None, "")
        ]
        if missing:
            raise InvalidMessageError(
                f"Missing required template parameters for {self.name}: {', '.join(missing)}",
                details={"template": self.name, "missing": missing},
            )

        result = []

        for component in self.components:
            comp_data: dict[str, Any] = {"type": component.type}
            parameters = [
                {"type": "text", "text": str(variables[param.name])}
                for param in component.parameters
                if variables.get(param.name) not in (None, "")
            ]

            if component.button_index is not None:
                comp_data["sub_type"] = component.sub_type
                comp_data["index"] = component.button_index

            if parameters:
                comp_data["parameters"] = parameters
            elif component.type != "button":
                continue

            result.append(comp_data)

        return result


class TemplateRegistry:
    """
    Registry of approved message templates.

    Templates are registered by name and looked up by MessageBuilder.
    """

    def __init__(self, templates: list[MessageTemplate] | None = None) -> None:
        self._templates: dict[str, MessageTemplate] = {}
        for template in templates or []:
            self.register(template)

    def register(self, template: MessageTemplate) -> None:
        """Register a template."""
        self._templates[template.name] = template

    def get(self, name: str) -> MessageTemplate | None:
        """Get a template by name."""
        return self._templates.get(name)

    def get_or_raise(self, name: str) -> MessageTemplate:
        """Get a template by name, raising if not found."""
        template = self.get(name)
        if template is None:
            raise InvalidMessageError(f"Template not found: {name}", details={"template": name})
        return template

    def list_templates(self) -> list[str]:
        """List all registered template names."""
        return list(self._templates.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._templates

    def __len__(self) -> int:
        return len(self._templates)
