"""
Tests for MessageBuilder.
"""

import pytest

from messaging_sendpulse.messages.builder import (
    MAX_CAPTION_LENGTH,
    MAX_TEXT_LENGTH,
    Button,
    MessageBuilder,
)
from messaging_sendpulse.messages.templates import (
    MessageTemplate,
    TemplateComponent,
    TemplateParameter,
    TemplateRegistry,
)
from messaging_sendpulse.providers.base import InvalidMessageError


@pytest.fixture
def builder():
    return MessageBuilder()


class TestBuildText:
    """Tests for text messages."""

    def test_payload(self, builder):
        message = builder.build_text("Olá!")

        assert message.to_payload() == {"type": "text", "text": {"body": "Olá!"}}
        assert message.is_template is False

    def test_preview_url(self, builder):
        payload = builder.build_text("https://example.com", preview_url=True).to_payload()

        assert payload["text"]["preview_url"] is True

    def test_max_length_accepted(self, builder):
        message = builder.build_text("a" * MAX_TEXT_LENGTH)

        assert len(message.body) == MAX_TEXT_LENGTH

    def test_too_long_rejected(self, builder):
        with pytest.raises(InvalidMessageError):
            builder.build_text("a" * (MAX_TEXT_LENGTH + 1))

    @pytest.mark.parametrize("body", ["", "   "])
    def test_empty_rejected(self, builder, body):
        with pytest.raises(InvalidMessageError):
            builder.build_text(body)


class TestBuildInteractiveButtons:
    """Tests for quick-reply button messages."""

    def test_five_buttons_truncated_to_three(self, builder):
        """Test extra buttons are dropped with a warning instead of failing."""
        message = builder.build_interactive_buttons(
            "Escolha uma opção",
            ["Um", "Dois", "Três", "Quatro", "Cinco"],
        )

        assert len(message.buttons) == 3
        assert [b.title for b in message.buttons] == ["Um", "Dois", "Três"]
        assert all(len(b.title) <= 20 for b in message.buttons)
        assert any("2 button(s) dropped" in w for w in message.warnings)

    def test_long_title_truncated_by_characters(self, builder):
        """Test titles are cut at 20 characters, not at a word boundary."""
        message = builder.build_interactive_buttons(
            "Confirma?",
            [Button(id="confirm", title="Confirmar agendamento agora")],
        )

        assert message.buttons[0].title == "Confirmar agendament"
        assert message.buttons[0].id == "confirm"
        assert len(message.warnings) == 1

    def test_no_warnings_within_limits(self, builder):
        message = builder.build_interactive_buttons("Confirma?", ["Sim", "Não"])

        assert message.warnings == []

    def test_button_ids_generated(self, builder):
        message = builder.build_interactive_buttons(
            "Confirma?",
            ["Sim", {"id": "no", "title": "Não"}, {"title": "Talvez"}],
        )

        assert [b.id for b in message.buttons] == ["btn_1", "no", "btn_3"]

    def test_payload(self, builder):
        payload = builder.build_interactive_buttons("Confirma?", ["Sim"]).to_payload()

        assert payload == {
            "type": "interactive",
            "interactive": {
                "type": "button",
                "body": {"text": "Confirma?"},
                "action": {
                    "buttons": [{"type": "reply", "reply": {"id": "btn_1", "title": "Sim"}}]
                },
            },
        }

    def test_no_buttons_rejected(self, builder):
        with pytest.raises(InvalidMessageError):
            builder.build_interactive_buttons("Confirma?", [])

    def test_empty_title_rejected(self, builder):
        with pytest.raises(InvalidMessageError):
            builder.build_interactive_buttons("Confirma?", ["  "])


class TestBuildImage:
    """Tests for image messages."""

    def test_payload(self, builder):
        payload = builder.build_image("https://cdn.example.com/a.png", "Legenda").to_payload()

        assert payload == {
            "type": "image",
            "image": {"link": "https://cdn.example.com/a.png", "caption": "Legenda"},
        }

    def test_no_caption(self, builder):
        payload = builder.build_image("https://cdn.example.com/a.png").to_payload()

        assert "caption" not in payload["image"]

    def test_long_caption_truncated(self, builder):
        message = builder.build_image("https://cdn.example.com/a.png", "x" * 1500)

        assert len(message.caption) == MAX_CAPTION_LENGTH
        assert message.warnings

    @pytest.mark.parametrize("url", ["", "not a url", "ftp://example.com/a.png", "/relative.png"])
    def test_invalid_url_rejected(self, builder, url):
        with pytest.raises(InvalidMessageError):
            builder.build_image(url)


class TestBuildTemplate:
    """Tests for template messages."""

    def test_default_language(self, builder):
        message = builder.build_template("appointment_reminder")

        assert message.language == "pt_BR"
        assert message.is_template is True
        assert message.to_payload() == {
            "type": "template",
            "template": {"name": "appointment_reminder", "language": {"code": "pt_BR"}},
        }

    def test_builder_language_override(self):
        message = MessageBuilder(default_language="en_US").build_template("welcome")

        assert message.language == "en_US"

    def test_variables_become_body_parameters(self, builder):
        message = builder.build_template("appointment_reminder", ["Maria", "10:00"])

        assert message.components == [
            {
                "type": "body",
                "parameters": [
                    {"type": "text", "text": "Maria"},
                    {"type": "text", "text": "10:00"},
                ],
            }
        ]

    @pytest.mark.parametrize("template_id", ["", "   "])
    def test_empty_template_id_rejected(self, builder, template_id):
        with pytest.raises(InvalidMessageError):
            builder.build_template(template_id)

    def test_registered_template_orders_variables(self):
        registry = TemplateRegistry(
            [
                MessageTemplate(
                    name="order_status",
                    language="pt_BR",
                    components=[
                        TemplateComponent(
                            type="body",
                            parameters=[
                                TemplateParameter(name="customer_name"),
                                TemplateParameter(name="order_number"),
                            ],
                        )
                    ],
                )
            ]
        )
        builder = MessageBuilder(templates=registry)

        message = builder.build_template(
            "order_status",
            {"order_number": "1234", "customer_name": "Maria"},
        )

        assert message.components[0]["parameters"] == [
            {"type": "text", "text": "Maria"},
            {"type": "text", "text": "1234"},
        ]

    def test_registered_template_missing_required(self):
        registry = TemplateRegistry(
            [
                MessageTemplate(
                    name="order_status",
                    components=[
                        TemplateComponent(type="body", parameters=[TemplateParameter(name="order_number")])
                    ],
                )
            ]
        )

        with pytest.raises(InvalidMessageError, match="order_number"):
            MessageBuilder(templates=registry).build_template("order_status", {})

    def test_registry_populated_after_construction(self):
        """Test an initially empty registry is the one the builder consults."""
        registry = TemplateRegistry()
        builder = MessageBuilder(templates=registry)
        registry.register(
            MessageTemplate(
                name="order_status",
                components=[TemplateComponent(type="body", parameters=[TemplateParameter(name="order_number")])],
            )
        )

        assert builder.templates is registry
        with pytest.raises(InvalidMessageError, match="order_number"):
            builder.build_template("order_status", {})
