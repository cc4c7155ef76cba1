"""
SendPulse Payload Models

Pydantic models for the provider's JSON responses.
Only the fields the client relies on are declared; the rest is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TokenResponse(BaseModel):
    """Response of the OAuth2 client_credentials grant."""

    access_token: str = Field(..., min_length=1, description="Bearer token")
    token_type: str = Field("Bearer", description="Token type")
    expires_in: int = Field(3600, description="Lifetime in seconds")

    @field_validator("expires_in", mode="before")
    @classmethod
    def default_expires_in(cls, value: Any) -> Any:
        return 3600 if value in (None, "", 0) else value


class ChannelData(BaseModel):
    """Channel info attached to bots and contacts."""

    model_config = ConfigDict(extra="ignore")

    phone: str = Field("", description="Phone number in international digits")
    name: str = Field("", description="Display name")

    @field_validator("phone", mode="before")
    @classmethod
    def phone_as_string(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("name", mode="before")
    @classmethod
    def name_as_string(cls, value: Any) -> str:
        return value or ""


class BotRecord(BaseModel):
    """A WhatsApp bot (sending channel) as listed by GET /bots."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Bot ID used as bot_id in send calls")
    name: str = Field("", description="Bot name")
    status: int | None = Field(None, description="Provider status (3 = active)")
    channel_data: ChannelData | None = Field(None, description="Bound phone and display name")
    channel: ChannelData | str | None = Field(None, description="Channel info (older shape)")

    @field_validator("id", mode="before")
    @classmethod
    def id_as_string(cls, value: Any) -> str:
        return str(value)

    @property
    def phone(self) -> str:
        if self.channel_data and self.channel_data.phone:
            return self.channel_data.phone
        if isinstance(self.channel, ChannelData):
            return self.channel.phone
        return ""

    @property
    def display_name(self) -> str:
        if self.channel_data and self.channel_data.name:
            return self.channel_data.name
        return self.name


class BotsResponse(BaseModel):
    """Response of GET /bots."""

    success: bool = True
    data: list[BotRecord] = Field(default_factory=list)


class ContactRecord(BaseModel):
    """A contact as returned by the contacts endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(None, description="Provider contact ID")
    phone: str = Field("", description="Phone (flat shape)")
    name: str | None = Field(None, description="Name (flat shape)")
    channel_data: ChannelData | None = Field(None, description="Phone and name (nested shape)")
    is_chat_opened: bool | None = Field(None, description="Inside the 24h conversation window")
    variables: dict[str, Any] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)

    @field_validator("id", "phone", mode="before")
    @classmethod
    def as_string(cls, value: Any) -> Any:
        return value if value is None or isinstance(value, str) else str(value)

    @field_validator("variables", mode="before")
    @classmethod
    def variables_as_dict(cls, value: Any) -> Any:
        # The provider returns [] for contacts without variables
        return value or {}


class SendMessageResponse(BaseModel):
    """Response of the send endpoints."""

    model_config = ConfigDict(extra="ignore")

    success: bool = True
    data: dict[str, Any] | None = None

    @property
    def message_id(self) -> str | None:
        if not self.data:
            return None
        value = self.data.get("id") or self.data.get("message_id")
        return str(value) if value is not None else None
