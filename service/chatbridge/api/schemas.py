from pydantic import BaseModel, Field
from typing import Any, Optional


# WhatsApp Business webhook payload (only the parts the bridge reads)

class WhatsAppText(BaseModel):
    body: Optional[str] = None


class WhatsAppMessage(BaseModel):
    from_: Optional[str] = Field(None, alias="from")
    type: Optional[str] = None
    text: Optional[WhatsAppText] = None


class WhatsAppValue(BaseModel):
    messages: list[WhatsAppMessage] = Field(default_factory=list)


class WhatsAppChange(BaseModel):
    value: WhatsAppValue = Field(default_factory=WhatsAppValue)


class WhatsAppEntry(BaseModel):
    id: Optional[str] = None
    changes: list[WhatsAppChange] = Field(default_factory=list)


class WhatsAppWebhook(BaseModel):
    entry: list[WhatsAppEntry] = Field(default_factory=list)

    def first_message(self) -> tuple[Optional[WhatsAppEntry], Optional[WhatsAppMessage]]:
        """entry[0].changes[0].value.messages[0], or (entry, None) if absent."""
        if not self.entry:
            return None, None
        entry = self.entry[0]
        if not entry.changes or not entry.changes[0].value.messages:
            return entry, None
        return entry, entry.changes[0].value.messages[0]


# Direct expense relay

class ChatRelayRequest(BaseModel):
    message: str = Field(..., description="Free-form expense text")
    context_id: Optional[Any] = None


class ChatRelayResponse(BaseModel):
    response: str = "en breve quedara registrado"
    context_id: Optional[Any] = None
