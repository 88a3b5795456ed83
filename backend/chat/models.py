from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ChatMessage(BaseModel):
    role: str
    content: str


class ChatRequest(BaseModel):
    """Either a single ``message`` or a chat history in ``messages``."""

    message: str | None = Field(default=None, max_length=4000)
    messages: list[ChatMessage] | None = None
    stream: bool = False

    @model_validator(mode="after")
    def _has_message(self) -> "ChatRequest":
        if not self.effective_message.strip():
            raise ValueError("A non-empty message is required.")
        return self

    @property
    def effective_message(self) -> str:
        """The text to match on: ``message``, else the last history entry."""
        if self.message is not None:
            return self.message
        if self.messages:
            return self.messages[-1].content
        return ""
