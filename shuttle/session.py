"""Session model: the transcript owned by one conversation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from .types import Message, TextBlock, generate_id

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-5-mini"


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass
class ModelConfig:
    model: str = DEFAULT_MODEL
    max_tokens: int | None = None
    temperature: float | None = None


@dataclass
class Session:
    id: str = field(default_factory=generate_id)
    messages: list[Message] = field(default_factory=list)
    system_prompt: str = ""
    model: ModelConfig = field(default_factory=ModelConfig)
    status: SessionStatus = SessionStatus.IDLE


def create_session(
    system_prompt: str = "",
    model: str | ModelConfig | None = None,
    messages: list[Message] | None = None,
) -> Session:
    if isinstance(model, str):
        model = ModelConfig(model=model)
    session = Session(
        messages=list(messages) if messages else [],
        system_prompt=system_prompt,
        model=model or ModelConfig(),
    )
    logger.debug("Created session %s (model=%s)", session.id, session.model.model)
    return session


def add_user_message(session: Session, text: str) -> Message:
    message = Message(role="user", content=[TextBlock(text=text)])
    session.messages.append(message)
    return message


def update_session_status(session: Session, status: SessionStatus) -> None:
    session.status = status


def clear_session_messages(session: Session) -> None:
    session.messages = []


def get_last_assistant_message(session: Session) -> Message | None:
    for message in reversed(session.messages):
        if message.role == "assistant":
            return message
    return None


def get_text_content(message: Message) -> str:
    return "\n".join(c.text for c in message.content if isinstance(c, TextBlock))
