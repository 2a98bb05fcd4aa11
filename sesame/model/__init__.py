from .chat import (
    ATTACHMENT_ONLY_TITLE,
    DEFAULT_SESSION_TITLE,
    Attachment,
    AttachmentType,
    ChatSession,
    GroundingSource,
    Message,
    MessageRole,
)

__all__ = [
    "ATTACHMENT_ONLY_TITLE",
    "DEFAULT_SESSION_TITLE",
    "Attachment",
    "AttachmentType",
    "ChatSession",
    "GroundingSource",
    "Message",
    "MessageRole",
]
