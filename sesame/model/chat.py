# sesame/model/chat.py

"""
Chat 数据模型

会话、消息、附件和引用来源。所有模型创建后不可变，更新通过 model_copy 生成新对象。
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime, timezone
import uuid


DEFAULT_SESSION_TITLE = "New Conversation"
ATTACHMENT_ONLY_TITLE = "Image Chat"
TITLE_MAX_CHARS = 30


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class AttachmentType(str, Enum):
    IMAGE = "image"
    FILE = "file"


class Attachment(BaseModel):
    """用户上传的文件：url 用于页面预览，base64 用于发送给模型"""
    id: str = Field(default_factory=_new_id)
    type: AttachmentType = AttachmentType.IMAGE
    url: str
    base64: Optional[str] = None
    name: str
    mime_type: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class GroundingSource(BaseModel):
    """搜索引用"""
    title: str
    uri: str

    model_config = ConfigDict(frozen=True)


class Message(BaseModel):
    """聊天消息"""
    id: str = Field(default_factory=_new_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=_now)
    attachments: Optional[List[Attachment]] = None
    thinking: Optional[str] = None
    sources: Optional[List[GroundingSource]] = None
    is_error: bool = False

    model_config = ConfigDict(frozen=True)


class ChatSession(BaseModel):
    """聊天会话"""
    id: str = Field(default_factory=_new_id)
    title: str = DEFAULT_SESSION_TITLE
    messages: List[Message] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)

    model_config = ConfigDict(frozen=True)

    def with_message(self, message: Message) -> "ChatSession":
        """
        返回追加了一条消息的新会话。

        会话收到第一条消息时，用该消息前 30 个字符作为标题（只设置一次）。
        """
        update = {"messages": [*self.messages, message]}
        if not self.messages:
            update["title"] = title_from_text(message.content)
        return self.model_copy(update=update)


def title_from_text(text: str) -> str:
    return text[:TITLE_MAX_CHARS] or ATTACHMENT_ONLY_TITLE
