# sesame/service/composer.py

"""
Message Composer - 当前会话的待发送输入

功能：
- 草稿文本、待发送附件
- Reasoning / Search 两个独立开关
- 读取上传文件（异步），同时生成页面预览和发送用的 base64
- send：有文本或附件时产出发送请求并清空输入
"""

from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Tuple

from pydantic import BaseModel, Field

from sesame.model.chat import Attachment, AttachmentType
from sesame.service.gemini_service import CompletionOptions

logger = logging.getLogger(__name__)

SUBMIT_KEY = "Enter"


class UploadedFile(Protocol):
    """st.file_uploader 返回的文件对象（只用到这几个属性）"""
    name: str

    def read(self) -> bytes: ...


class KeyAction(str, Enum):
    SEND = "send"
    NEWLINE = "newline"
    NONE = "none"


class SendRequest(BaseModel):
    text: str
    attachments: List[Attachment] = Field(default_factory=list)
    options: CompletionOptions = Field(default_factory=CompletionOptions)


def guess_mime_type(file: UploadedFile) -> str:
    mime_type = getattr(file, "type", None)
    if mime_type:
        return mime_type
    guessed, _ = mimetypes.guess_type(file.name)
    return guessed or "application/octet-stream"


def encode_attachment(name: str, data: bytes, mime_type: str) -> Attachment:
    """同一份文件内容 → data URI（预览）+ base64（发送）"""
    payload = base64.b64encode(data).decode("ascii")
    return Attachment(
        type=AttachmentType.IMAGE if mime_type.startswith("image/") else AttachmentType.FILE,
        url=f"data:{mime_type};base64,{payload}",
        base64=payload,
        name=name,
        mime_type=mime_type,
    )


class MessageComposer:
    def __init__(self):
        self.draft = ""
        self.reasoning_enabled = False
        self.search_enabled = False
        self._attachments: Tuple[Attachment, ...] = ()

    @property
    def attachments(self) -> Tuple[Attachment, ...]:
        return self._attachments

    def set_draft(self, text: str) -> None:
        self.draft = text

    def use_suggestion(self, prompt: str) -> None:
        self.draft = prompt

    def toggle_reasoning(self) -> bool:
        self.reasoning_enabled = not self.reasoning_enabled
        return self.reasoning_enabled

    def toggle_search(self) -> bool:
        self.search_enabled = not self.search_enabled
        return self.search_enabled

    async def attach(self, file: UploadedFile) -> Attachment:
        """读完并编码后才加入待发送列表"""
        data = await asyncio.to_thread(file.read)
        attachment = encode_attachment(file.name, data, guess_mime_type(file))
        self._attachments = (*self._attachments, attachment)
        logger.debug(f"📎 Attached {attachment.name} ({len(data)} bytes)")
        return attachment

    async def attach_many(self, files: Iterable[UploadedFile]) -> List[Attachment]:
        return list(await asyncio.gather(*(self.attach(f) for f in files)))

    def remove_attachment(self, attachment_id: str) -> bool:
        remaining = tuple(a for a in self._attachments if a.id != attachment_id)
        if len(remaining) == len(self._attachments):
            return False
        self._attachments = remaining
        return True

    @property
    def can_send(self) -> bool:
        return bool(self.draft.strip()) or bool(self._attachments)

    def send(self) -> Optional[SendRequest]:
        if not self.can_send:
            return None

        request = SendRequest(
            text=self.draft,
            attachments=list(self._attachments),
            options=CompletionOptions(
                reasoning_enabled=self.reasoning_enabled,
                search_enabled=self.search_enabled,
            ),
        )
        self.draft = ""
        self._attachments = ()
        return request

    def handle_key(self, key: str, shift: bool = False) -> KeyAction:
        """Enter 发送，Shift+Enter 换行"""
        if key != SUBMIT_KEY:
            return KeyAction.NONE
        if shift:
            self.draft += "\n"
            return KeyAction.NEWLINE
        return KeyAction.SEND
