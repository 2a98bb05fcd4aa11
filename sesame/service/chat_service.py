# sesame/service/chat_service.py

"""
Chat Service - 发送消息

功能：
- submit：同步追加一条用户消息
- resolve：调用 Gemini，追加且只追加一条助手消息（成功回复或错误消息）
- 失败不重试，原始错误只写日志
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from sesame.database.session_store import SessionStore
from sesame.model.chat import Message, MessageRole
from sesame.service.composer import SendRequest
from sesame.service.gemini_service import (
    CompletionOptions,
    GeminiCompletionClient,
    select_model,
)

logger = logging.getLogger(__name__)

ERROR_REPLY_TEXT = "I encountered an error while processing your request. Please try again."


@dataclass(frozen=True)
class PendingSend:
    session_id: str
    user_message: Message
    model: str
    options: CompletionOptions


class ChatService:
    """会话聊天服务"""

    def __init__(self, store: SessionStore, client: Optional[GeminiCompletionClient] = None):
        self.store = store
        self.client = client or GeminiCompletionClient()
        # 保存在 st.session_state 里，页面中断重跑后仍能找到未完成的发送
        self.pending: Optional[PendingSend] = None

    @property
    def is_loading(self) -> bool:
        return self.pending is not None

    def submit(self, request: SendRequest) -> Optional[PendingSend]:
        """
        把用户消息追加到当前会话

        Returns:
            待完成的发送；正在等待上一条回复或没有当前会话时返回 None
        """
        if self.is_loading:
            logger.debug("Send ignored while a reply is pending")
            return None

        session = self.store.active_session
        if session is None:
            return None

        user_message = Message(
            role=MessageRole.USER,
            content=request.text,
            attachments=list(request.attachments),
        )
        self.store.append_message(session.id, user_message)

        options = request.options
        self.pending = PendingSend(
            session_id=session.id,
            user_message=user_message,
            model=select_model(options.reasoning_enabled, options.search_enabled),
            options=options,
        )
        return self.pending

    async def resolve(self, pending: PendingSend) -> Optional[Message]:
        """
        等待远程回复并追加助手消息；任何异常都转换为错误消息

        Returns:
            追加的助手消息；该发送已经完成过时返回 None
        """
        if pending is not self.pending:
            logger.debug(f"Send for session {pending.session_id} already resolved")
            return None

        try:
            session = self.store.get_session(pending.session_id)
            history = session.messages if session else [pending.user_message]
            result = await self.client.complete(pending.model, history, pending.options)
            reply = Message(
                role=MessageRole.ASSISTANT,
                content=result.text,
                thinking=result.thinking,
                sources=result.sources,
            )
        except Exception:
            logger.exception(f"❌ Send failed for session {pending.session_id}")
            reply = Message(
                role=MessageRole.ASSISTANT,
                content=ERROR_REPLY_TEXT,
                is_error=True,
            )
        finally:
            self.pending = None

        self.store.append_message(pending.session_id, reply)
        return reply

    async def resume(self) -> Optional[Message]:
        """完成上一轮页面运行中断时留下的发送"""
        if self.pending is None:
            return None
        logger.info(f"🔁 Resuming unfinished send for session {self.pending.session_id}")
        return await self.resolve(self.pending)

    async def send(self, request: SendRequest) -> Optional[Message]:
        pending = self.submit(request)
        if pending is None:
            return None
        return await self.resolve(pending)
