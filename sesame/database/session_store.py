# sesame/database/session_store.py

"""
Session Store - 管理聊天会话列表

功能：
- 创建/选择/删除会话（始终至少保留一个会话）
- 向会话追加消息
- 每次变更后整体写入 JsonStore，启动时读取一次
- 变更通知（subscribe）
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from pydantic import TypeAdapter, ValidationError

from sesame.config import Config
from sesame.database.json_store import JsonStore
from sesame.model.chat import ChatSession, Message

logger = logging.getLogger(__name__)

Listener = Callable[[Tuple[ChatSession, ...], Optional[str]], None]

_SESSIONS_ADAPTER = TypeAdapter(List[ChatSession])


class SessionStore:
    """聊天会话仓库（内存 + 单个持久化槽位）"""

    def __init__(self, storage: JsonStore, key: Optional[str] = None):
        self.storage = storage
        self.key = key or Config.storage.session_key
        self._sessions: Tuple[ChatSession, ...] = ()
        self._active_id: Optional[str] = None
        self._listeners: List[Listener] = []
        self._load()

    # =====================================================
    # Read
    # =====================================================

    def list_sessions(self) -> Tuple[ChatSession, ...]:
        return self._sessions

    def get_session(self, session_id: str) -> Optional[ChatSession]:
        for s in self._sessions:
            if s.id == session_id:
                return s
        return None

    @property
    def active_session_id(self) -> Optional[str]:
        return self._active_id

    @property
    def active_session(self) -> Optional[ChatSession]:
        if self._active_id is None:
            return None
        return self.get_session(self._active_id)

    # =====================================================
    # Session CRUD
    # =====================================================

    def create_session(self) -> ChatSession:
        """创建新会话，放在列表最前面并设为当前会话"""
        session = ChatSession()
        self._commit((session, *self._sessions), active_id=session.id)
        logger.info(f"🆕 Created session {session.id}")
        return session

    def select_session(self, session_id: str) -> bool:
        """切换当前会话；未知 id 静默忽略"""
        if self.get_session(session_id) is None:
            return False
        if session_id != self._active_id:
            self._active_id = session_id
            self._notify()
        return True

    def delete_session(self, session_id: str) -> bool:
        """
        删除会话

        如果删除的是当前会话，激活剩下的第一个会话；没有剩余会话时新建一个。
        """
        if self.get_session(session_id) is None:
            return False

        remaining = tuple(s for s in self._sessions if s.id != session_id)
        if not remaining:
            fresh = ChatSession()
            self._commit((fresh,), active_id=fresh.id)
        elif self._active_id == session_id:
            self._commit(remaining, active_id=remaining[0].id)
        else:
            self._commit(remaining, active_id=self._active_id)

        logger.info(f"🗑️ Deleted session {session_id}")
        return True

    # =====================================================
    # Message
    # =====================================================

    def append_message(self, session_id: str, message: Message) -> Optional[ChatSession]:
        """
        追加消息到会话

        Returns:
            更新后的会话，如果会话不存在返回 None
        """
        session = self.get_session(session_id)
        if session is None:
            return None

        updated = session.with_message(message)
        self._commit(
            tuple(updated if s.id == session_id else s for s in self._sessions),
            active_id=self._active_id,
        )
        return updated

    # =====================================================
    # Change notification
    # =====================================================

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """注册变更监听，返回取消函数"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # =====================================================
    # Helper Methods
    # =====================================================

    def _commit(self, sessions: Sequence[ChatSession], active_id: Optional[str]) -> None:
        self._sessions = tuple(sessions)
        self._active_id = active_id
        self._save()
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self._sessions, self._active_id)
            except Exception:
                logger.exception("❌ Session listener failed")

    def _save(self) -> None:
        data = _SESSIONS_ADAPTER.dump_python(list(self._sessions), mode="json")
        try:
            self.storage.save(self.key, data)
        except OSError as e:
            logger.error(f"❌ Failed to persist sessions: {e}")

    def _load(self) -> None:
        """启动时读取一次；不存在、为空或格式不符 → 新建一个空会话"""
        raw = self.storage.load(self.key)

        sessions: List[ChatSession] = []
        if raw:
            try:
                sessions = _SESSIONS_ADAPTER.validate_python(raw)
            except ValidationError as e:
                logger.warning(f"⚠️ Stored sessions have an unexpected shape, starting fresh: {e}")
                sessions = []

        if sessions and len({s.id for s in sessions}) != len(sessions):
            logger.warning("⚠️ Stored sessions contain duplicate ids, starting fresh")
            sessions = []

        if sessions:
            self._sessions = tuple(sessions)
            self._active_id = sessions[0].id
            logger.info(f"📂 Loaded {len(sessions)} sessions from {self.storage.path_for(self.key)}")
        else:
            self.create_session()
