# app.py
import asyncio
import logging

import streamlit as st

from sesame.config import Config
from sesame.database.json_store import JsonStore
from sesame.database.session_store import SessionStore
from sesame.service.chat_service import ChatService
from sesame.service.composer import MessageComposer
from sesame.service.gemini_service import select_model
from sesame.ui.composer import render_composer
from sesame.ui.sidebar import render_sidebar
from sesame.ui.transcript import render_transcript, render_welcome


# =====================================================
# Global singletons (cached across Streamlit reruns)
# =====================================================

@st.cache_resource
def setup_logging() -> bool:
    logging.basicConfig(
        level=Config.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return True


@st.cache_resource
def get_json_store() -> JsonStore:
    return JsonStore(Config.storage.save_path)


# =====================================================
# Per-tab state
# =====================================================

def _get_state():
    """每个浏览器会话一份：SessionStore + ChatService + MessageComposer"""
    if "store" not in st.session_state:
        store = SessionStore(get_json_store())
        st.session_state.store = store
        st.session_state.chat = ChatService(store)
        st.session_state.composer = MessageComposer()
    return st.session_state.store, st.session_state.chat, st.session_state.composer


# =====================================================
# Main UI
# =====================================================

def main():
    st.set_page_config(
        page_title=f"{Config.app_name} Chat",
        page_icon="⚡",
        layout="wide",
    )

    setup_logging()
    store, chat, composer = _get_state()

    # 上一轮运行在等待回复时被打断（刷新、点了别的按钮），先把它补完
    if chat.pending is not None:
        with st.spinner("Generating response..."):
            asyncio.run(chat.resume())

    render_sidebar(store, Config.app_name)

    request = render_composer(
        composer,
        model_label=select_model(composer.reasoning_enabled, composer.search_enabled),
    )

    pending = chat.submit(request) if request else None

    session = store.active_session
    messages = session.messages if session else []
    if not messages and pending is None:
        render_welcome(composer.use_suggestion)
        return

    render_transcript(messages, is_loading=pending is not None)

    if pending is not None:
        with st.spinner("Generating response..."):
            asyncio.run(chat.resolve(pending))
        st.rerun()


if __name__ == "__main__":
    main()
