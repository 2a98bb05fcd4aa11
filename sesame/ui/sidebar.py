import streamlit as st

from sesame.database.session_store import SessionStore

UNTITLED_TITLE = "Untitled Chat"


def session_label(title: str) -> str:
    return f"💬 {title or UNTITLED_TITLE}"


def render_sidebar(store: SessionStore, app_name: str) -> None:
    """新建会话 + 历史会话列表（选择 / 删除）"""
    with st.sidebar:
        st.markdown(f"## ⚡ {app_name}")

        st.button(
            "➕ New Chat",
            key="new_chat",
            type="primary",
            use_container_width=True,
            on_click=store.create_session,
        )

        st.markdown("### Recent Chats")

        sessions = store.list_sessions()
        if not sessions:
            st.caption("No history yet")

        for session in sessions:
            col_name, col_delete = st.columns([5, 1])
            is_active = session.id == store.active_session_id

            with col_name:
                st.button(
                    session_label(session.title),
                    key=f"select_{session.id}",
                    use_container_width=True,
                    type="primary" if is_active else "secondary",
                    on_click=store.select_session,
                    args=(session.id,),
                )

            with col_delete:
                st.button(
                    "🗑️",
                    key=f"delete_{session.id}",
                    help="Delete chat",
                    on_click=store.delete_session,
                    args=(session.id,),
                )
