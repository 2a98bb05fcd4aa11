import asyncio
from typing import Optional

import streamlit as st

from sesame.service.composer import MessageComposer, SendRequest
from sesame.ui.transcript import attachment_image

ACCEPTED_IMAGE_TYPES = ["png", "jpg", "jpeg", "gif", "webp"]
PREVIEW_WIDTH = 64


def _uploader_key() -> str:
    return f"uploader_{st.session_state.get('uploader_round', 0)}"


def _on_upload(composer: MessageComposer) -> None:
    """读取新上传的文件，然后换一个 key 清空上传控件，避免重复添加"""
    files = st.session_state.get(_uploader_key()) or []
    if files:
        asyncio.run(composer.attach_many(files))
    st.session_state.uploader_round = st.session_state.get("uploader_round", 0) + 1


def _render_pending_attachments(composer: MessageComposer) -> None:
    if not composer.attachments:
        return

    cols = st.columns(max(len(composer.attachments), 1))
    for col, att in zip(cols, composer.attachments):
        with col:
            image = attachment_image(att)
            if image is not None:
                st.image(image, width=PREVIEW_WIDTH)
            st.caption(att.name)
            st.button(
                "✖",
                key=f"remove_{att.id}",
                help="Remove attachment",
                on_click=composer.remove_attachment,
                args=(att.id,),
            )


def render_composer(composer: MessageComposer, model_label: str) -> Optional[SendRequest]:
    """
    输入区：模式开关、附件、输入框。

    Enter 发送、Shift+Enter 换行由 st.chat_input 提供。

    Returns:
        用户发送时返回 SendRequest，否则 None
    """
    col_reason, col_search, col_model = st.columns([1.2, 1.2, 2])
    with col_reason:
        st.toggle(
            "🧠 Reasoning Mode",
            value=composer.reasoning_enabled,
            key="reasoning_toggle",
            on_change=composer.toggle_reasoning,
        )
    with col_search:
        st.toggle(
            "🌐 Web Search",
            value=composer.search_enabled,
            key="search_toggle",
            on_change=composer.toggle_search,
        )
    with col_model:
        st.caption(f"Model: `{model_label}`")

    with st.expander("📎 Attach images", expanded=bool(composer.attachments)):
        st.file_uploader(
            "Attach images",
            type=ACCEPTED_IMAGE_TYPES,
            accept_multiple_files=True,
            key=_uploader_key(),
            on_change=_on_upload,
            args=(composer,),
            label_visibility="collapsed",
        )
        _render_pending_attachments(composer)

    # 只有附件、没有文字时 chat_input 无法提交，用按钮发送
    send_clicked = st.button(
        "⬆️ Send attachments",
        key="send_attachments",
        disabled=not composer.attachments,
    )

    st.caption("Sesame can make mistakes. Verify important info.")

    text = st.chat_input("Ask Sesame anything...")
    if text is not None:
        composer.set_draft(text)
        return composer.send()

    # 点击推荐问题时 draft 已被填入
    if send_clicked or composer.draft:
        return composer.send()

    return None
