# sesame/ui/transcript.py

"""
Conversation Renderer - 把会话消息渲染成聊天记录

只读取消息，不修改会话；展开/折叠等状态由 Streamlit 组件自己维护。
"""

import base64
import binascii
import re
from typing import Optional, Sequence

import streamlit as st

from sesame.model.chat import Attachment, GroundingSource, Message, MessageRole

SOURCE_TITLE_MAX_CHARS = 30
THUMBNAIL_WIDTH = 200

WELCOME_TITLE = "How can I help you today?"
SUGGESTED_PROMPTS = [
    "Analyze this market report",
    "Write a Python script for data scraping",
    "Summarize recent AI news",
    "Design a logo for my startup",
]


def convert_latex_format(text: str) -> str:
    """
    将 LaTeX 格式转换为 Streamlit markdown 支持的格式
    \\[...\\] -> $$...$$
    \\(...\\) -> $...$
    """
    text = re.sub(r'\\\[(.*?)\\\]', r'$$\1$$', text, flags=re.DOTALL)
    text = re.sub(r'\\\((.*?)\\\)', r'$\1$', text, flags=re.DOTALL)
    return text


def source_label(title: str, max_chars: int = SOURCE_TITLE_MAX_CHARS) -> str:
    if len(title) > max_chars:
        return title[:max_chars] + "..."
    return title


def _escape_link_text(text: str) -> str:
    return text.replace("[", "\\[").replace("]", "\\]")


def sources_markdown(sources: Sequence[GroundingSource]) -> str:
    """引用来源 → 一行 markdown 链接"""
    return " · ".join(
        f"[🔗 {_escape_link_text(source_label(s.title))}]({s.uri})" for s in sources
    )


def avatar_for(role: MessageRole) -> str:
    return "🧑" if role == MessageRole.USER else "✨"


def attachment_image(att: Attachment) -> Optional[bytes]:
    if not att.base64:
        return None
    try:
        return base64.b64decode(att.base64)
    except (binascii.Error, ValueError):
        return None


# =====================================================
# Streamlit rendering
# =====================================================

def render_message(msg: Message) -> None:
    with st.chat_message(msg.role.value, avatar=avatar_for(msg.role)):
        if msg.thinking:
            with st.expander("🧠 View Reasoning Process", expanded=False):
                st.markdown(convert_latex_format(msg.thinking))

        if msg.attachments:
            thumbnails = [
                (img, att.name) for att in msg.attachments if (img := attachment_image(att)) is not None
            ]
            if thumbnails:
                st.image(
                    [img for img, _ in thumbnails],
                    width=THUMBNAIL_WIDTH,
                    caption=[name for _, name in thumbnails],
                )

        if msg.is_error:
            st.error(msg.content, icon="🚫")
        elif msg.content:
            st.markdown(convert_latex_format(msg.content))

        if msg.sources:
            st.caption(sources_markdown(msg.sources))


def render_loading_placeholder() -> None:
    with st.chat_message(MessageRole.ASSISTANT.value, avatar=avatar_for(MessageRole.ASSISTANT)):
        st.markdown("_Thinking..._")


def render_welcome(on_pick) -> None:
    """空会话：欢迎语 + 推荐问题"""
    st.markdown(f"## ⚡ {WELCOME_TITLE}")
    cols = st.columns(2)
    for i, prompt in enumerate(SUGGESTED_PROMPTS):
        with cols[i % 2]:
            st.button(
                prompt,
                key=f"suggestion_{i}",
                use_container_width=True,
                on_click=on_pick,
                args=(prompt,),
            )


def render_transcript(messages: Sequence[Message], is_loading: bool = False) -> None:
    for msg in messages:
        render_message(msg)
    if is_loading:
        render_loading_placeholder()
