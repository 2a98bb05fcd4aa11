# sesame/service/gemini_service.py

"""
Gemini 对话服务 - 把本地会话翻译成一次 generate_content 请求

使用方法:
    from sesame.service.gemini_service import GeminiCompletionClient, CompletionOptions, select_model

    options = CompletionOptions(reasoning_enabled=True)
    client = GeminiCompletionClient()
    result = await client.complete(select_model(True, False), session.messages, options)
"""

import base64
import logging
from typing import List, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import BaseModel, Field

from sesame.config import Config
from sesame.model.chat import GroundingSource, Message, MessageRole

logger = logging.getLogger(__name__)

NO_RESPONSE_TEXT = "No response content."
DEFAULT_SOURCE_TITLE = "Source"
# 目前所有附件都按图片发送
DEFAULT_ATTACHMENT_MIME_TYPE = "image/png"


class CompletionError(Exception):
    """远程调用失败（网络、鉴权、配额、响应格式异常）"""


class CompletionOptions(BaseModel):
    reasoning_enabled: bool = False
    search_enabled: bool = False
    thinking_budget: int = Field(default_factory=lambda: Config.gemini.thinking_budget)


class CompletionResult(BaseModel):
    text: str
    thinking: str = ""
    sources: List[GroundingSource] = Field(default_factory=list)


def select_model(reasoning_enabled: bool, search_enabled: bool) -> str:
    """Reasoning 或 Search 模式用能力更强的模型，否则用轻量模型"""
    if reasoning_enabled or search_enabled:
        return Config.gemini.capable_model
    return Config.gemini.light_model


def to_api_role(role: MessageRole) -> str:
    return "user" if role == MessageRole.USER else "model"


def build_contents(history: Sequence[Message]) -> List[types.Content]:
    """本地消息 → Gemini contents；附件以 inline data 放在文本之前"""
    contents = []
    for msg in history:
        parts = []
        for att in msg.attachments or []:
            if not att.base64:
                logger.warning(f"⚠️ Attachment {att.name} has no payload, skipped")
                continue
            parts.append(
                types.Part.from_bytes(
                    data=base64.b64decode(att.base64),
                    mime_type=att.mime_type or DEFAULT_ATTACHMENT_MIME_TYPE,
                )
            )
        parts.append(types.Part.from_text(text=msg.content))
        contents.append(types.Content(role=to_api_role(msg.role), parts=parts))
    return contents


def build_config(options: CompletionOptions) -> types.GenerateContentConfig:
    kwargs = {"temperature": Config.gemini.temperature}

    if options.reasoning_enabled:
        kwargs["thinking_config"] = types.ThinkingConfig(
            thinking_budget=options.thinking_budget,
            include_thoughts=True,
        )

    if options.search_enabled:
        kwargs["tools"] = [types.Tool(google_search=types.GoogleSearch())]

    return types.GenerateContentConfig(**kwargs)


def parse_response(response: types.GenerateContentResponse) -> CompletionResult:
    """
    从响应中取出回答、思考过程和引用来源。

    这三部分在远程接口里都是可选的，缺失时分别使用占位文本、空字符串、空列表。
    """
    candidate = response.candidates[0] if response.candidates else None

    answer_parts = []
    thought_parts = []
    if candidate and candidate.content and candidate.content.parts:
        for part in candidate.content.parts:
            if not part.text:
                continue
            if part.thought:
                thought_parts.append(part.text)
            else:
                answer_parts.append(part.text)

    sources = []
    metadata = candidate.grounding_metadata if candidate else None
    for chunk in (metadata.grounding_chunks if metadata else None) or []:
        web = chunk.web
        if not web or not web.uri:
            continue
        sources.append(GroundingSource(title=web.title or web.uri or DEFAULT_SOURCE_TITLE, uri=web.uri))

    return CompletionResult(
        text="".join(answer_parts) or NO_RESPONSE_TEXT,
        thinking="\n\n".join(thought_parts),
        sources=sources,
    )


class GeminiCompletionClient:
    """Gemini 远程对话客户端"""

    def __init__(self, client: Optional[genai.Client] = None, api_key: Optional[str] = None):
        """
        Args:
            client: 已创建的 genai.Client（测试时注入），默认第一次调用时创建
            api_key: Gemini API Key，默认从 Config 获取，Config 也没有时由 SDK 读取环境变量
        """
        self._client = client
        self.api_key = api_key or Config.gemini.api_key

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def complete(
        self,
        model: str,
        history: Sequence[Message],
        options: CompletionOptions,
    ) -> CompletionResult:
        """
        发送一次请求

        Args:
            model: 模型名称（见 select_model）
            history: 完整的会话消息，已包含刚追加的用户消息及其附件
            options: reasoning / search 开关和 thinking budget

        Raises:
            CompletionError: 任何远程调用或响应解析失败
        """
        logger.info(
            f"💬 Calling {model} with {len(history)} messages "
            f"(reasoning={options.reasoning_enabled}, search={options.search_enabled})"
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=model,
                contents=build_contents(history),
                config=build_config(options),
            )
            result = parse_response(response)
        except Exception as e:
            logger.error(f"❌ Gemini API error: {e}")
            raise CompletionError(str(e)) from e

        logger.info(f"✅ Got reply: {len(result.text)} chars, {len(result.sources)} sources")
        return result
