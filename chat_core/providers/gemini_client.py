"""Google Gemini Provider 适配器（会话/历史式）。

与 OpenAI 式接口不同，Gemini 的对话由“历史 + 新消息”组成：

- 之前的所有轮次保存在 ChatSession.history 中，assistant 角色映射为 "model"；
- 每次只把最新一条消息作为新的 user 轮次发送；
- URL: {base_url}/models/{model}:streamGenerateContent?alt=sse
- 认证: x-goog-api-key 头
- 系统提示词放在 systemInstruction 字段。
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Sequence

from chat_core.domain.exceptions import ProviderError
from chat_core.domain.models import Message
from chat_core.providers.http_stream import iter_sse_payloads, open_event_stream
from chat_core.providers.registry import GOOGLE_CONFIG, ProviderConfig
from chat_core.providers.stream import ByteStream


# 文档角色 -> Gemini 角色
ROLE_MAP = {
    "user": "user",
    "assistant": "model",
}


def to_content(role: str, text: str) -> Dict[str, Any]:
    return {"role": ROLE_MAP.get(role, "user"), "parts": [{"text": text}]}


@dataclass
class ChatSession:
    """Gemini 侧的持久会话：历史轮次 + 系统提示词。"""

    system_instruction: str = ""
    history: List[Dict[str, Any]] = field(default_factory=list)

    def build_payload(self, text: str) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "contents": [*self.history, to_content("user", text)],
        }
        if self.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": self.system_instruction}]}
        return payload


class GeminiChatProvider:
    """Gemini streamGenerateContent 客户端。"""

    def __init__(self, settings, config: ProviderConfig = GOOGLE_CONFIG):
        self._settings = settings
        self._config = config
        self.name = config.name
        self.model = getattr(settings, "model", None) or config.default_model
        self.chat: Optional[ChatSession] = None
        self._closed = False

    @property
    def base_url(self) -> str:
        return (getattr(self._settings, "base_url", None) or self._config.base_url).rstrip("/")

    def start_chat(self) -> ChatSession:
        system_prompt = "\n".join(getattr(self._settings, "system_prompt", None) or [])
        return ChatSession(system_instruction=system_prompt)

    def stream_chat(self, messages: Sequence[Message]) -> ByteStream:
        if self._closed:
            raise ProviderError(code="PROVIDER_CLOSED", message=f"{self.name} provider is closed")
        if not getattr(self._settings, "key", None):
            raise ProviderError(code="MISSING_API_KEY", message=f"{self.name} api key not set")
        if not messages:
            raise ProviderError(code="EMPTY_CONVERSATION", message="no messages to send")

        if self.chat is None:
            self.chat = self.start_chat()
        # 文档是唯一事实来源：每次按文档重建历史，只发送最后一条
        self.chat.history = [to_content(m.role, m.content) for m in messages[:-1]]
        payload = self.chat.build_payload(messages[-1].content)

        stack, resp = open_event_stream(
            f"{self.base_url}/models/{self.model}:streamGenerateContent?alt=sse",
            payload,
            {
                "x-goog-api-key": self._settings.key,
                "Content-Type": "application/json",
            },
            timeout=self._settings.http_timeout,
            provider=self.name,
        )
        return ByteStream.from_iterator(
            self._iter_texts(resp),
            cleanup=stack.close,
            name=f"{self.name}-stream",
        )

    def close(self) -> None:
        self._closed = True
        self.chat = None

    def _iter_texts(self, resp: Any) -> Iterator[str]:
        for payload in iter_sse_payloads(resp, provider=self.name):
            candidates = payload.get("candidates") or []
            if not candidates:
                continue
            content = candidates[0].get("content") or {}
            for part in content.get("parts") or []:
                text = part.get("text") if isinstance(part, dict) else None
                if text:
                    yield text
