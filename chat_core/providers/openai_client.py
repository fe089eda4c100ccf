"""OpenAI 兼容 Provider 适配器（请求/响应式）。

每次调用都发送完整消息列表：
- URL: {base_url}/chat/completions
- 认证: Authorization: Bearer <api_key>
- 流式: stream=true，SSE 中每条 `choices[0].delta.content` 为一段增量文本

openai / kimi / glm 共用本实现，只是 base_url 与默认模型不同。
"""

from typing import Any, Dict, Iterator, List, Sequence

from chat_core.domain.exceptions import ProviderError
from chat_core.domain.models import Message
from chat_core.providers.http_stream import iter_sse_payloads, open_event_stream
from chat_core.providers.registry import OPENAI_CONFIG, ProviderConfig
from chat_core.providers.stream import ByteStream


class OpenAIChatProvider:
    """OpenAI chat/completions 兼容客户端。"""

    def __init__(self, settings, config: ProviderConfig = OPENAI_CONFIG):
        self._settings = settings
        self._config = config
        self.name = config.name
        self.model = getattr(settings, "model", None) or config.default_model
        self._closed = False

    @property
    def base_url(self) -> str:
        return (getattr(self._settings, "base_url", None) or self._config.base_url).rstrip("/")

    def stream_chat(self, messages: Sequence[Message]) -> ByteStream:
        if self._closed:
            raise ProviderError(code="PROVIDER_CLOSED", message=f"{self.name} provider is closed")
        if not getattr(self._settings, "key", None):
            raise ProviderError(code="MISSING_API_KEY", message=f"{self.name} api key not set")
        if not messages:
            raise ProviderError(code="EMPTY_CONVERSATION", message="no messages to send")

        stack, resp = open_event_stream(
            f"{self.base_url}/chat/completions",
            self._build_payload(messages),
            {
                "Authorization": f"Bearer {self._settings.key}",
                "Content-Type": "application/json",
            },
            timeout=self._settings.http_timeout,
            provider=self.name,
        )
        return ByteStream.from_iterator(
            self._iter_deltas(resp),
            cleanup=stack.close,
            name=f"{self.name}-stream",
        )

    def close(self) -> None:
        self._closed = True

    # ---- 辅助方法 ----

    def _build_payload(self, messages: Sequence[Message]) -> Dict[str, Any]:
        msgs: List[Dict[str, str]] = []
        system_prompt = "\n".join(getattr(self._settings, "system_prompt", None) or [])
        if system_prompt:
            msgs.append({"role": "system", "content": system_prompt})
        msgs.extend({"role": m.role, "content": m.content} for m in messages)
        return {
            "model": self.model,
            "messages": msgs,
            "stream": True,
        }

    def _iter_deltas(self, resp: Any) -> Iterator[str]:
        for payload in iter_sse_payloads(resp, provider=self.name):
            choices = payload.get("choices") or []
            if not choices:
                continue
            delta = choices[0].get("delta") or {}
            content = delta.get("content")
            if content:
                yield content
