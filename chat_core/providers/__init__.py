"""LLM Provider 集成层。

该包下的模块负责：
- 定义 Provider 抽象接口 (base) 与拉取式字节流 (stream)。
- 维护 Provider 名称与默认配置 (registry)。
- 提供各厂商的具体实现 (openai_client、gemini_client)。
"""

from chat_core.providers.base import Provider
from chat_core.providers.gemini_client import GeminiChatProvider
from chat_core.providers.openai_client import OpenAIChatProvider
from chat_core.providers.registry import get_provider_config
from chat_core.providers.stream import ByteStream


def create_provider(settings) -> Provider:
    """根据 settings.provider 创建 Provider 实例。

    名称无法识别时抛出 UnknownProviderError，不做静默兜底。
    """

    cfg = get_provider_config(settings.provider)
    if cfg.kind == "gemini":
        return GeminiChatProvider(settings, cfg)
    return OpenAIChatProvider(settings, cfg)


__all__ = ["ByteStream", "GeminiChatProvider", "OpenAIChatProvider", "Provider", "create_provider"]
