"""Provider 配置注册表。

配置文件里只写 provider 名称（如 "openai"），具体走哪种协议、
默认 base_url 和默认模型都在这里集中配置。
kimi / glm 兼容 OpenAI 的 chat/completions 接口，复用同一个实现。
"""

from dataclasses import dataclass
from typing import Literal, Mapping

from chat_core.domain.exceptions import UnknownProviderError


ProviderKind = Literal["openai", "gemini"]


@dataclass(frozen=True)
class ProviderConfig:
    """某个 Provider 的静态配置。"""

    name: str
    kind: ProviderKind
    base_url: str
    default_model: str


OPENAI_CONFIG = ProviderConfig(
    name="openai",
    kind="openai",
    base_url="https://api.openai.com/v1",
    default_model="gpt-4o-mini",
)

KIMI_CONFIG = ProviderConfig(
    name="kimi",
    kind="openai",
    base_url="https://api.moonshot.cn/v1",
    default_model="kimi-k2-turbo-preview",
)

GLM_CONFIG = ProviderConfig(
    name="glm",
    kind="openai",
    base_url="https://open.bigmodel.cn/api/paas/v4",
    default_model="glm-4.6",
)

GOOGLE_CONFIG = ProviderConfig(
    name="google",
    kind="gemini",
    base_url="https://generativelanguage.googleapis.com/v1beta",
    default_model="gemini-1.5-flash",
)


PROVIDER_REGISTRY: Mapping[str, ProviderConfig] = {
    "openai": OPENAI_CONFIG,
    "kimi": KIMI_CONFIG,
    "glm": GLM_CONFIG,
    "google": GOOGLE_CONFIG,
}


def get_provider_config(name: str) -> ProviderConfig:
    """根据名称获取 ProviderConfig，名称不区分大小写。"""

    key = (name or "").strip().lower()
    cfg = PROVIDER_REGISTRY.get(key)
    if cfg is None:
        raise UnknownProviderError(name)
    return cfg
