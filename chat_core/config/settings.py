"""配置管理模块。

支持从环境变量、.env 以及 YAML 配置文件加载配置，优先级从高到低：

1. 构造参数（测试或命令行显式传入）
2. 环境变量（前缀 DOCCHAT_，例如 DOCCHAT_PROVIDER）
3. .env 文件
4. YAML 配置文件：--config 指定的路径、DOCCHAT_CONFIG_FILE、或 ~/.docchat.yaml

YAML 文件的字段与 ChatSettings 字段同名，例如::

    provider: openai
    key: sk-...
    model: gpt-4o-mini
    system_prompt:
      - You are a concise assistant.
    debug: true
"""

import os
import warnings
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_CONFIG_FILE = Path("~/.docchat.yaml")


def _config_candidates(explicit: Optional[str]) -> List[Path]:
    candidates: List[Path] = []
    if explicit:
        candidates.append(Path(explicit).expanduser())
    env_path = os.getenv("DOCCHAT_CONFIG_FILE")
    if env_path:
        candidates.append(Path(env_path).expanduser())
    candidates.append(DEFAULT_CONFIG_FILE.expanduser())
    return candidates


def _load_config_from_yaml(explicit: Optional[str] = None) -> Dict[str, Any]:
    """从 YAML 配置文件加载配置（若存在）。

    显式指定的文件存在但无法解析时直接抛出 yaml.YAMLError，
    由启动入口转换为致命错误；默认路径下的文件不存在则返回空字典。
    """

    seen: set[Path] = set()
    for path in _config_candidates(explicit):
        if path in seen:
            continue
        seen.add(path)
        if not path.exists():
            continue
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if isinstance(data, dict):
            return data
        warnings.warn(f"Config file {path} is not a mapping, ignored")
    return {}


class ChatSettings(BaseSettings):
    """文档对话配置。"""

    # ---- Provider 相关配置 ----
    provider: str = Field(default="", description="Provider 名称，例如 openai、google、kimi、glm")
    key: Optional[str] = Field(default=None, description="Provider API 密钥")
    model: str = Field(default="", description="厂商模型 ID，为空时使用 registry 中的默认模型")
    system_prompt: List[str] = Field(
        default_factory=list,
        description="系统提示词，按行给出，发送前以换行拼接",
    )
    base_url: Optional[str] = Field(default=None, description="覆盖 registry 中的 API 基础 URL")
    http_timeout: float = Field(default=60.0, ge=1.0, description="HTTP 超时时间（秒）")

    # ---- 日志 ----
    debug: bool = Field(default=False, description="是否输出调试日志，关闭时日志被丢弃")
    log_dir: str = Field(default="logs", description="日志目录")

    # 仅用于定位 YAML 文件，不来自 YAML 本身
    config_file: Optional[str] = Field(default=None, description="YAML 配置文件路径")

    model_config = SettingsConfigDict(
        env_prefix="DOCCHAT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        protected_namespaces=(),
    )

    @field_validator("provider")
    @classmethod
    def normalize_provider(cls, v: str) -> str:
        return (v or "").strip().lower()

    @field_validator("system_prompt", mode="before")
    @classmethod
    def split_system_prompt(cls, v: Any) -> Any:
        # YAML 中允许直接写一个字符串
        if isinstance(v, str):
            return v.splitlines()
        return v

    @property
    def system_prompt_text(self) -> str:
        return "\n".join(self.system_prompt)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        explicit = getattr(init_settings, "init_kwargs", {}).get("config_file")

        def yaml_config_source() -> Dict[str, Any]:
            return _load_config_from_yaml(explicit)

        return (
            init_settings,
            env_settings,
            dotenv_settings,
            yaml_config_source,
            file_secret_settings,
        )


def load_settings(config_file: Optional[str] = None, **overrides: Any) -> ChatSettings:
    """构造一份配置实例。

    不在模块导入时创建全局 settings，由启动入口调用一次后显式传递给 Session。
    """

    if config_file:
        overrides["config_file"] = config_file
    return ChatSettings(**overrides)
