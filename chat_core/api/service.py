"""启动流程。

加载配置 -> 配置日志 -> 构造 Provider -> 创建编辑器窗口 -> 启动控制器。
没有配置 provider、provider 名称未知、窗口初始化失败都属于启动期致命错误，
以退出码 1 结束进程；之后运行期的错误都不会导致进程退出。
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from chat_core.config.settings import ChatSettings, load_settings
from chat_core.document.accessor import Document
from chat_core.domain.exceptions import BusinessError, ConfigError
from chat_core.infrastructure.logging.logger import log_event, logger, setup_logger
from chat_core.providers import Provider, create_provider
from chat_core.session import Session


def build_provider(settings: ChatSettings) -> Provider:
    """校验配置并构造 Provider。

    Raises:
        ConfigError: 没有配置 provider。
        UnknownProviderError: provider 名称无法识别。
    """

    if not settings.provider:
        raise ConfigError("provider missing in config")
    provider = create_provider(settings)
    log_event(logger, logging.INFO, "provider ready", provider=provider.name, model=settings.model)
    return provider


def build_session(settings: ChatSettings, document: Document) -> Session:
    """根据配置构造 Session（不启动后台线程）。"""

    return Session.create(build_provider(settings), document)


def _parse_args(argv: Optional[List[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="docchat",
        description="Chat with a language model inside a plain-text document.",
    )
    parser.add_argument("--config", help="YAML config file (default: ~/.docchat.yaml)")
    parser.add_argument("--document", help="load the initial document text from this file")
    return parser.parse_args(argv)


def _fail(message: str) -> int:
    print(f"docchat: {message}", file=sys.stderr)
    return 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        settings = load_settings(args.config)
    except (ValidationError, yaml.YAMLError, OSError) as e:
        return _fail(f"load config: {e}")
    setup_logger(settings.log_dir, settings.debug)

    initial_text = None
    if args.document:
        try:
            initial_text = Path(args.document).expanduser().read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            return _fail(f"read {args.document}: {e}")

    try:
        provider = build_provider(settings)
    except BusinessError as e:
        return _fail(e.message)

    # 窗口依赖 tkinter，延迟导入，便于无显示环境下复用 build_session
    try:
        from chat_core.gui.window import DocumentWindow, WindowError
    except ImportError as e:
        provider.close()
        return _fail(f"open window: {e}")

    try:
        window = DocumentWindow.create(title=f"+{settings.provider}", initial_text=initial_text)
    except WindowError as e:
        provider.close()
        return _fail(str(e))

    session = Session.create(provider, window)
    window.bind_session(session)
    session.start()
    window.run()
    return 0
