"""显式的会话对象，替代进程级全局状态。

一个 Session 持有 Provider、文件缓存/解析器、文档和生成控制器，
由启动入口构造一次，进程退出前调用 close()。
同一进程内可以并存多个互不影响的 Session（测试里就是这样用的）。
"""

from dataclasses import dataclass
from typing import Optional

from chat_core.controller.generation import GenerationController
from chat_core.document.accessor import Document
from chat_core.document.parser import DocumentParser
from chat_core.files.resolver import FileResolver
from chat_core.providers.base import Provider


@dataclass
class Session:
    provider: Provider
    resolver: FileResolver
    parser: DocumentParser
    document: Document
    controller: GenerationController

    @classmethod
    def create(
        cls,
        provider: Provider,
        document: Document,
        *,
        resolver: Optional[FileResolver] = None,
        read_size: int = 1024,
    ) -> "Session":
        resolver = resolver if resolver is not None else FileResolver()
        parser = DocumentParser(resolver)
        controller = GenerationController(document, parser, provider, read_size=read_size)
        return cls(
            provider=provider,
            resolver=resolver,
            parser=parser,
            document=document,
            controller=controller,
        )

    def start(self) -> None:
        self.controller.start()

    def close(self, timeout: Optional[float] = None) -> None:
        self.controller.stop(timeout)
        self.provider.close()
