"""文档访问抽象。

核心只依赖三个操作：读取全文、在末尾追加文本、标记为已保存。
编辑器窗口（gui.window）负责实现真正的就地编辑，并保证每次调用原子执行；
InMemoryDocument 用于测试和无界面运行。
"""

import threading
from typing import List, Protocol


class Document(Protocol):
    def read_all(self) -> str:
        ...

    def append(self, text: str) -> None:
        ...

    def mark_clean(self) -> None:
        ...


class InMemoryDocument:
    """线程安全的内存文档，同时记录每次追加，方便断言写入顺序。"""

    def __init__(self, text: str = ""):
        self._lock = threading.Lock()
        self._text = text
        self.writes: List[str] = []
        self.dirty = bool(text)

    def read_all(self) -> str:
        with self._lock:
            return self._text

    def append(self, text: str) -> None:
        with self._lock:
            self._text += text
            self.writes.append(text)
            self.dirty = True

    def mark_clean(self) -> None:
        with self._lock:
            self.dirty = False

    def replace(self, text: str) -> None:
        """模拟用户编辑：整体替换文档内容。"""

        with self._lock:
            self._text = text
            self.dirty = True
