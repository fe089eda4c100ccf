"""`+file` 指令解析与文件内容渲染。

指令语法（整行，前后空白忽略）::

    +file <path>
    +file <path>:<n>
    +file <path>:<n1>,<n2>

行号从 1 开始、闭区间。渲染结果是一个带语言标签的代码块::

    ```go x.go:1,2
    package main
    import "fmt"
    ```

文件内容按 path 缓存。每轮文档解析通过 begin_pass() 拿到自己的 FilePass，
结束时调用 FilePass.end()，本轮没有被引用的 path 会从缓存中淘汰，下次引用时重新读盘。
并发的多轮解析各自记录引用，互不干扰。
"""

import logging
import os
import re
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set

from chat_core.domain.exceptions import FileReadError, InvalidReference, LineRangeError
from chat_core.domain.models import FileReference
from chat_core.infrastructure.logging.logger import log_event, logger

from .cache import FileCache


DIRECTIVE_PREFIX = "+file"

_DIRECTIVE_RE = re.compile(r"^\+file\s+([^:]+)(?::(\d+)(?:,(\d+))?)?$")


def parse_directive(line: str) -> FileReference:
    """把一行 `+file ...` 解析为 FileReference，不合法时抛 InvalidReference。"""

    text = line.strip()
    m = _DIRECTIVE_RE.match(text)
    if not m:
        raise InvalidReference(f"invalid file reference: {text}", line=text)
    path = m.group(1).strip()
    if not path:
        raise InvalidReference(f"invalid file reference: {text}", line=text)
    start = int(m.group(2)) if m.group(2) else None
    end = int(m.group(3)) if m.group(3) else None
    if start is not None and start < 1:
        raise InvalidReference(f"illegal line number: {start}", line=text)
    if end is not None and end < start:
        raise InvalidReference(f"illegal line range: {start},{end}", line=text)
    return FileReference(path=path, start=start, end=end)


def _read_text(path: str) -> str:
    try:
        return Path(path).expanduser().read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadError(f"read {path}: {e}", path=path) from e


def split_lines(content: str) -> List[str]:
    """按换行切分；末尾换行不产生额外的空行。"""

    if not content:
        return []
    lines = content.split("\n")
    if content.endswith("\n"):
        lines.pop()
    return lines


def render_block(ref: FileReference, body: str) -> str:
    ext = os.path.splitext(ref.path)[1].lstrip(".")
    header = os.path.basename(ref.path) + ref.suffix
    return f"```{ext} {header}\n{body}\n```"


class FileResolver:
    """带缓存的文件引用解析器。

    - resolve(ref): 读取（或命中缓存）并渲染一个文件块。
    - begin_pass(): 开始一轮解析，返回只属于这一轮的 FilePass。
    - end_pass(used): 淘汰 used 之外的缓存，返回被淘汰的 path。

    缓存可以被多个并发的解析同时读取；“已使用”标记归各自的 FilePass 所有。
    """

    def __init__(
        self,
        cache: Optional[FileCache] = None,
        reader: Callable[[str], str] = _read_text,
    ):
        self.cache = cache if cache is not None else FileCache()
        self._reader = reader

    def begin_pass(self) -> "FilePass":
        return FilePass(self)

    def load(self, path: str) -> str:
        """返回文件全文，优先走缓存。"""

        cached = self.cache.get(path)
        if cached is not None:
            log_event(logger, logging.DEBUG, "cache hit", path=path)
            return cached
        content = self._reader(path)
        self.cache.put(path, content)
        return content

    def resolve(self, ref: FileReference) -> str:
        lines = split_lines(self.load(ref.path))
        if ref.start is None:
            return render_block(ref, "\n".join(lines))

        count = len(lines)
        start, end = ref.line_range
        if start < 1 or start > count:
            raise LineRangeError(f"illegal line number: {start}", path=ref.path, lines=count)
        if end < 1 or end > count:
            raise LineRangeError(f"illegal line number: {end}", path=ref.path, lines=count)
        body = "\n".join(lines[start - 1:end])
        return render_block(ref, body)

    def end_pass(self, used: Iterable[str]) -> List[str]:
        """一轮解析结束：淘汰 used 之外的缓存，返回被淘汰的 path。"""

        evicted = self.cache.retain(set(used))
        for path in evicted:
            log_event(logger, logging.DEBUG, "evicted unused file", path=path)
        return evicted


class FilePass:
    """一轮解析期间引用过的 path。只由发起这轮解析的线程使用。"""

    def __init__(self, resolver: FileResolver):
        self.resolver = resolver
        self.used: Set[str] = set()

    def mark_used(self, path: str) -> None:
        # 渲染失败也算引用过，文件仍然留在缓存里
        self.used.add(path)

    def resolve(self, ref: FileReference) -> str:
        self.mark_used(ref.path)
        return self.resolver.resolve(ref)

    def end(self) -> List[str]:
        return self.resolver.end_pass(self.used)
