"""文档对话的核心数据模型。

- Message: 解析文档得到的一条对话消息，交给 Provider 后即丢弃。
- FileReference: 从 `+file` 指令解析出的文件引用（路径 + 可选行号范围）。

两者都是不可变对象：Parser 每次读取文档都会重新构造。
"""

from dataclasses import dataclass
from typing import Literal, Optional, Tuple


# 文档中只区分两种角色，system prompt 由 Provider 自行拼接
Role = Literal["user", "assistant"]


@dataclass(frozen=True)
class Message:
    """一条对话消息。role 永远非空，content 为纯文本。"""

    role: Role
    content: str


@dataclass(frozen=True)
class FileReference:
    """`+file` 指令引用的文件片段。

    - path: 指令中的原始路径（作为缓存 key）。
    - start: 起始行（1 开始，含），无行号时为 None。
    - end: 结束行（含），仅 `path:n1,n2` 形式时存在。
    """

    path: str
    start: Optional[int] = None
    end: Optional[int] = None

    @property
    def line_range(self) -> Optional[Tuple[int, int]]:
        if self.start is None:
            return None
        return (self.start, self.end if self.end is not None else self.start)

    @property
    def suffix(self) -> str:
        """渲染块标题中的行号后缀，例如 ":3" 或 ":2,4"。"""

        if self.start is None:
            return ""
        if self.end is None:
            return f":{self.start}"
        return f":{self.start},{self.end}"
