"""文档 -> 对话消息 解析器。

文档格式::

    ### User
    +file main.go:1,20
    这段代码有什么问题？

    ### Assistant
    ...

以行首的 `###` 切分轮次，首行是角色名，其余是正文。
user 轮次开头连续的 `+file` 指令会被展开成代码块。
"""

import logging
import re
from typing import List, Optional

from chat_core.domain.exceptions import FileReadError, InvalidReference, LineRangeError, UnknownRole
from chat_core.domain.models import Message, Role
from chat_core.files.resolver import DIRECTIVE_PREFIX, FilePass, FileResolver, parse_directive
from chat_core.infrastructure.logging.logger import log_event, logger


ROLE_MARKER = "###"

ROLE_NAMES = {
    "User": "user",
    "Assistant": "assistant",
}

# 行首的 `###`，后面是空白、行尾或紧跟已知角色名（`###User`）；`####` 标题不算轮次
_TURN_SPLIT_RE = re.compile(
    rf"(?m)^{re.escape(ROLE_MARKER)}(?=[ \t]|$|(?:{'|'.join(ROLE_NAMES)})\b)"
)


def role_header(role: Role) -> str:
    """某个角色的轮次标题行（不含换行），例如 "### User"。"""

    for name, value in ROLE_NAMES.items():
        if value == role:
            return f"{ROLE_MARKER} {name}"
    raise ValueError(f"unsupported role: {role}")


def join_nonempty(left: str, right: str, delim: str = "\n") -> str:
    if not left:
        return right
    if not right:
        return left
    return left + delim + right


class DocumentParser:
    """把文档全文解析为有序的 Message 列表。

    每次 parse() 是一轮（pass），有自己的 FilePass；结束时本轮未引用的文件
    会被逐出缓存。多个线程可以共用同一个 DocumentParser。
    """

    def __init__(self, resolver: Optional[FileResolver] = None):
        self.resolver = resolver if resolver is not None else FileResolver()

    def parse(self, raw_text: str) -> List[Message]:
        messages: List[Message] = []
        file_pass = self.resolver.begin_pass()
        try:
            for segment in _TURN_SPLIT_RE.split(raw_text):
                segment = segment.strip()
                if not segment:
                    continue
                header, sep, body = segment.partition("\n")
                if not sep:
                    continue
                message = self._build_message(file_pass, header.strip(), body.strip())
                if message is not None:
                    messages.append(message)
        finally:
            file_pass.end()
        return messages

    def _build_message(self, file_pass: FilePass, role_name: str, body: str) -> Optional[Message]:
        role = ROLE_NAMES.get(role_name)
        if role is None:
            err = UnknownRole(role_name)
            log_event(logger, logging.WARNING, err.message, code=err.code, role=role_name)
            role = "user"

        if role == "assistant":
            if not body:
                return None
            return Message(role="assistant", content=body)

        blocks, text = self._expand_directives(file_pass, body)
        content = join_nonempty("\n".join(blocks), text)
        if not content:
            return None
        return Message(role="user", content=content)

    def _expand_directives(self, file_pass: FilePass, body: str):
        """展开正文开头连续的文件指令，返回 (代码块列表, 剩余正文)。"""

        blocks: List[str] = []
        while body.startswith(DIRECTIVE_PREFIX):
            line, _, rest = body.partition("\n")
            body = rest.strip()
            try:
                ref = parse_directive(line)
                blocks.append(file_pass.resolve(ref))
            except (InvalidReference, LineRangeError, FileReadError) as e:
                log_event(logger, logging.WARNING, "dropped file block", code=e.code, error=e.message, line=line.strip())
        return blocks, body
