"""文档访问与解析。"""

from chat_core.document.accessor import Document, InMemoryDocument
from chat_core.document.parser import ROLE_MARKER, DocumentParser, role_header

__all__ = ["Document", "DocumentParser", "InMemoryDocument", "ROLE_MARKER", "role_header"]
