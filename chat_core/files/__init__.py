"""文件引用解析与缓存。"""

from chat_core.files.cache import FileCache
from chat_core.files.locks import ReadWriteLock
from chat_core.files.resolver import DIRECTIVE_PREFIX, FileResolver, parse_directive

__all__ = ["DIRECTIVE_PREFIX", "FileCache", "FileResolver", "ReadWriteLock", "parse_directive"]
