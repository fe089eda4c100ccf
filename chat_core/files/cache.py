from typing import Dict, Iterable, List, Optional

from .locks import ReadWriteLock


class FileCache:
    """path -> 文件全文 的缓存。

    查找走读锁，可以与其他查找并发；写入和淘汰走写锁。
    缓存本身不做任何淘汰决策，由 FileResolver 在每轮解析结束时调用 retain。
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._files: Dict[str, str] = {}

    def get(self, path: str) -> Optional[str]:
        with self._lock.read_locked():
            return self._files.get(path)

    def put(self, path: str, content: str) -> None:
        with self._lock.write_locked():
            self._files[path] = content

    def retain(self, keep: Iterable[str]) -> List[str]:
        """只保留 keep 中的路径，返回被淘汰的路径列表。"""

        keep_set = set(keep)
        with self._lock.write_locked():
            evicted = [p for p in self._files if p not in keep_set]
            for p in evicted:
                del self._files[p]
        return evicted

    def paths(self) -> List[str]:
        with self._lock.read_locked():
            return sorted(self._files)

    def __contains__(self, path: object) -> bool:
        with self._lock.read_locked():
            return path in self._files

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._files)
