"""把厂商的推送式流适配成拉取式字节流。

后台线程消费厂商 SDK / HTTP 响应的增量，写入有界队列；
Controller 在自己的线程里调用 read() 按块拉取。close() 之后
后台线程在下一次写入时发现管道已关闭，丢弃剩余输出并退出。
"""

import queue
import threading
from typing import Callable, Iterator, Optional

from chat_core.domain.exceptions import BusinessError, ProviderError


_DATA = "data"
_END = "end"

_PUT_POLL_SECONDS = 0.1


class ByteStream:
    """有界的单生产者/单消费者字节管道。

    - 生产者：write(data) / finish(error)
    - 消费者：read(n) / close()

    read() 在流结束时返回 b""；生产者以错误结束时抛出该 ProviderError。
    """

    def __init__(self, maxsize: int = 64):
        self._queue: "queue.Queue[tuple[str, object]]" = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._pending = b""
        self._eof = False
        self._error: Optional[ProviderError] = None

    # ---- 生产者 ----

    def _put(self, item: tuple) -> bool:
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def write(self, data: bytes) -> bool:
        """写入一块数据；管道已关闭时返回 False，生产者应停止。"""

        if not data:
            return not self._closed.is_set()
        return self._put((_DATA, data))

    def finish(self, error: Optional[ProviderError] = None) -> None:
        self._put((_END, error))

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    # ---- 消费者 ----

    def read(self, size: int = 1024) -> bytes:
        if size <= 0:
            return b""
        if not self._pending:
            if self._eof or self._closed.is_set():
                return b""
            kind, payload = self._queue.get()
            if kind == _END:
                self._eof = True
                if payload is not None:
                    raise payload
                return b""
            self._pending = payload
        chunk, self._pending = self._pending[:size], self._pending[size:]
        return chunk

    def close(self) -> None:
        """关闭管道并丢弃尚未读取的数据，可重复调用。"""

        self._closed.set()
        self._pending = b""
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    @classmethod
    def from_iterator(
        cls,
        chunks: Iterator[str],
        *,
        cleanup: Optional[Callable[[], None]] = None,
        name: str = "provider-stream",
        maxsize: int = 64,
    ) -> "ByteStream":
        """启动后台线程，把文本增量迭代器编码为 UTF-8 写入管道。"""

        stream = cls(maxsize=maxsize)

        def _feed() -> None:
            error: Optional[ProviderError] = None
            try:
                for text in chunks:
                    if not stream.write(text.encode("utf-8")):
                        break
            except ProviderError as e:
                error = e
            except BusinessError as e:
                error = ProviderError(code=e.code, message=e.message, **e.extra)
            except Exception as e:  # noqa: BLE001 - 线程边界，转交给读取方
                error = ProviderError(code="STREAM_ERROR", message=str(e) or type(e).__name__)
            finally:
                try:
                    close = getattr(chunks, "close", None)
                    if callable(close):
                        close()
                    if cleanup is not None:
                        cleanup()
                finally:
                    stream.finish(error)

        threading.Thread(target=_feed, name=name, daemon=True).start()
        return stream
