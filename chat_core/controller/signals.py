import threading
from typing import Optional


class CoalescingSignal:
    """容量为 1 的通知槽。

    set() 永不阻塞：槽已有待处理信号时直接丢弃本次信号。
    wait() 阻塞到有信号为止，并在返回前消费它。
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._cond = threading.Condition(threading.Lock())
        self._pending = False

    def set(self) -> bool:
        """投递信号；返回 False 表示已有信号待处理，本次被合并。"""

        with self._cond:
            if self._pending:
                return False
            self._pending = True
            self._cond.notify()
            return True

    def consume(self) -> bool:
        """非阻塞地取走信号，返回之前是否有信号。"""

        with self._cond:
            was_pending = self._pending
            self._pending = False
            return was_pending

    def wait(self, timeout: Optional[float] = None) -> bool:
        with self._cond:
            if not self._cond.wait_for(lambda: self._pending, timeout=timeout):
                return False
            self._pending = False
            return True

    def is_set(self) -> bool:
        with self._cond:
            return self._pending

    def __repr__(self) -> str:
        return f"CoalescingSignal({self.name!r}, pending={self.is_set()})"
