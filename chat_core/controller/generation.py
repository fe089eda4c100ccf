"""生成控制器：请求/取消信号 -> 解析文档 -> 调用 Provider -> 流式写回文档。

状态机只有 Idle / Generating 两个状态，由单个后台线程串行执行：

1. 等待 request 信号；
2. 丢弃上一轮残留的 cancel 信号；
3. 解析当前文档得到消息列表，调用 provider.stream_chat；
   建立失败则记录日志、不写任何内容，回到 Idle；
4. 写入 assistant 轮次标题，然后逐块读取：每次读取前检查 cancel，
   有取消则写入停止标记并结束；否则原样写入读到的内容；
5. 流结束（或中途 ProviderError，仅记录日志）后写入 user 轮次标题，
   标记文档为已保存，关闭流，回到 Idle。

生成期间到达的多个 request 会合并为一个，在本轮结束后作为下一轮执行。
取消是协作式的，每读一块检查一次；Provider 阻塞在读取上时无法被抢占。
"""

import codecs
import logging
import threading
from enum import Enum
from typing import Optional

from chat_core.document.accessor import Document
from chat_core.document.parser import DocumentParser, role_header
from chat_core.domain.exceptions import ProviderError
from chat_core.infrastructure.logging.logger import log_event, logger
from chat_core.providers.base import Provider
from chat_core.providers.stream import ByteStream

from .signals import CoalescingSignal


ASSISTANT_HEADER = "\n\n" + role_header("assistant") + "\n"
USER_HEADER = "\n" + role_header("user") + "\n"
STOP_SENTINEL = "<Stopped by user>\n"

DEFAULT_READ_SIZE = 1024


class ControllerState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"


class GenerationOutcome(str, Enum):
    COMPLETED = "completed"  # 流正常结束
    CANCELLED = "cancelled"  # 用户取消
    FAILED = "failed"  # 流中途 ProviderError，已写入的内容保留
    ABORTED = "aborted"  # 建立流失败，文档未改动


class GenerationController:
    def __init__(
        self,
        document: Document,
        parser: DocumentParser,
        provider: Provider,
        *,
        read_size: int = DEFAULT_READ_SIZE,
    ):
        self._document = document
        self._parser = parser
        self._provider = provider
        self._read_size = read_size
        self.request = CoalescingSignal("request")
        self.cancel = CoalescingSignal("cancel")
        self._state = ControllerState.IDLE
        self._state_lock = threading.Lock()
        self._shutdown = threading.Event()
        self._thread: Optional[threading.Thread] = None

    # ---- 给编辑器层的入口（非阻塞） ----

    def signal_request(self) -> bool:
        return self.request.set()

    def signal_cancel(self) -> bool:
        return self.cancel.set()

    @property
    def state(self) -> ControllerState:
        with self._state_lock:
            return self._state

    def _set_state(self, state: ControllerState) -> None:
        with self._state_lock:
            self._state = state

    # ---- 后台线程 ----

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._shutdown.clear()
        self._thread = threading.Thread(target=self._loop, name="generation-worker", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        """请求后台线程退出；正在进行的生成会先被取消。"""

        self._shutdown.set()
        self.cancel.set()
        self.request.set()
        if self._thread is not None:
            self._thread.join(timeout)
            if self._thread.is_alive():
                return
            self._thread = None
        # 唤醒用的信号不能留到下一次 start()
        self.request.consume()
        self.cancel.consume()

    def _loop(self) -> None:
        while True:
            self.request.wait()
            if self._shutdown.is_set():
                break
            try:
                self.run_once()
            except Exception:  # noqa: BLE001 - 单次生成失败不能结束后台线程
                logger.exception("generation failed")

    # ---- 单次生成 ----

    def run_once(self) -> GenerationOutcome:
        self.cancel.consume()
        self._set_state(ControllerState.GENERATING)
        try:
            messages = self._parser.parse(self._document.read_all())
            try:
                stream = self._provider.stream_chat(messages)
            except ProviderError as e:
                log_event(
                    logger,
                    logging.ERROR,
                    "chat: stream setup failed",
                    code=e.code,
                    error=e.message,
                    provider=getattr(self._provider, "name", ""),
                )
                return GenerationOutcome.ABORTED
            log_event(logger, logging.INFO, "chat: streaming", messages=len(messages))
            return self._write_stream(stream)
        finally:
            self._set_state(ControllerState.IDLE)

    def _write_stream(self, stream: ByteStream) -> GenerationOutcome:
        outcome = GenerationOutcome.COMPLETED
        # 多字节字符可能被切在两次读取之间
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        try:
            self._document.append(ASSISTANT_HEADER)
            while True:
                if self.cancel.consume():
                    outcome = GenerationOutcome.CANCELLED
                    break
                try:
                    data = stream.read(self._read_size)
                except ProviderError as e:
                    log_event(logger, logging.ERROR, "chat: stream failed", code=e.code, error=e.message)
                    outcome = GenerationOutcome.FAILED
                    break
                if not data:
                    break
                text = decoder.decode(data)
                if text:
                    self._document.append(text)
            tail = decoder.decode(b"", final=True)
            if tail:
                self._document.append(tail)
            if outcome is GenerationOutcome.CANCELLED:
                self._document.append(STOP_SENTINEL)
            self._document.append(USER_HEADER)
            self._document.mark_clean()
        finally:
            stream.close()
        log_event(logger, logging.INFO, "chat: done", outcome=outcome.value)
        return outcome
