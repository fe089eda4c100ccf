"""tkinter 文档窗口：编辑器层的最小实现。

整个窗口就是一个可编辑的文本文档，工具栏上的 Get / Stop 按钮
（或 Ctrl+Enter / Escape）只负责向控制器投递信号，从不等待生成完成。

控制器在后台线程里调用 read_all / append / mark_clean，
这些调用通过 root.after 转到 Tk 线程执行并等待结果，
因此对控制器而言每次调用都是原子的。
"""

import threading
import tkinter as tk
from concurrent.futures import Future
from tkinter import scrolledtext
from typing import Callable, Optional, TypeVar

from chat_core.document.parser import role_header
from chat_core.session import Session


T = TypeVar("T")

INITIAL_TEXT = role_header("user") + "\n"

_STATUS_POLL_MS = 200


class WindowError(RuntimeError):
    """窗口无法创建（例如没有可用的显示环境）。"""


class DocumentWindow:
    def __init__(self, root: tk.Tk, title: str, initial_text: Optional[str] = None):
        self.root = root
        self._title = title
        self._ui_thread = threading.current_thread()
        self._session: Optional[Session] = None

        self.root.title(title)
        bar = tk.Frame(root)
        bar.pack(fill=tk.X)
        tk.Button(bar, text="Get", command=self.on_get).pack(side=tk.LEFT)
        tk.Button(bar, text="Stop", command=self.on_stop).pack(side=tk.LEFT)
        self.status = tk.Label(bar, text="idle")
        self.status.pack(side=tk.RIGHT)

        self.text = scrolledtext.ScrolledText(root, width=100, height=40, undo=True, wrap=tk.WORD)
        self.text.pack(fill=tk.BOTH, expand=True)
        self.text.insert("1.0", INITIAL_TEXT if initial_text is None else initial_text)
        self.text.edit_modified(False)
        self.text.bind("<<Modified>>", self._on_modified)
        self.text.bind("<Control-Return>", self._on_get_event)
        self.root.bind("<Escape>", self._on_stop_event)
        self.root.protocol("WM_DELETE_WINDOW", self.on_close)

    @classmethod
    def create(cls, title: str, initial_text: Optional[str] = None) -> "DocumentWindow":
        try:
            root = tk.Tk()
        except tk.TclError as e:
            raise WindowError(f"open window: {e}") from e
        return cls(root, title, initial_text)

    def bind_session(self, session: Session) -> None:
        self._session = session
        self._refresh_status()

    def run(self) -> None:
        self.root.mainloop()

    def destroy(self) -> None:
        self.root.destroy()

    # ---- Document 协议 ----

    def read_all(self) -> str:
        return self._call_in_ui(lambda: self.text.get("1.0", "end-1c"))

    def append(self, text: str) -> None:
        self._call_in_ui(lambda: self._append(text))

    def mark_clean(self) -> None:
        self._call_in_ui(lambda: self.text.edit_modified(False))

    def _append(self, text: str) -> None:
        self.text.insert(tk.END, text)
        self.text.see(tk.END)

    def _call_in_ui(self, fn: Callable[[], T]) -> T:
        if threading.current_thread() is self._ui_thread:
            return fn()
        future: "Future[T]" = Future()

        def run() -> None:
            if not future.set_running_or_notify_cancel():
                return
            try:
                future.set_result(fn())
            except Exception as e:  # noqa: BLE001 - 交还给调用线程
                future.set_exception(e)

        self.root.after(0, run)
        return future.result()

    # ---- 事件 ----

    def on_get(self) -> None:
        if self._session is not None:
            self._session.controller.signal_request()

    def on_stop(self) -> None:
        if self._session is not None:
            self._session.controller.signal_cancel()

    def _on_get_event(self, event) -> str:
        self.on_get()
        return "break"

    def _on_stop_event(self, event) -> None:
        self.on_stop()

    def _on_modified(self, event=None) -> None:
        dirty = bool(self.text.edit_modified())
        self.root.title(("*" if dirty else "") + self._title)

    def _refresh_status(self) -> None:
        if self._session is None:
            return
        self.status.config(text=self._session.controller.state.value)
        self.root.after(_STATUS_POLL_MS, self._refresh_status)

    def on_close(self) -> None:
        # 后台线程可能正等待 Tk 线程执行写入，这里不能阻塞等待它退出
        if self._session is not None:
            self._session.close(timeout=0)
        self.root.destroy()
