"""Планировщик поверх цикла событий Tk.

Все переходы состояния выполняются в UI-потоке. Длительные операции
(сеть, декодирование, запись ассетов) уходят в фоновый поток, а их
результат возвращается в UI-поток через очередь, которую опрашивает `after()`.
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import TYPE_CHECKING, Any, Callable, Optional, Protocol, Tuple

if TYPE_CHECKING:
    import tkinter as tk

logger = logging.getLogger(__name__)


class Scheduler(Protocol):
    """Узкий интерфейс таймеров и фоновой работы, который нужен контроллерам."""
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> Any:
        ...

    def cancel(self, handle: Any) -> None:
        ...

    def run_in_background(
        self,
        work: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        ...


class TkScheduler:
    """Реализация `Scheduler` для главного окна customtkinter.

    Фоновые задачи выполняются в daemon-потоках; колбэки `on_success`/`on_error`
    вызываются только из UI-потока.
    """
    def __init__(self, widget: tk.Misc, poll_ms: int = 50) -> None:
        self._widget = widget
        self._poll_ms = poll_ms
        self._results: "queue.Queue[Tuple[Callable[[Any], None], Any]]" = queue.Queue()
        self._poll_handle: Optional[str] = None
        self._pending = 0

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> str:
        return self._widget.after(delay_ms, callback)

    def cancel(self, handle: Any) -> None:
        self._widget.after_cancel(handle)

    def run_in_background(
        self,
        work: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[BaseException], None],
    ) -> None:
        def _worker() -> None:
            try:
                value = work()
            except Exception as exc:  # handed to the UI thread
                self._results.put((on_error, exc))
            else:
                self._results.put((on_success, value))

        self._pending += 1
        threading.Thread(target=_worker, daemon=True).start()
        self._ensure_polling()

    def _ensure_polling(self) -> None:
        if self._poll_handle is None:
            self._poll_handle = self._widget.after(self._poll_ms, self._drain)

    def _drain(self) -> None:
        self._poll_handle = None
        while True:
            try:
                callback, value = self._results.get_nowait()
            except queue.Empty:
                break
            self._pending -= 1
            try:
                callback(value)
            except Exception:
                logger.exception("Background completion callback failed")
        if self._pending > 0:
            self._ensure_polling()
