from __future__ import annotations

from typing import Callable, Optional

import customtkinter as ctk

_TONES = {
    "critical": "#d9534f",
    "positive": "#3c9a5f",
    "info": "gray",
}


class BottomBar(ctk.CTkFrame):
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, height=64, **kwargs)

        # callbacks
        self.on_cancel: Optional[Callable[[], None]] = None
        self.on_dismiss: Optional[Callable[[], None]] = None

        # layout
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(1, weight=1)  # progress / notice stretches

        # Progress (visible while a job runs)
        self._progress_label = ctk.CTkLabel(self, text="Generating your image")
        self._progress_bar = ctk.CTkProgressBar(self)
        self._progress_bar.set(0)
        self._progress_value = ctk.StringVar(value="0%")
        self._progress_value_label = ctk.CTkLabel(self, textvariable=self._progress_value, width=48, anchor="w")
        self._cancel_btn = ctk.CTkButton(self, text="Cancel", width=90, command=self._on_cancel)

        # Notice (one at a time)
        self._notice_value = ctk.StringVar(value="")
        self._notice_label = ctk.CTkLabel(self, textvariable=self._notice_value, anchor="w", justify="left")
        self._dismiss_btn = ctk.CTkButton(self, text="Dismiss", width=90, command=self._on_dismiss)

        self.show_progress(None)
        self.show_notice(None)

    # public API (sync from controller)
    def show_progress(self, percent: Optional[int]) -> None:
        """Показывает прогресс задания; None скрывает индикатор."""
        if percent is None:
            for widget in (self._progress_label, self._progress_bar, self._progress_value_label, self._cancel_btn):
                widget.grid_remove()
            return
        self._progress_label.grid(row=0, column=0, padx=(10, 6), pady=8, sticky="w")
        self._progress_bar.grid(row=0, column=1, padx=6, pady=8, sticky="ew")
        self._progress_value_label.grid(row=0, column=2, padx=(6, 6), pady=8, sticky="w")
        self._cancel_btn.grid(row=0, column=3, padx=(6, 10), pady=8, sticky="e")
        self._progress_bar.set(max(0, min(100, percent)) / 100.0)
        self._progress_value.set(f"{percent}%")

    def show_notice(self, message: Optional[str], tone: str = "critical") -> None:
        if not message:
            self._notice_label.grid_remove()
            self._dismiss_btn.grid_remove()
            return
        self._notice_value.set(message)
        self._notice_label.configure(text_color=_TONES.get(tone, _TONES["info"]))
        self._notice_label.grid(row=1, column=0, columnspan=3, padx=10, pady=(0, 8), sticky="ew")
        self._dismiss_btn.grid(row=1, column=3, padx=(6, 10), pady=(0, 8), sticky="e")

    # events
    def _on_cancel(self) -> None:
        if self.on_cancel:
            self.on_cancel()

    def _on_dismiss(self) -> None:
        if self.on_dismiss:
            self.on_dismiss()
