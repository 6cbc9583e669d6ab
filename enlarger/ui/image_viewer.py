"""Виджет просмотра: превью отражения и сравнение «до/после» шторкой.

Принципы:
- SRP: отвечает только за представление и интеракции с изображением.
- Чистый код: чёткое разделение публичного API и внутренних обработчиков событий.
"""
from __future__ import annotations

from typing import Optional, Tuple

import customtkinter as ctk
import tkinter as tk
from PIL import Image, ImageTk


class ImageViewer(ctk.CTkFrame):
    """Канва с режимами: одиночное превью или шторка между «до» и «после»."""
    def __init__(self, master: ctk.CTk | tk.Misc, **kwargs) -> None:
        super().__init__(master, **kwargs)
        self.grid_rowconfigure(0, weight=1)
        self.grid_columnconfigure(0, weight=1)

        self._canvas = tk.Canvas(self, highlightthickness=0, bg=self._get_canvas_bg())
        self._canvas.grid(row=0, column=0, sticky="nsew")

        self._before_image: Optional[Image.Image] = None
        self._after_image: Optional[Image.Image] = None
        self._tk_image_before: Optional[ImageTk.PhotoImage] = None
        self._tk_image_after: Optional[ImageTk.PhotoImage] = None
        self._placeholder: str = "Upload an image or select one in your design to enlarge"

        self._wipe_ratio: float = 0.5

        self._canvas.bind("<Configure>", lambda _e: self._render_image())
        # drag the wipe line
        self._canvas.bind("<ButtonPress-1>", self._on_drag)
        self._canvas.bind("<B1-Motion>", self._on_drag)

    # ---- Public API ----
    def set_image(self, image: Optional[Image.Image]) -> None:
        """Показывает одно изображение (превью отражения); None очищает канву."""
        self._before_image = image
        self._after_image = None
        self._render_image()

    def set_comparison(self, before: Image.Image, after: Image.Image) -> None:
        """Включает сравнение: слева «до», справа «после», граница — шторка."""
        self._before_image = before
        self._after_image = after
        self._wipe_ratio = 0.5
        self._render_image()

    def set_placeholder(self, text: str) -> None:
        self._placeholder = text
        self._render_image()

    # ---- Internals ----
    def _render_image(self) -> None:
        self._canvas.delete("all")
        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))

        if self._before_image is None:
            self._canvas.create_text(
                canvas_w // 2, canvas_h // 2, text=self._placeholder, fill=self._get_text_color(), width=canvas_w - 40
            )
            return

        scaled_w, scaled_h = self._fit_size(self._before_image.size, (canvas_w, canvas_h))
        ox = (canvas_w - scaled_w) // 2
        oy = (canvas_h - scaled_h) // 2
        resized_before = self._before_image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)

        if self._after_image is None:
            self._tk_image_before = ImageTk.PhotoImage(resized_before)
            self._tk_image_after = None
            self._canvas.create_image(ox, oy, image=self._tk_image_before, anchor="nw")
            return

        # «после» масштабируется в тот же прямоугольник, что и «до»
        resized_after = self._after_image.resize((scaled_w, scaled_h), Image.Resampling.LANCZOS)
        split = int(round(scaled_w * self._wipe_ratio))
        self._tk_image_before = None
        self._tk_image_after = None
        # zero-width crops cannot become PhotoImage
        if split > 0:
            self._tk_image_before = ImageTk.PhotoImage(resized_before.crop((0, 0, split, scaled_h)))
            self._canvas.create_image(ox, oy, image=self._tk_image_before, anchor="nw")
        if split < scaled_w:
            self._tk_image_after = ImageTk.PhotoImage(resized_after.crop((split, 0, scaled_w, scaled_h)))
            self._canvas.create_image(ox + split, oy, image=self._tk_image_after, anchor="nw")

        self._canvas.create_line(ox + split, oy, ox + split, oy + scaled_h, fill="#ffffff", width=2)
        self._draw_badge(ox + 8, oy + 8, "Before", anchor="nw")
        self._draw_badge(ox + scaled_w - 8, oy + 8, "After", anchor="ne")

    def _draw_badge(self, x: int, y: int, text: str, anchor: str) -> None:
        label = self._canvas.create_text(x + (6 if anchor == "nw" else -6), y + 4, text=text, fill="#ffffff", anchor=anchor)
        x1, y1, x2, y2 = self._canvas.bbox(label)
        rect = self._canvas.create_rectangle(x1 - 6, y1 - 3, x2 + 6, y2 + 3, fill="#222222", outline="")
        self._canvas.tag_raise(label, rect)

    @staticmethod
    def _fit_size(image_size: Tuple[int, int], box: Tuple[int, int]) -> Tuple[int, int]:
        img_w, img_h = image_size
        box_w, box_h = box
        if img_w == 0 or img_h == 0:
            return 1, 1
        scale = min(box_w / img_w, box_h / img_h)
        return max(1, int(img_w * scale)), max(1, int(img_h * scale))

    def _on_drag(self, event: tk.Event) -> None:
        if self._after_image is None or self._before_image is None:
            return
        canvas_w = max(1, int(self._canvas.winfo_width()))
        canvas_h = max(1, int(self._canvas.winfo_height()))
        scaled_w, _ = self._fit_size(self._before_image.size, (canvas_w, canvas_h))
        ox = (canvas_w - scaled_w) // 2
        self._wipe_ratio = max(0.0, min(1.0, (event.x - ox) / scaled_w))
        self._render_image()

    def _get_canvas_bg(self) -> str:
        # CTk does not expose canvas theme, so pick neutral
        return "#1f1f1f" if ctk.get_appearance_mode().lower() == "dark" else "#f2f2f2"

    def _get_text_color(self) -> str:
        return "#bbbbbb" if ctk.get_appearance_mode().lower() == "dark" else "#555555"
