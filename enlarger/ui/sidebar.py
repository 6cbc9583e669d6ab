"""Боковая панель: источник изображения, параметры отражения, генерация и принятие.

Принципы:
- SRP: управляет только UI параметров, не содержит алгоритмов.
- ISP: выдаёт параметры через колбэки `on_*`, состояние принимает методами `set_*`.
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence, Tuple

import customtkinter as ctk

from enlarger.models.reflection import Direction
from enlarger.services.limits_service import EnlargeOption

_NO_ELEMENT = "—"


class Sidebar(ctk.CTkFrame):
    """Панель с блоками: изображение, дизайн, отражение, увеличение, результат."""
    def __init__(self, master: ctk.CTk, **kwargs) -> None:
        super().__init__(master, width=300, **kwargs)

        self.grid_columnconfigure(0, weight=1)

        # Callbacks
        self.on_open_file: Optional[Callable[[], None]] = None
        self.on_remove_file: Optional[Callable[[], None]] = None
        self.on_import_to_design: Optional[Callable[[], None]] = None
        self.on_select_element: Optional[Callable[[Optional[str]], None]] = None
        self.on_direction_change: Optional[Callable[[Direction], None]] = None
        self.on_opacity_change: Optional[Callable[[float], None]] = None
        self.on_offset_change: Optional[Callable[[float], None]] = None
        self.on_factor_change: Optional[Callable[[int], None]] = None
        self.on_generate: Optional[Callable[[], None]] = None
        self.on_accept: Optional[Callable[[], None]] = None
        self.on_go_back: Optional[Callable[[], None]] = None

        self._element_ids: dict[str, str] = {}

        # ---- Изображение ----
        self._title = ctk.CTkLabel(self, text="Original image", font=ctk.CTkFont(size=16, weight="bold"))
        self._title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")

        self._open_btn = ctk.CTkButton(self, text="Upload image…", command=self._emit(lambda: self.on_open_file))
        self._open_btn.grid(row=1, column=0, padx=8, pady=(0, 4), sticky="ew")

        self._file_row = ctk.CTkFrame(self, fg_color="transparent")
        self._file_row.grid_columnconfigure(0, weight=1)
        self._file_val = ctk.StringVar(value="")
        self._file_label = ctk.CTkLabel(self._file_row, textvariable=self._file_val, anchor="w")
        self._file_label.grid(row=0, column=0, sticky="ew")
        self._file_remove = ctk.CTkButton(
            self._file_row, text="✕", width=28, command=self._emit(lambda: self.on_remove_file)
        )
        self._file_remove.grid(row=0, column=1, padx=(4, 0))

        # ---- Дизайн (хост) ----
        self._design_title = ctk.CTkLabel(self, text="Design", font=ctk.CTkFont(size=16, weight="bold"))
        self._design_title.grid(row=3, column=0, padx=8, pady=(12, 4), sticky="w")

        self._element_menu = ctk.CTkOptionMenu(self, values=[_NO_ELEMENT], command=self._on_element_pick)
        self._element_menu.set(_NO_ELEMENT)
        self._element_menu.grid(row=4, column=0, padx=8, pady=(0, 4), sticky="ew")

        self._import_btn = ctk.CTkButton(
            self, text="Import file into design…", command=self._emit(lambda: self.on_import_to_design)
        )
        self._import_btn.grid(row=5, column=0, padx=8, pady=(0, 8), sticky="ew")

        # ---- Параметры ----
        self._edit_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._edit_frame.grid_columnconfigure(0, weight=1)
        self._edit_frame.grid(row=6, column=0, padx=0, pady=0, sticky="ew")

        self._position_label = ctk.CTkLabel(self._edit_frame, text="Position")
        self._position_label.grid(row=0, column=0, padx=8, pady=(8, 2), sticky="w")
        self._direction = ctk.CTkSegmentedButton(
            self._edit_frame, values=[d.value for d in Direction], command=self._on_direction
        )
        self._direction.set(Direction.ABOVE.value)
        self._direction.grid(row=1, column=0, padx=8, pady=(0, 6), sticky="ew")

        self._opacity_val = ctk.StringVar(value="1.0")
        self._opacity_label = ctk.CTkLabel(self._edit_frame, text="Opacity")
        self._opacity_slider = ctk.CTkSlider(
            self._edit_frame, from_=0, to=1, number_of_steps=10, command=self._on_opacity
        )
        self._opacity_slider.set(1.0)
        self._opacity_value = ctk.CTkLabel(self._edit_frame, textvariable=self._opacity_val, width=36, anchor="w")
        self._opacity_label.grid(row=2, column=0, padx=8, pady=(4, 0), sticky="w")
        self._opacity_slider.grid(row=3, column=0, padx=8, pady=(0, 0), sticky="ew")
        self._opacity_value.grid(row=4, column=0, padx=8, pady=(0, 4), sticky="w")

        self._offset_val = ctk.StringVar(value="1.0")
        self._offset_label = ctk.CTkLabel(self._edit_frame, text="Offset")
        self._offset_slider = ctk.CTkSlider(
            self._edit_frame, from_=0, to=1, number_of_steps=10, command=self._on_offset
        )
        self._offset_slider.set(1.0)
        self._offset_value = ctk.CTkLabel(self._edit_frame, textvariable=self._offset_val, width=36, anchor="w")
        self._offset_label.grid(row=5, column=0, padx=8, pady=(4, 0), sticky="w")
        self._offset_slider.grid(row=6, column=0, padx=8, pady=(0, 0), sticky="ew")
        self._offset_value.grid(row=7, column=0, padx=8, pady=(0, 4), sticky="w")

        self._factor_label = ctk.CTkLabel(self._edit_frame, text="Enlarge")
        self._factor_label.grid(row=8, column=0, padx=8, pady=(4, 2), sticky="w")
        self._factor = ctk.CTkSegmentedButton(self._edit_frame, values=["2X"], command=self._on_factor)
        self._factor.grid(row=9, column=0, padx=8, pady=(0, 2), sticky="ew")
        self._factor_hint = ctk.StringVar(value="")
        self._factor_hint_label = ctk.CTkLabel(
            self._edit_frame, textvariable=self._factor_hint, anchor="w", text_color="gray"
        )
        self._factor_hint_label.grid(row=10, column=0, padx=8, pady=(0, 4), sticky="w")

        self._size_error = ctk.StringVar(value="")
        self._size_error_label = ctk.CTkLabel(
            self._edit_frame, textvariable=self._size_error, wraplength=270, justify="left", text_color="#d9534f"
        )

        self._generate_btn = ctk.CTkButton(
            self._edit_frame, text="Generate", command=self._emit(lambda: self.on_generate)
        )
        self._generate_btn.grid(row=12, column=0, padx=8, pady=(8, 8), sticky="ew")

        # ---- Результат ----
        self._result_frame = ctk.CTkFrame(self, fg_color="transparent")
        self._result_frame.grid_columnconfigure(0, weight=1)
        self._preview_title = ctk.CTkLabel(self._result_frame, text="Preview", font=ctk.CTkFont(size=16, weight="bold"))
        self._preview_title.grid(row=0, column=0, padx=8, pady=(8, 4), sticky="w")
        self._accept_btn = ctk.CTkButton(self._result_frame, text="Add to design", command=self._emit(lambda: self.on_accept))
        self._accept_btn.grid(row=1, column=0, padx=8, pady=(0, 4), sticky="ew")
        self._back_btn = ctk.CTkButton(
            self._result_frame, text="Go back", fg_color="transparent", border_width=1,
            command=self._emit(lambda: self.on_go_back),
        )
        self._back_btn.grid(row=2, column=0, padx=8, pady=(0, 8), sticky="ew")

        # filler
        self.grid_rowconfigure(99, weight=1)
        self.show_edit_controls(has_image=False)

    # ---- Public API ----
    def set_file_label(self, name: Optional[str]) -> None:
        """Показывает имя загруженного файла с кнопкой удаления (None — скрыть)."""
        if name:
            self._file_val.set(name)
            self._file_row.grid(row=2, column=0, padx=8, pady=(0, 4), sticky="ew")
        else:
            self._file_val.set("")
            self._file_row.grid_remove()

    def set_elements(self, elements: Sequence[Tuple[str, str]], selected: Optional[str]) -> None:
        """Заполняет список элементов дизайна парами (подпись, id)."""
        self._element_ids = {label: element_id for label, element_id in elements}
        self._element_menu.configure(values=[_NO_ELEMENT] + [label for label, _ in elements])
        current = next((label for label, element_id in elements if element_id == selected), _NO_ELEMENT)
        self._element_menu.set(current)

    def set_params(self, direction: Direction, opacity: float, offset: float) -> None:
        self._direction.set(direction.value)
        self._opacity_slider.set(opacity)
        self._opacity_val.set(f"{opacity:.1f}")
        self._offset_slider.set(offset)
        self._offset_val.set(f"{offset:.1f}")

    def set_factor_options(self, options: List[EnlargeOption], selected: int) -> None:
        """CTkSegmentedButton не умеет отключать отдельные кнопки, поэтому
        недоступные коэффициенты перечисляются подсказкой, а выбор отклоняет контроллер.
        """
        self._factor.configure(values=[o.label for o in options])
        self._factor.set(f"{selected}X")
        disabled = [o.label for o in options if o.disabled]
        self._factor_hint.set(f"Unavailable: {', '.join(disabled)}" if disabled else "")

    def set_size_error(self, message: Optional[str]) -> None:
        if message:
            self._size_error.set(message)
            self._size_error_label.grid(row=11, column=0, padx=8, pady=(4, 0), sticky="ew")
        else:
            self._size_error.set("")
            self._size_error_label.grid_remove()

    def set_generate_enabled(self, enabled: bool) -> None:
        self._generate_btn.configure(state="normal" if enabled else "disabled")

    def set_source_enabled(self, enabled: bool) -> None:
        state = "normal" if enabled else "disabled"
        self._open_btn.configure(state=state)
        self._import_btn.configure(state=state)
        self._element_menu.configure(state=state)

    def show_edit_controls(self, has_image: bool) -> None:
        self._result_frame.grid_remove()
        if has_image:
            self._edit_frame.grid(row=6, column=0, padx=0, pady=0, sticky="ew")
        else:
            self._edit_frame.grid_remove()

    def show_result_controls(self, accept_label: str, accept_enabled: bool) -> None:
        self._edit_frame.grid_remove()
        self._accept_btn.configure(text=accept_label, state="normal" if accept_enabled else "disabled")
        self._result_frame.grid(row=7, column=0, padx=0, pady=0, sticky="ew")

    # ---- Events ----
    @staticmethod
    def _emit(get_callback: Callable[[], Optional[Callable[[], None]]]) -> Callable[[], None]:
        def _handler() -> None:
            callback = get_callback()
            if callback:
                callback()
        return _handler

    def _on_element_pick(self, label: str) -> None:
        if self.on_select_element:
            self.on_select_element(self._element_ids.get(label))

    def _on_direction(self, value: str) -> None:
        if self.on_direction_change:
            self.on_direction_change(Direction(value))

    def _on_opacity(self, value: float) -> None:
        self._opacity_val.set(f"{value:.1f}")
        if self.on_opacity_change:
            self.on_opacity_change(value)

    def _on_offset(self, value: float) -> None:
        self._offset_val.set(f"{value:.1f}")
        if self.on_offset_change:
            self.on_offset_change(value)

    def _on_factor(self, value: str) -> None:
        if value.endswith("X") and self.on_factor_change:
            try:
                factor = int(value[:-1])
            except ValueError:
                return
            self.on_factor_change(factor)
