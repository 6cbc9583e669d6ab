"""Контроллер приложения: оркестрация UI, сеанса и процессов.

SOLID:
- SRP: класс связывает UI с контроллерами сеанса, увеличения и принятия (без логики обработки).
- DIP: зависит от сервисов как от ролей; конкретные реализации собирает `app.py`.
Clean Code:
- Обработчики компактны; UI перерисовывается целиком из снимка сеанса.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from tkinter import filedialog, TclError
from typing import Any, Optional, Tuple

from enlarger.config import Settings
from enlarger.controllers.acceptance_controller import AcceptanceController
from enlarger.controllers.enlarge_workflow import EnlargementWorkflow
from enlarger.controllers.selection_controller import SelectionController
from enlarger.controllers.session_controller import SessionController
from enlarger.errors import DecodeError, HostError
from enlarger.models.reflection import Direction
from enlarger.models.session_model import AcceptanceResult, Provenance, SessionSnapshot
from enlarger.services.host_service import LocalDesignHost
from enlarger.services.image_service import ImageService
from enlarger.services.limits_service import LimitsService
from enlarger.services.reflection_service import ReflectionService
from enlarger.ui.bottom_bar import BottomBar
from enlarger.ui.image_viewer import ImageViewer
from enlarger.ui.sidebar import Sidebar

logger = logging.getLogger(__name__)

_FILE_TYPES = (
    ("Images", "*.png *.jpg *.jpeg *.webp"),
    ("All files", "*.*"),
)


@dataclass
class AppController:
    """Связывает элементы UI с прикладной логикой.

    Ответственности:
    - Инициализация и бинд событий (UI -> контроллеры).
    - Загрузка изображений с диска и выбор элементов документа.
    - Перерисовка превью отражения при каждом изменении источника или параметров.
    - Отображение прогресса, уведомлений и сравнения «до/после».
    """
    viewer: ImageViewer
    sidebar: Sidebar
    bottom: BottomBar
    settings: Settings
    host: LocalDesignHost
    image_service: ImageService
    limits: LimitsService
    reflection: ReflectionService
    session: SessionController
    selection: SelectionController
    workflow: EnlargementWorkflow
    acceptance: AcceptanceController

    _notice: Optional[str] = None
    _preview_key: Optional[Tuple[Any, ...]] = None
    _view_key: Optional[Tuple[Any, ...]] = field(default=None, repr=False)

    def bind_events(self) -> None:
        """Регистрирует обработчики событий между UI-компонентами.

        Компоненты UI ничего не знают друг о друге, общаются через контроллер.
        """
        self.sidebar.on_open_file = self._handle_open_file
        self.sidebar.on_remove_file = self._handle_reset
        self.sidebar.on_import_to_design = self._handle_import_to_design
        self.sidebar.on_select_element = self._handle_select_element
        self.sidebar.on_direction_change = self._handle_direction_change
        self.sidebar.on_opacity_change = self.session.set_opacity
        self.sidebar.on_offset_change = self.session.set_offset
        self.sidebar.on_factor_change = self._handle_factor_change
        self.sidebar.on_generate = self._handle_generate
        self.sidebar.on_accept = self._handle_accept
        self.sidebar.on_go_back = self._handle_reset

        self.bottom.on_cancel = self.workflow.cancel
        self.bottom.on_dismiss = self._handle_dismiss

        self.selection.on_error = self._show_notice
        self.selection.start()
        self.session.subscribe(self._render)
        self._render(self.session.snapshot)

    # ---- Handlers ----
    def _handle_open_file(self) -> None:
        path = self._ask_image_path("Choose an image")
        if not path:
            return
        try:
            asset = self.image_service.load_image(path)
        except (FileNotFoundError, DecodeError) as exc:
            logger.warning("Could not open %s: %s", path, exc)
            self._show_notice(getattr(exc, "message", str(exc)))
            return
        self._notice = None
        self.session.upload(asset)

    def _handle_import_to_design(self) -> None:
        path = self._ask_image_path("Import an image into the design")
        if not path:
            return
        try:
            self.host.import_image(path)
        except (OSError, HostError) as exc:
            logger.warning("Import of %s failed: %s", path, exc)
            self._show_notice(f"Could not import image: {exc}")
            return
        self._render(self.session.snapshot)

    def _handle_select_element(self, element_id: Optional[str]) -> None:
        try:
            self.host.select(element_id)
        except HostError as exc:
            self._show_notice(exc.message)

    def _handle_direction_change(self, direction: Direction) -> None:
        self.session.set_direction(direction)

    def _handle_factor_change(self, factor: int) -> None:
        if not self.session.set_factor(factor):
            # re-sync the segmented button with the factor that stayed selected
            self._render(self.session.snapshot)

    def _handle_generate(self) -> None:
        self._notice = None
        self.workflow.submit()

    def _handle_accept(self) -> None:
        self.acceptance.accept()

    def _handle_reset(self) -> None:
        self._notice = None
        self.session.reset()

    def _handle_dismiss(self) -> None:
        state = self.session.snapshot
        # closes whichever notice _render_notice is showing
        if state.job.is_failed:
            self.session.dismiss_processing_error()
        elif state.acceptance_error:
            self.session.dismiss_acceptance_notice()
        elif self._notice:
            self._notice = None
            self._render(state)
        elif state.acceptance is not None and not state.acceptance_dismissed:
            self.session.dismiss_acceptance_notice()

    # ---- Helpers ----
    def _ask_image_path(self, title: str) -> Optional[str]:
        try:
            return filedialog.askopenfilename(title=title, filetypes=_FILE_TYPES) or None
        except TclError:
            # Silent fail if dialog cannot open
            return None

    def _show_notice(self, message: str) -> None:
        self._notice = message
        self._render(self.session.snapshot)

    def _render(self, state: SessionSnapshot) -> None:
        """Перерисовывает UI по снимку сеанса."""
        running = state.job.is_running
        self.sidebar.set_source_enabled(not running)
        self.sidebar.set_file_label(
            state.asset.name if state.provenance is Provenance.UPLOADED and state.asset else None
        )
        self.sidebar.set_elements(
            [(f"Image {i + 1} · {c.ref[:8]}", c.element_id) for i, c in enumerate(self.host.elements())],
            self.host.selected_element,
        )
        self.bottom.show_progress(state.job.progress if running else None)

        if state.job.is_succeeded and state.job.result is not None and state.asset is not None:
            self._render_result(state)
        else:
            self._render_editor(state)
        self._render_notice(state)

    def _render_editor(self, state: SessionSnapshot) -> None:
        asset = state.asset
        self.sidebar.show_edit_controls(has_image=asset is not None)
        if asset is None:
            self._preview_key = None
            self.viewer.set_placeholder(
                "Loading selected image…" if state.provenance is Provenance.HOST_SELECTED
                else "Upload an image or select one in your design to enlarge"
            )
            self.viewer.set_image(None)
            return

        # compositor re-runs only when the source or the parameters change
        key = (id(asset), state.params)
        if key != self._preview_key:
            preview = self.reflection.composite(asset, state.params, self.settings.preview_size)
            self.viewer.set_image(preview.asset.pil_image)
            self._preview_key = key
            self._view_key = None

        self.sidebar.set_params(state.params.direction, state.params.opacity, state.params.offset_stop)
        self.sidebar.set_factor_options(self.limits.enlarge_options(asset.pixel_count), state.factor)
        blocker = self.workflow.submit_blocker(state)
        self.sidebar.set_size_error(blocker.message if blocker else None)
        self.sidebar.set_generate_enabled(self.workflow.can_submit(state))

    def _render_result(self, state: SessionSnapshot) -> None:
        key = (id(state.asset), id(state.job.result))
        if key != self._view_key:
            self.viewer.set_comparison(state.asset.pil_image, state.job.result.pil_image)
            self._view_key = key
            self._preview_key = None
        self.sidebar.show_result_controls(
            self.acceptance.accept_label(state),
            accept_enabled=state.acceptance is None,
        )

    def _render_notice(self, state: SessionSnapshot) -> None:
        if state.job.is_failed:
            self.bottom.show_notice(state.job.message)
        elif state.acceptance_error:
            self.bottom.show_notice(state.acceptance_error)
        elif self._notice:
            self.bottom.show_notice(self._notice)
        elif state.acceptance is not None and not state.acceptance_dismissed:
            text = "Image added to design" if state.acceptance is AcceptanceResult.ADDED else "Image replaced"
            self.bottom.show_notice(text, tone="positive")
        else:
            self.bottom.show_notice(None)
