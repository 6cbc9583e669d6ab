"""Обработка событий выделения хоста: арбитраж и фоновая загрузка изображения."""
from __future__ import annotations

import logging
from typing import Callable, Optional

from enlarger.controllers.session_controller import SelectionTicket, SessionController
from enlarger.errors import EnlargerError
from enlarger.models.image_model import ImageAsset
from enlarger.services.host_service import DesignHost, SelectionEvent
from enlarger.services.image_service import ImageService
from enlarger.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class SelectionController:
    def __init__(
        self,
        session: SessionController,
        host: DesignHost,
        image_service: ImageService,
        scheduler: Scheduler,
    ) -> None:
        self._session = session
        self._host = host
        self._image_service = image_service
        self._scheduler = scheduler
        self._unsubscribe: Optional[Callable[[], None]] = None
        self.on_error: Optional[Callable[[str], None]] = None

    def start(self) -> None:
        self._unsubscribe = self._host.subscribe_selection(self.handle_event)

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def handle_event(self, event: SelectionEvent) -> None:
        ticket = self._session.host_selection_changed(event.ref, event.draft)
        if ticket is None:
            return
        self._scheduler.run_in_background(
            lambda: self._fetch(ticket),
            on_success=lambda asset: self._session.host_image_loaded(ticket, asset),
            on_error=lambda exc: self._handle_fetch_error(ticket, exc),
        )

    def _fetch(self, ticket: SelectionTicket) -> ImageAsset:
        data, mime_type = self._host.read_image(ticket.ref)
        ext = mime_type.split("/")[-1] if mime_type else "png"
        return self._image_service.decode_bytes(data, mime_type=mime_type, name=f"selected-image.{ext}")

    def _handle_fetch_error(self, ticket: SelectionTicket, exc: BaseException) -> None:
        if not isinstance(exc, EnlargerError):
            logger.error("Unexpected error while fetching %s", ticket.ref, exc_info=exc)
        # a stale failure must not touch the newer selection
        if self._session.host_image_failed(ticket) and self.on_error:
            message = exc.message if isinstance(exc, EnlargerError) else str(exc)
            self.on_error(message)
