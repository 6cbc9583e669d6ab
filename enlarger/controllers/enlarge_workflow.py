"""Процесс удалённого увеличения: запуск задания, имитация прогресса, классификация ошибок.

SOLID:
- SRP: владеет заданием и таймером прогресса; провенанс и UI не трогает.
- DIP: сеть, планировщик и декодер передаются снаружи.
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from enlarger.config import Settings, SubmitSource
from enlarger.controllers.session_controller import SessionController
from enlarger.errors import DecodeError, EnlargeError, ValidationError
from enlarger.models.image_model import ImageAsset
from enlarger.models.reflection import Direction, ReflectionParameters
from enlarger.models.session_model import ErrorKind, SessionSnapshot
from enlarger.services.enlarge_service import DECODE_MESSAGE, EnlargeClient
from enlarger.services.image_service import ImageService
from enlarger.services.limits_service import LimitsService
from enlarger.services.reflection_service import ReflectionService
from enlarger.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class ProgressTicker:
    """Повторяющийся таймер «псевдо-прогресса».

    Прибавляет `step` каждые `interval_ms` до `ceiling` и перестаёт планировать себя.
    `stop()` идемпотентен и снимает запланированный вызов.
    """
    def __init__(self, scheduler: Scheduler, interval_ms: int, step: int, ceiling: int,
                 on_tick: Callable[[int], None]) -> None:
        self._scheduler = scheduler
        self._interval_ms = interval_ms
        self._step = step
        self._ceiling = ceiling
        self._on_tick = on_tick
        self._handle: Optional[Any] = None
        self._value = 0

    @property
    def active(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        self.stop()
        self._value = 0
        self._handle = self._scheduler.call_later(self._interval_ms, self._tick)

    def stop(self) -> None:
        if self._handle is not None:
            self._scheduler.cancel(self._handle)
            self._handle = None

    def _tick(self) -> None:
        self._handle = None
        self._value = min(self._value + self._step, self._ceiling)
        self._on_tick(self._value)
        if self._value < self._ceiling:
            self._handle = self._scheduler.call_later(self._interval_ms, self._tick)


class EnlargementWorkflow:
    def __init__(
        self,
        session: SessionController,
        client: EnlargeClient,
        scheduler: Scheduler,
        settings: Settings,
        limits: LimitsService,
        reflection: ReflectionService,
        image_service: ImageService,
    ) -> None:
        self._session = session
        self._client = client
        self._scheduler = scheduler
        self._settings = settings
        self._limits = limits
        self._reflection = reflection
        self._image_service = image_service
        self._active_job: Optional[int] = None
        self._prepared: Optional[Tuple[ImageAsset, Optional[ReflectionParameters], ImageAsset]] = None
        self._ticker = ProgressTicker(
            scheduler,
            interval_ms=settings.progress_interval_ms,
            step=settings.progress_step,
            ceiling=settings.progress_ceiling,
            on_tick=self._on_tick,
        )
        session.subscribe(self._on_session_change)

    @property
    def ticker(self) -> ProgressTicker:
        return self._ticker

    def prepared_payload(self, state: Optional[SessionSnapshot] = None) -> Optional[ImageAsset]:
        """Растр, который уйдёт в сервис для текущего снимка.

        Кэшируется по исходнику и, в режиме REFLECTED, по параметрам,
        поэтому перерисовка UI не кодирует PNG заново.
        """
        state = state or self._session.snapshot
        if state.asset is None:
            return None
        source = state.asset.origin
        mode = self._settings.submit_source
        params = state.params if mode is SubmitSource.REFLECTED else None
        if self._prepared is not None and self._prepared[0] is source and self._prepared[1] == params:
            return self._prepared[2]
        payload = self._reflection.prepare_submission(source, state.params, mode)
        self._prepared = (source, params, payload)
        return payload

    def submit_blocker(self, state: Optional[SessionSnapshot] = None) -> Optional[ValidationError]:
        """Причина отказа в отправке: исходный файл или подготовленный PNG вне ограничений."""
        state = state or self._session.snapshot
        if state.asset is None:
            return None
        blocker = self._limits.submit_blocker(state.asset, state.factor)
        if blocker is None:
            blocker = self._limits.submit_blocker(self.prepared_payload(state), state.factor)
        return blocker

    def can_submit(self, state: Optional[SessionSnapshot] = None) -> bool:
        state = state or self._session.snapshot
        if state.asset is None or state.job.is_running:
            return False
        return self.submit_blocker(state) is None

    def submit(self) -> bool:
        """Отправляет активное изображение на увеличение.

        Returns:
            False, если задание уже выполняется, изображения нет или оно
            не проходит ограничения по размеру; иначе True.
        """
        state = self._session.snapshot
        if state.job.is_running:
            logger.warning("Enlargement already running (job %s), refusing to start", state.job.job_id)
            return False
        if state.asset is None:
            return False
        blocker = self.submit_blocker(state)
        if blocker is not None:
            logger.info("Submit blocked: %s (%s)", blocker.message, blocker.details)
            return False

        payload = self.prepared_payload(state)
        direction = state.params.direction
        factor = state.factor

        job_id = self._session.begin_job()
        self._active_job = job_id
        self._ticker.start()
        logger.info("Job %s started: %dx%d, direction=%s, factor=%s",
                    job_id, payload.width, payload.height, direction.value, factor)

        self._scheduler.run_in_background(
            lambda: self._request(payload, direction, factor),
            on_success=lambda result: self._on_success(job_id, result),
            on_error=lambda exc: self._on_error(job_id, exc),
        )
        return True

    def cancel(self) -> None:
        """Сбрасывает локальное состояние; ответ сервера будет отброшен по приходу."""
        self._ticker.stop()
        self._active_job = None
        self._session.reset()

    # ---- Internals ----
    def _request(self, payload: ImageAsset, direction: Direction, factor: int) -> ImageAsset:
        body = self._client.enlarge(payload, direction, factor)
        try:
            return self._image_service.decode_bytes(body, mime_type="image/png", name=payload.name)
        except DecodeError as exc:
            raise EnlargeError(ErrorKind.DECODE, DECODE_MESSAGE, status=200) from exc

    def _on_tick(self, value: int) -> None:
        job = self._session.snapshot.job
        if self._active_job is None or job.job_id != self._active_job:
            self._ticker.stop()
            return
        self._session.apply_job(job.with_progress(value))

    def _on_success(self, job_id: int, result: ImageAsset) -> None:
        try:
            job = self._session.snapshot.job
            if job.job_id != job_id:
                logger.info("Dropping result of stale job %s", job_id)
                return
            self._session.apply_job(job.succeeded(result))
            logger.info("Job %s succeeded: %dx%d", job_id, result.width, result.height)
        finally:
            self._release(job_id)

    def _on_error(self, job_id: int, exc: BaseException) -> None:
        try:
            if isinstance(exc, EnlargeError):
                kind, message = exc.kind, exc.message
            else:
                logger.error("Unexpected failure in job %s", job_id, exc_info=exc)
                kind, message = ErrorKind.UNKNOWN_HTTP, f"Failed to process image: {exc}"
            job = self._session.snapshot.job
            if job.job_id != job_id:
                logger.info("Dropping failure of stale job %s (%s)", job_id, kind.value)
                return
            self._session.apply_job(job.failed(kind, message))
            logger.warning("Job %s failed: %s", job_id, kind.value)
        finally:
            self._release(job_id)

    def _release(self, job_id: int) -> None:
        if self._active_job == job_id:
            self._ticker.stop()
            self._active_job = None

    def _on_session_change(self, state: SessionSnapshot) -> None:
        # reset or a new source: the running job is gone, so is its timer
        if self._active_job is not None and (state.job.job_id != self._active_job or not state.job.is_running):
            self._ticker.stop()
            self._active_job = None
        if state.asset is None:
            self._prepared = None
