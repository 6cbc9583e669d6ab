"""Машина состояний провенанса: единый снимок сеанса и таблица переходов.

SOLID:
- SRP: только арбитраж источников изображения и хранение снимка; без сети и UI.
- OCP: новые источники добавляются строкой в `_ALLOWED` и методом-переходом.
Clean Code:
- Каждое изменение создаёт новый `SessionSnapshot`; подписчики получают его сразу.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, FrozenSet, List, Optional

from enlarger.errors import InvalidTransition
from enlarger.models.image_model import ImageAsset
from enlarger.models.reflection import Direction, ReflectionParameters, clamp_unit
from enlarger.models.session_model import (
    AcceptanceResult,
    ProcessingJob,
    Provenance,
    SessionSnapshot,
)
from enlarger.services.host_service import ContentDraft
from enlarger.services.limits_service import LimitsService

logger = logging.getLogger(__name__)

# Допустимые переходы провенанса. Загрузка с диска выигрывает всегда,
# событие хоста никогда не вытесняет загруженное изображение.
_ALLOWED: Dict[Provenance, FrozenSet[Provenance]] = {
    Provenance.UNKNOWN: frozenset({Provenance.UNKNOWN, Provenance.UPLOADED, Provenance.HOST_SELECTED}),
    Provenance.UPLOADED: frozenset({Provenance.UNKNOWN, Provenance.UPLOADED}),
    Provenance.HOST_SELECTED: frozenset({Provenance.UNKNOWN, Provenance.UPLOADED, Provenance.HOST_SELECTED}),
}

Listener = Callable[[SessionSnapshot], None]


@dataclass(frozen=True)
class SelectionTicket:
    """Квитанция на загрузку изображения выбранного элемента."""
    revision: int
    ref: str


class SessionController:
    def __init__(self, limits: LimitsService) -> None:
        self._limits = limits
        self._state = SessionSnapshot()
        self._listeners: List[Listener] = []
        self._next_job_id = 0

    @property
    def snapshot(self) -> SessionSnapshot:
        """Самый свежий снимок. Асинхронные продолжения читают его в момент выполнения."""
        return self._state

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # ---- Источники изображения ----
    def upload(self, asset: ImageAsset) -> None:
        """Локальная загрузка: всегда заменяет активное изображение."""
        state = self._state
        if state.job.is_running:
            logger.info("Upload supersedes running job %s", state.job.job_id)
        self._transition(
            Provenance.UPLOADED,
            asset=asset,
            source_ref=None,
            draft=None,
            factor=self._default_factor(asset),
            job=ProcessingJob(),
            acceptance=None,
            acceptance_error=None,
            acceptance_dismissed=False,
            revision=state.revision + 1,
        )

    def host_selection_changed(self, ref: Optional[str], draft: Optional[ContentDraft] = None) -> Optional[SelectionTicket]:
        """Событие смены выделения на хосте.

        Returns:
            `SelectionTicket`, если выделение принято и изображение нужно загрузить;
            иначе None.
        """
        state = self._state
        self._state = replace(state, live_selection_ref=ref)

        if ref is None:
            if (
                state.provenance is Provenance.HOST_SELECTED
                and not state.job.is_running
                and not state.job.is_succeeded
            ):
                logger.info("Host selection cleared, resetting session")
                self.reset()
            else:
                logger.debug("Ignoring deselection (provenance=%s, job=%s)", state.provenance.value, state.job.status.value)
                self._notify()
            return None

        if not self._host_may_replace(state):
            logger.info(
                "Ignoring host selection %s (provenance=%s, job=%s)",
                ref, state.provenance.value, state.job.status.value,
            )
            self._notify()
            return None

        revision = state.revision + 1
        self._transition(
            Provenance.HOST_SELECTED,
            asset=None,
            source_ref=ref,
            draft=draft,
            job=ProcessingJob(),
            acceptance=None,
            acceptance_error=None,
            acceptance_dismissed=False,
            revision=revision,
        )
        return SelectionTicket(revision=revision, ref=ref)

    def host_image_loaded(self, ticket: SelectionTicket, asset: ImageAsset) -> bool:
        """Применяет загруженное изображение хоста, если квитанция ещё актуальна."""
        if not self._ticket_is_current(ticket):
            logger.info("Dropping stale host image for %s", ticket.ref)
            return False
        self._update(asset=asset, factor=self._default_factor(asset))
        return True

    def host_image_failed(self, ticket: SelectionTicket) -> bool:
        """Сбрасывает сеанс, если не удалось получить изображение актуального выделения."""
        if not self._ticket_is_current(ticket):
            return False
        self.reset()
        return True

    def reset(self) -> None:
        """Полный сброс: изображение, параметры, задание, результат, провенанс."""
        state = self._state
        self._transition(
            Provenance.UNKNOWN,
            asset=None,
            source_ref=None,
            draft=None,
            params=ReflectionParameters(),
            factor=SessionSnapshot().factor,
            job=ProcessingJob(),
            acceptance=None,
            acceptance_error=None,
            acceptance_dismissed=False,
            revision=state.revision + 1,
        )

    # ---- Параметры ----
    def set_direction(self, direction: Direction) -> None:
        self._update(params=replace(self._state.params, direction=Direction(direction)))

    def set_offset(self, value: float) -> None:
        self._update(params=replace(self._state.params, offset_stop=clamp_unit(value)))

    def set_opacity(self, value: float) -> None:
        self._update(params=replace(self._state.params, opacity=clamp_unit(value)))

    def set_factor(self, factor: int) -> bool:
        asset = self._state.asset
        if factor not in self._limits.factors:
            logger.debug("Refusing unknown factor %s", factor)
            return False
        if asset is not None and not self._limits.is_factor_enabled(asset.pixel_count, factor):
            logger.debug("Refusing disabled factor %s", factor)
            return False
        self._update(factor=int(factor))
        return True

    # ---- Задание (пишет только EnlargementWorkflow) ----
    def begin_job(self) -> int:
        self._next_job_id += 1
        self._update(
            job=ProcessingJob.running(self._next_job_id),
            acceptance=None,
            acceptance_error=None,
            acceptance_dismissed=False,
        )
        return self._next_job_id

    def apply_job(self, job: ProcessingJob) -> bool:
        """Записывает новое состояние задания, если токен совпадает с текущим."""
        current = self._state.job
        if current.job_id != job.job_id or not current.is_running:
            return False
        self._update(job=job)
        return True

    def dismiss_processing_error(self) -> None:
        if self._state.job.is_failed:
            self._update(job=ProcessingJob())

    # ---- Принятие (пишет только AcceptanceController) ----
    def record_acceptance(self, job_id: int, result: AcceptanceResult) -> bool:
        job = self._state.job
        if job.job_id != job_id or not job.is_succeeded or self._state.acceptance is not None:
            return False
        self._update(acceptance=result, acceptance_error=None, acceptance_dismissed=False)
        return True

    def record_acceptance_error(self, job_id: int, message: str) -> bool:
        if self._state.job.job_id != job_id:
            return False
        self._update(acceptance_error=message)
        return True

    def dismiss_acceptance_notice(self) -> None:
        # acceptance stays set: it is the accept-once guard
        self._update(acceptance_error=None, acceptance_dismissed=self._state.acceptance is not None)

    # ---- Internals ----
    def _host_may_replace(self, state: SessionSnapshot) -> bool:
        return (
            state.provenance is not Provenance.UPLOADED
            and not state.job.is_running
            and not state.job.is_succeeded
        )

    def _ticket_is_current(self, ticket: SelectionTicket) -> bool:
        state = self._state
        return (
            state.revision == ticket.revision
            and state.provenance is Provenance.HOST_SELECTED
            and state.source_ref == ticket.ref
            and not state.job.is_running
            and not state.job.is_succeeded
        )

    def _default_factor(self, asset: ImageAsset) -> int:
        enabled = [o.factor for o in self._limits.enlarge_options(asset.pixel_count) if not o.disabled]
        return enabled[0] if enabled else self._limits.factors[0]

    def _transition(self, target: Provenance, **changes: object) -> None:
        current = self._state.provenance
        if target not in _ALLOWED[current]:
            raise InvalidTransition(current.value, target.value)
        if current is not target:
            logger.info("Provenance %s -> %s", current.value, target.value)
        self._update(provenance=target, **changes)

    def _update(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self._state)
