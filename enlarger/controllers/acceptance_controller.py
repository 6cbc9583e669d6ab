"""Принятие результата: замена исходного элемента или добавление нового."""
from __future__ import annotations

import logging
from functools import partial
from typing import Optional, Set

from enlarger.controllers.session_controller import SessionController
from enlarger.errors import EnlargerError
from enlarger.models.image_model import ImageAsset
from enlarger.models.session_model import AcceptanceResult, Provenance, SessionSnapshot
from enlarger.services.host_service import AI_DISCLOSURE, AssetUpload, ContentDraft, DesignHost
from enlarger.utils.scheduler import Scheduler

logger = logging.getLogger(__name__)


class AcceptanceController:
    def __init__(self, session: SessionController, host: DesignHost, scheduler: Scheduler) -> None:
        self._session = session
        self._host = host
        self._scheduler = scheduler
        self._in_flight: Set[int] = set()

    def will_replace(self, state: Optional[SessionSnapshot] = None) -> bool:
        """Заменять ли исходный элемент: он выбран на хосте и всё ещё выделен."""
        state = state or self._session.snapshot
        return (
            state.provenance is Provenance.HOST_SELECTED
            and state.draft is not None
            and bool(state.draft.contents)
            and state.source_ref is not None
            and state.live_selection_ref == state.source_ref
        )

    def accept_label(self, state: Optional[SessionSnapshot] = None) -> str:
        return "Replace" if self.will_replace(state) else "Add to design"

    def accept(self) -> bool:
        """Фиксирует результат успешного задания в документе хоста.

        Решение «заменить/добавить» принимается один раз по свежему снимку;
        запись выполняется в фоне.

        Returns:
            False, если принимать нечего или результат уже принят.
        """
        state = self._session.snapshot
        job = state.job
        if not job.is_succeeded or job.result is None:
            return False
        if state.acceptance is not None or job.job_id in self._in_flight:
            logger.debug("Job %s already accepted", job.job_id)
            return False

        replace = self.will_replace(state)
        result = job.result
        draft = state.draft
        parent_ref = state.source_ref
        job_id = job.job_id
        self._in_flight.add(job_id)

        if replace:
            work = partial(self._replace, result, draft, parent_ref)
        else:
            work = partial(self._add, result)

        self._scheduler.run_in_background(
            work,
            on_success=lambda outcome: self._on_committed(job_id, outcome),
            on_error=lambda exc: self._on_failed(job_id, exc),
        )
        return True

    # ---- Internals ----
    def _replace(self, result: ImageAsset, draft: ContentDraft, parent_ref: str) -> AcceptanceResult:
        url = result.to_data_url()
        new_ref = self._host.upload_asset(AssetUpload(
            url=url,
            thumbnail_url=url,
            mime_type="image/png",
            parent_ref=parent_ref,
            ai_disclosure=AI_DISCLOSURE,
        ))
        draft.contents[0].ref = new_ref
        draft.save()
        logger.info("Replaced %s with %s", parent_ref, new_ref)
        return AcceptanceResult.REPLACED

    def _add(self, result: ImageAsset) -> AcceptanceResult:
        self._host.add_element(result.to_data_url())
        logger.info("Added enlarged image to design")
        return AcceptanceResult.ADDED

    def _on_committed(self, job_id: int, outcome: AcceptanceResult) -> None:
        self._in_flight.discard(job_id)
        if not self._session.record_acceptance(job_id, outcome):
            logger.info("Commit of job %s finished after reset, result not recorded", job_id)

    def _on_failed(self, job_id: int, exc: BaseException) -> None:
        self._in_flight.discard(job_id)
        if isinstance(exc, EnlargerError):
            message = exc.message
        else:
            logger.error("Unexpected failure while committing job %s", job_id, exc_info=exc)
            message = str(exc)
        self._session.record_acceptance_error(job_id, f"Failed to add image to design: {message}")
