"""Модели состояния сеанса: провенанс, задание увеличения, результат принятия.

Провенанс и задание хранятся в одном неизменяемом снимке `SessionSnapshot`,
чтобы правило арбитража проверялось по одному значению, а не по набору флагов.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Optional

from enlarger.models.image_model import ImageAsset
from enlarger.models.reflection import ReflectionParameters

if TYPE_CHECKING:
    from enlarger.services.host_service import ContentDraft


class Provenance(str, Enum):
    UNKNOWN = "unknown"
    UPLOADED = "uploaded"
    HOST_SELECTED = "host_selected"


class ErrorKind(str, Enum):
    CONNECTION = "connection_error"
    SERVER = "server_error"
    TIMEOUT = "timeout_error"
    PAYLOAD_TOO_LARGE = "payload_too_large"
    UNKNOWN_HTTP = "unknown_http_error"
    DECODE = "decode_error"


class JobStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class AcceptanceResult(str, Enum):
    ADDED = "added"
    REPLACED = "replaced"


@dataclass(frozen=True)
class ProcessingJob:
    """Один прогон увеличения: от отправки до успеха или ошибки.

    `job_id` — токен, по которому фоновые продолжения узнают, что их задание
    всё ещё актуально.
    """
    status: JobStatus = JobStatus.IDLE
    progress: int = 0
    result: Optional[ImageAsset] = field(default=None, repr=False)
    error: Optional[ErrorKind] = None
    message: Optional[str] = None
    job_id: int = 0

    @property
    def is_running(self) -> bool:
        return self.status is JobStatus.RUNNING

    @property
    def is_succeeded(self) -> bool:
        return self.status is JobStatus.SUCCEEDED

    @property
    def is_failed(self) -> bool:
        return self.status is JobStatus.FAILED

    @classmethod
    def running(cls, job_id: int) -> "ProcessingJob":
        return cls(status=JobStatus.RUNNING, progress=0, job_id=job_id)

    def with_progress(self, progress: int) -> "ProcessingJob":
        # progress never goes backwards
        return replace(self, progress=max(self.progress, min(100, int(progress))))

    def succeeded(self, result: ImageAsset) -> "ProcessingJob":
        return replace(self, status=JobStatus.SUCCEEDED, progress=100, result=result)

    def failed(self, error: ErrorKind, message: str) -> "ProcessingJob":
        return replace(self, status=JobStatus.FAILED, progress=100, error=error, message=message)


@dataclass(frozen=True)
class SessionSnapshot:
    """Снимок всего состояния сеанса.

    Fields:
        provenance: Откуда взято активное изображение.
        asset: Активный исходник (None, пока изображение выбранного элемента загружается).
        source_ref: Ссылка на ассет хоста, если провенанс `HOST_SELECTED`.
        draft: Черновик выделения хоста, в котором будет заменена ссылка.
        live_selection_ref: Последнее известное выделение на хосте (обновляется всегда).
        params: Параметры эффекта отражения.
        factor: Выбранный коэффициент увеличения.
        job: Текущее задание увеличения.
        acceptance: Результат принятия, если он уже получен.
        acceptance_error: Сообщение об ошибке принятия.
        acceptance_dismissed: Пользователь закрыл уведомление об успешном принятии.
        revision: Растёт при каждой смене источника и сбросе.
    """
    provenance: Provenance = Provenance.UNKNOWN
    asset: Optional[ImageAsset] = field(default=None, repr=False)
    source_ref: Optional[str] = None
    draft: Optional["ContentDraft"] = field(default=None, repr=False)
    live_selection_ref: Optional[str] = None
    params: ReflectionParameters = ReflectionParameters()
    factor: int = 2
    job: ProcessingJob = ProcessingJob()
    acceptance: Optional[AcceptanceResult] = None
    acceptance_error: Optional[str] = None
    acceptance_dismissed: bool = False
    revision: int = 0
