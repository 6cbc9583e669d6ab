"""Интерфейс хоста (документа дизайна) и его локальная реализация.

Принципы:
- DIP: контроллеры зависят от протокола `DesignHost`, а не от конкретного хоста.
- SRP: `LocalDesignHost` только хранит элементы и ассеты в каталоге.
"""
from __future__ import annotations

import base64
import binascii
import json
import logging
import mimetypes
import threading
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Tuple

from enlarger.errors import HostError

logger = logging.getLogger(__name__)

AI_DISCLOSURE = "app_generated"


@dataclass
class ImageContent:
    """Элемент дизайна с изображением; `ref` можно заменить перед `save()`."""
    element_id: str
    ref: str


@dataclass
class ContentDraft:
    """Черновик содержимого выделения: изменения ссылок сохраняются через `save()`."""
    contents: List[ImageContent]
    _saver: Callable[[List[ImageContent]], None] = field(repr=False)

    def save(self) -> None:
        self._saver(list(self.contents))


@dataclass(frozen=True)
class SelectionEvent:
    draft: ContentDraft

    @property
    def ref(self) -> Optional[str]:
        return self.draft.contents[0].ref if self.draft.contents else None


@dataclass(frozen=True)
class AssetUpload:
    url: str
    thumbnail_url: str
    mime_type: str
    parent_ref: Optional[str]
    ai_disclosure: str = AI_DISCLOSURE


class DesignHost(Protocol):
    def subscribe_selection(self, callback: Callable[[SelectionEvent], None]) -> Callable[[], None]:
        ...

    def read_image(self, ref: str) -> Tuple[bytes, str]:
        ...

    def upload_asset(self, upload: AssetUpload) -> str:
        ...

    def add_element(self, data_url: str) -> str:
        ...


def decode_data_url(url: str) -> Tuple[bytes, str]:
    """Разбирает `data:<mime>;base64,<payload>`.

    Raises:
        HostError: если URL не является base64 data URL.
    """
    if not url.startswith("data:") or "," not in url:
        raise HostError("Only data URLs are supported", details={"url": url[:32]})
    header, payload = url[5:].split(",", 1)
    if not header.endswith(";base64"):
        raise HostError("Data URL must be base64 encoded", details={"header": header})
    try:
        return base64.b64decode(payload, validate=True), header[: -len(";base64")] or "image/png"
    except binascii.Error as exc:
        raise HostError("Malformed data URL payload") from exc


class LocalDesignHost:
    """Документ дизайна в каталоге: `design.json` и файлы ассетов в `assets/`.

    Выделение меняется вызовом `select()`; подписчики получают событие
    синхронно, в потоке вызывающего (UI).
    """
    def __init__(self, root: Path) -> None:
        self.root = Path(root)
        self._assets_dir = self.root / "assets"
        self._doc_path = self.root / "design.json"
        self._lock = threading.Lock()
        self._listeners: List[Callable[[SelectionEvent], None]] = []
        self._selected: Optional[str] = None

        self._assets_dir.mkdir(parents=True, exist_ok=True)
        if self._doc_path.exists():
            self._doc = json.loads(self._doc_path.read_text(encoding="utf-8"))
        else:
            self._doc = {"elements": [], "assets": {}}
            self._write()

    # ---- DesignHost ----
    def subscribe_selection(self, callback: Callable[[SelectionEvent], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def _unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return _unsubscribe

    def read_image(self, ref: str) -> Tuple[bytes, str]:
        with self._lock:
            meta = self._doc["assets"].get(ref)
        if meta is None:
            raise HostError(f"Unknown asset: {ref}", details={"ref": ref})
        path = self._assets_dir / meta["file"]
        try:
            return path.read_bytes(), meta["mime_type"]
        except OSError as exc:
            raise HostError(f"Asset file is missing: {path.name}", details={"ref": ref}) from exc

    def upload_asset(self, upload: AssetUpload) -> str:
        data, _mime = decode_data_url(upload.url)
        ref = self._store_asset(data, upload.mime_type, parent_ref=upload.parent_ref, ai_disclosure=upload.ai_disclosure)
        logger.info("Uploaded asset %s (parent %s)", ref, upload.parent_ref)
        return ref

    def add_element(self, data_url: str) -> str:
        data, mime_type = decode_data_url(data_url)
        ref = self._store_asset(data, mime_type, ai_disclosure=AI_DISCLOSURE)
        return self._append_element(ref)

    # ---- Локальные операции ----
    def import_image(self, path: Path) -> str:
        """Добавляет файл с диска как новый элемент; возвращает id элемента."""
        path = Path(path)
        mime_type = mimetypes.guess_type(path.name)[0] or "image/png"
        ref = self._store_asset(path.read_bytes(), mime_type)
        return self._append_element(ref)

    def elements(self) -> List[ImageContent]:
        with self._lock:
            return [ImageContent(element_id=e["id"], ref=e["ref"]) for e in self._doc["elements"]]

    @property
    def selected_element(self) -> Optional[str]:
        return self._selected

    def select(self, element_id: Optional[str]) -> None:
        """Меняет выделение и оповещает подписчиков (None — снять выделение)."""
        contents = [c for c in self.elements() if c.element_id == element_id] if element_id else []
        if element_id and not contents:
            raise HostError(f"Unknown element: {element_id}", details={"element_id": element_id})
        self._selected = element_id
        event = SelectionEvent(draft=ContentDraft(contents=contents, _saver=self._save_contents))
        for listener in list(self._listeners):
            listener(event)

    # ---- Internals ----
    def _store_asset(self, data: bytes, mime_type: str, parent_ref: Optional[str] = None,
                     ai_disclosure: Optional[str] = None) -> str:
        ref = uuid.uuid4().hex
        ext = mimetypes.guess_extension(mime_type) or ".bin"
        file_name = f"{ref}{ext}"
        (self._assets_dir / file_name).write_bytes(data)
        meta: Dict[str, Optional[str]] = {
            "file": file_name,
            "mime_type": mime_type,
            "parent_ref": parent_ref,
            "ai_disclosure": ai_disclosure,
        }
        with self._lock:
            self._doc["assets"][ref] = meta
            self._write()
        return ref

    def _append_element(self, ref: str) -> str:
        element_id = uuid.uuid4().hex[:12]
        with self._lock:
            self._doc["elements"].append({"id": element_id, "ref": ref})
            self._write()
        logger.info("Added element %s -> %s", element_id, ref)
        return element_id

    def _save_contents(self, contents: List[ImageContent]) -> None:
        refs = {c.element_id: c.ref for c in contents}
        with self._lock:
            for element in self._doc["elements"]:
                if element["id"] in refs:
                    element["ref"] = refs[element["id"]]
            self._write()
        logger.info("Saved draft for %d element(s)", len(refs))

    def _write(self) -> None:
        tmp = self._doc_path.with_suffix(".json.tmp")
        tmp.write_text(json.dumps(self._doc, indent=2), encoding="utf-8")
        tmp.replace(self._doc_path)
