"""Загрузка и декодирование изображений, упаковка в `ImageAsset`.

Принципы:
- SRP: класс отвечает только за декодирование/кодирование и базовые свойства.
- OCP: источники (диск, байты хоста, ответ сервиса) сводятся к `decode_bytes`.
"""
from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

from enlarger.errors import DecodeError
from enlarger.models.image_model import ImageAsset

logger = logging.getLogger(__name__)

SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp")


class ImageService:
    def load_image(self, file_path: str | Path) -> ImageAsset:
        """Загружает изображение с диска.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageAsset` с растром в режиме RGBA и исходными байтами файла.

        Raises:
            FileNotFoundError: если путь не существует или не указывает на файл.
            DecodeError: если файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return self.decode_bytes(path.read_bytes(), name=path.name)

    def decode_bytes(self, data: bytes, mime_type: Optional[str] = None, name: str = "image.png") -> ImageAsset:
        """Декодирует байты в `ImageAsset`.

        Если `mime_type` не передан, он берётся из формата, определённого PIL.

        Raises:
            DecodeError: если байты не являются изображением.
        """
        try:
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                detected = Image.MIME.get(img.format or "")
                pil_image = img.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            logger.warning("Failed to decode %s: %s", name, exc)
            raise DecodeError(name, str(exc)) from exc

        width, height = pil_image.size
        return ImageAsset(
            data=data,
            pil_image=pil_image,
            width=width,
            height=height,
            mime_type=mime_type or detected or "image/png",
            name=name,
        )

    def encode_png(self, image: Image.Image, name: str = "image.png", source: Optional[ImageAsset] = None) -> ImageAsset:
        """Кодирует растр в PNG и возвращает новый ассет."""
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        buffer = io.BytesIO()
        rgba.save(buffer, format="PNG")
        width, height = rgba.size
        return ImageAsset(
            data=buffer.getvalue(),
            pil_image=rgba,
            width=width,
            height=height,
            mime_type="image/png",
            name=name,
            source=source,
        )
