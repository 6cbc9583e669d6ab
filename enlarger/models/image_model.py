"""Модель изображения, которое проходит через сеанс, превью и сервис увеличения.

Принципы:
- SRP: хранит байты и растр вместе; декодирование и кодирование живут в `ImageService`.
- Неизменяемость (`frozen=True`): превью и результат увеличения ссылаются на исходник
  через `source`, а `origin` всегда возвращает корень этой цепочки.
- `to_data_url()` отдаёт байты в виде data URL для документа дизайна.
"""
from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageAsset:
    """Неизменяемое изображение: закодированные байты и декодированный растр.

    Fields:
        data: Закодированные байты (PNG/JPEG/WEBP).
        pil_image: Декодированное изображение PIL в режиме RGBA.
        width: Ширина, px.
        height: Высота, px.
        mime_type: MIME-тип байтов, например "image/png".
        name: Имя файла для отображения и multipart-запроса.
        source: Исходный ассет, если этот получен из него (превью).
    """
    data: bytes = field(repr=False)
    pil_image: Image.Image = field(repr=False, compare=False)
    width: int
    height: int
    mime_type: str
    name: str = "image.png"
    source: Optional["ImageAsset"] = field(default=None, repr=False, compare=False)

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def size_bytes(self) -> int:
        return len(self.data)

    @property
    def origin(self) -> "ImageAsset":
        """Корневой исходник цепочки производных ассетов."""
        asset = self
        while asset.source is not None:
            asset = asset.source
        return asset

    def to_data_url(self) -> str:
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"
