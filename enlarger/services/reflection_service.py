from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from PIL import Image

from enlarger.config import SubmitSource
from enlarger.models.image_model import ImageAsset
from enlarger.models.reflection import Direction, ReflectionParameters
from enlarger.services.image_service import ImageService


@dataclass(frozen=True)
class FitRect:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class CompositeResult:
    asset: ImageAsset
    rect: FitRect


class ReflectionService:
    def __init__(self, image_service: Optional[ImageService] = None, canvas_size: Tuple[int, int] = (480, 360)) -> None:
        self._image_service = image_service or ImageService()
        self.canvas_size = canvas_size

    # ---------- Вспомогательные функции ----------
    def fit_rect(self, img_w: int, img_h: int, canvas_w: int, canvas_h: int) -> FitRect:
        """
        Вписывает изображение в канву с сохранением пропорций и центрированием
        (полосы сверху/снизу или слева/справа).
        """
        img_aspect = img_w / img_h
        canvas_aspect = canvas_w / canvas_h
        if img_aspect > canvas_aspect:
            draw_w = canvas_w
            draw_h = max(1, int(round(canvas_w / img_aspect)))
        else:
            draw_w = max(1, int(round(canvas_h * img_aspect)))
            draw_h = canvas_h
        return FitRect(x=(canvas_w - draw_w) // 2, y=(canvas_h - draw_h) // 2, width=draw_w, height=draw_h)

    def gradient_mask(self, direction: Direction, offset_stop: float, width: int, height: int) -> np.ndarray:
        """
        Линейный градиент альфы формы (height, width), float32 в [0..1].
        Стоп 0 — непрозрачный, стоп `offset_stop` — прозрачный, дальше держится 0.
        Значения берутся в центрах пикселей.
        """
        vertical = direction in (Direction.ABOVE, Direction.BELOW)
        n = height if vertical else width
        if offset_stop > 0.0:
            t = (np.arange(n, dtype=np.float32) + 0.5) / np.float32(n)
            ramp = np.clip(1.0 - t / np.float32(offset_stop), 0.0, 1.0).astype(np.float32)
        else:
            # нулевой отступ: остаётся одна линия у непрозрачного края
            ramp = np.zeros(n, dtype=np.float32)
            ramp[0] = 1.0
        if direction in (Direction.BELOW, Direction.RIGHT):
            ramp = ramp[::-1]
        if vertical:
            return np.broadcast_to(ramp[:, None], (height, width))
        return np.broadcast_to(ramp[None, :], (height, width))

    def apply_reflection(self, rgba: np.ndarray, params: ReflectionParameters) -> np.ndarray:
        """
        Маска destination-in: alpha_out = alpha_src * opacity * mask.
        Цвет не меняется там, где итоговая альфа > 0, иначе обнуляется.
        """
        h, w = rgba.shape[:2]
        mask = self.gradient_mask(params.direction, params.offset_stop, w, h)
        alpha = rgba[..., 3].astype(np.float32) * np.float32(params.opacity) * mask
        out = rgba.copy()
        out[..., 3] = np.clip(np.rint(alpha), 0, 255).astype(np.uint8)
        out[out[..., 3] == 0, :3] = 0
        return out

    # ---------- Превью ----------
    def composite(self, raster: ImageAsset, params: ReflectionParameters,
                  canvas_size: Optional[Tuple[int, int]] = None) -> CompositeResult:
        """
        Рендерит превью отражения на рабочей канве.
        Всегда исходит из корневого исходника, поэтому повторная композиция
        уже готового превью даёт тот же результат.
        """
        source = raster.origin
        canvas_w, canvas_h = canvas_size or self.canvas_size
        rect = self.fit_rect(source.width, source.height, canvas_w, canvas_h)

        canvas = Image.new("RGBA", (canvas_w, canvas_h), (0, 0, 0, 0))
        fitted = source.pil_image.resize((rect.width, rect.height), Image.Resampling.LANCZOS)
        canvas.paste(fitted, (rect.x, rect.y))

        out = self.apply_reflection(np.asarray(canvas, dtype=np.uint8), params)
        asset = self._image_service.encode_png(Image.fromarray(out), name="preview.png", source=source)
        return CompositeResult(asset=asset, rect=rect)

    # ---------- Отправка ----------
    def prepare_submission(self, asset: ImageAsset, params: ReflectionParameters,
                           mode: SubmitSource = SubmitSource.ORIGINAL) -> ImageAsset:
        """
        Растр в исходном разрешении для сервиса увеличения.
        ORIGINAL — без маски, REFLECTED — с градиентом и прозрачностью.
        """
        source = asset.origin
        if mode is SubmitSource.REFLECTED:
            out = self.apply_reflection(np.asarray(source.pil_image, dtype=np.uint8), params)
            image = Image.fromarray(out)
        else:
            image = source.pil_image
        return self._image_service.encode_png(image, name="processed-image.png", source=source)
