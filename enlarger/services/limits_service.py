"""Ограничения на размер изображения перед отправкой в сервис увеличения."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from enlarger.errors import ValidationError
from enlarger.models.image_model import ImageAsset

TOO_LARGE_MESSAGE = (
    "This file is too large. Please choose one that's smaller than 2500px x 2500px or 5MB."
)


@dataclass(frozen=True)
class EnlargeOption:
    factor: int
    label: str
    disabled: bool


class LimitsService:
    def __init__(self, max_pixel_budget: int, max_file_bytes: int, factors: Sequence[int] = (2, 3, 4, 8)) -> None:
        self.max_pixel_budget = max_pixel_budget
        self.max_file_bytes = max_file_bytes
        self.factors = tuple(factors)

    def enlarge_options(self, pixel_count: int) -> List[EnlargeOption]:
        """Коэффициенты увеличения; недоступны те, что выходят за бюджет пикселей."""
        return [
            EnlargeOption(factor=f, label=f"{f}X", disabled=pixel_count * f > self.max_pixel_budget)
            for f in self.factors
        ]

    def is_factor_enabled(self, pixel_count: int, factor: int) -> bool:
        return factor in self.factors and pixel_count * factor <= self.max_pixel_budget

    def is_pixel_exceeded(self, pixel_count: int) -> bool:
        return all(option.disabled for option in self.enlarge_options(pixel_count))

    def is_file_exceeded(self, size_bytes: int) -> bool:
        return size_bytes > self.max_file_bytes

    def submit_blocker(self, asset: ImageAsset, factor: Optional[int] = None) -> Optional[ValidationError]:
        """Возвращает причину, по которой отправка запрещена, или None.

        Ошибка не бросается: UI отключает кнопку, а workflow отказывается стартовать.
        """
        pixels = asset.pixel_count
        too_large = self.is_pixel_exceeded(pixels) or self.is_file_exceeded(asset.size_bytes)
        if not too_large and factor is not None and not self.is_factor_enabled(pixels, factor):
            too_large = True
        if too_large:
            return ValidationError(TOO_LARGE_MESSAGE, pixel_count=pixels, size_bytes=asset.size_bytes)
        return None
