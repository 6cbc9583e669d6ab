"""Параметры эффекта отражения."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Direction(str, Enum):
    """Сторона, от которой идёт непрозрачная часть градиента.

    Значение совпадает с полем `reflection_actor` сервиса увеличения.
    """
    BELOW = "Below"
    ABOVE = "Above"
    LEFT = "Left"
    RIGHT = "Right"


def clamp_unit(value: float) -> float:
    """Ограничивает значение слайдера диапазоном [0, 1]."""
    value = float(value)
    if value != value:  # NaN
        return 0.0
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class ReflectionParameters:
    """Направление градиента, положение прозрачного стопа и общая непрозрачность.

    Raises:
        ValueError: если `direction` не член `Direction` или числа вне [0, 1].
    """
    direction: Direction = Direction.ABOVE
    offset_stop: float = 1.0
    opacity: float = 1.0

    def __post_init__(self) -> None:
        if not isinstance(self.direction, Direction):
            raise ValueError(f"Unknown reflection direction: {self.direction!r}")
        for name in ("offset_stop", "opacity"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be within [0, 1], got {value}")

    @classmethod
    def from_ui(cls, direction: Direction, offset_stop: float, opacity: float) -> "ReflectionParameters":
        """Создаёт параметры из значений UI, приводя числа к [0, 1]."""
        return cls(direction=direction, offset_stop=clamp_unit(offset_stop), opacity=clamp_unit(opacity))
