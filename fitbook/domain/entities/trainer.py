from __future__ import annotations

from dataclasses import dataclass, field

from fitbook.domain.entities.schedule import WeeklySchedule


@dataclass(frozen=True)
class FitnessClass:
    id: int
    name: str
    price: int
    about: str = ""
    syllabus: tuple[str, ...] = ()
    level: str | None = None
    length: str | None = None
    group_size: str | None = None


@dataclass(frozen=True)
class Trainer:
    id: int
    name: str
    class_name: str
    schedule: WeeklySchedule = field(default_factory=WeeklySchedule)
    class_id: int | None = None
