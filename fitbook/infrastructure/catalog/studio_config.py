from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from fitbook.application.exceptions import ConfigurationError
from fitbook.domain.entities.schedule import WeeklySchedule
from fitbook.domain.entities.trainer import FitnessClass, Trainer

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "data" / "studio.json"

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StudioConfig:
    classes: list[FitnessClass]
    trainers: list[Trainer]


def load_studio_config(path: str | Path | None = None) -> StudioConfig:
    """Load classes and trainer schedules; malformed data raises ConfigurationError."""
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError(f"Cannot read studio config {config_path}: {e}") from e

    config = parse_studio_config(data)
    logger.info(
        "Studio config loaded",
        extra={"path": str(config_path), "trainers": len(config.trainers), "classes": len(config.classes)},
    )
    return config


def parse_studio_config(data: dict[str, Any]) -> StudioConfig:
    classes = [_parse_class(item) for item in data.get("classes", [])]
    class_ids = {c.name: c.id for c in classes}
    trainers = [_parse_trainer(item, class_ids) for item in data.get("trainers", [])]

    names = [t.name for t in trainers]
    if len(names) != len(set(names)):
        raise ConfigurationError("Trainer names must be unique")
    return StudioConfig(classes=classes, trainers=trainers)


def parse_schedule(raw: Any) -> WeeklySchedule:
    # Either {"Mon": ["09:00–11:00"]} or ["Mon 09:00–11:00", ...]
    if isinstance(raw, dict):
        return WeeklySchedule.from_mapping(raw)
    if isinstance(raw, list):
        return WeeklySchedule.from_entries(raw)
    raise ConfigurationError(f"Unsupported schedule format: {raw!r}")


def _parse_class(item: dict[str, Any]) -> FitnessClass:
    try:
        return FitnessClass(
            id=int(item["id"]),
            name=str(item["name"]),
            price=int(item["price"]),
            about=item.get("about", ""),
            syllabus=tuple(item.get("syllabus", ())),
            level=item.get("level"),
            length=item.get("length"),
            group_size=item.get("group_size"),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid class entry {item!r}: {e}") from e


def _parse_trainer(item: dict[str, Any], class_ids: dict[str, int]) -> Trainer:
    try:
        trainer_id = int(item["id"])
        name = str(item["name"])
        class_name = str(item["class_name"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid trainer entry {item!r}: {e}") from e

    if class_name not in class_ids:
        raise ConfigurationError(f"Trainer {name!r} references unknown class {class_name!r}")

    return Trainer(
        id=trainer_id,
        name=name,
        class_name=class_name,
        schedule=parse_schedule(item.get("schedule", {})),
        class_id=class_ids[class_name],
    )
