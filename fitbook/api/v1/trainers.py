from fastapi import APIRouter, Depends, HTTPException, Query

from fitbook.api.errors import ERROR_RESPONSES, to_http_exception
from fitbook.api.v1.schemas import AvailabilitySchema, ClassSchema, TrainerSchema
from fitbook.application.exceptions import BookingError
from fitbook.application.ports.booking_repository import BookingRepositoryPort
from fitbook.application.use_cases.availability import AvailabilityUseCase, DayAvailability
from fitbook.application.utils.time_parser import parse_booking_date
from fitbook.domain.entities.schedule import Weekday
from fitbook.wiring.dependencies import get_availability_use_case, get_repository

router = APIRouter()


@router.get("/trainers", response_model=list[TrainerSchema])
def list_trainers(repository: BookingRepositoryPort = Depends(get_repository)):
    trainers = repository.list_trainers()
    result = []
    for trainer in trainers:
        fitness_class = repository.get_class(trainer.class_id) if trainer.class_id is not None else None
        result.append(
            TrainerSchema(
                id=trainer.id,
                name=trainer.name,
                class_name=trainer.class_name,
                class_id=trainer.class_id,
                price=fitness_class.price if fitness_class else None,
                schedule={
                    weekday.value: [r.label() for r in trainer.schedule.ranges_for(weekday)]
                    for weekday in Weekday
                    if trainer.schedule.ranges_for(weekday)
                },
            )
        )
    return result


@router.get("/classes/{class_id}", response_model=ClassSchema, responses=ERROR_RESPONSES)
def get_class(class_id: int, repository: BookingRepositoryPort = Depends(get_repository)):
    fitness_class = repository.get_class(class_id)
    if fitness_class is None:
        raise HTTPException(status_code=404, detail={"error_code": "NOT_FOUND", "message": "Not found"})
    return ClassSchema(
        id=fitness_class.id,
        name=fitness_class.name,
        price=fitness_class.price,
        about=fitness_class.about,
        syllabus=list(fitness_class.syllabus),
        level=fitness_class.level,
        length=fitness_class.length,
        group_size=fitness_class.group_size,
    )


@router.get("/trainers/{trainer_id}/slots", response_model=AvailabilitySchema, responses=ERROR_RESPONSES)
def trainer_slots(
    trainer_id: int,
    day: str | None = Query(None, alias="date"),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        availability = uc.slots_for(trainer_id, parse_booking_date(day))
    except BookingError as e:
        raise to_http_exception(e)
    return _to_schema(trainer_id, availability, uc)


@router.get("/trainers/{trainer_id}/next-available", response_model=AvailabilitySchema, responses=ERROR_RESPONSES)
def next_available(
    trainer_id: int,
    from_date: str | None = Query(None, alias="from"),
    uc: AvailabilityUseCase = Depends(get_availability_use_case),
):
    try:
        start = parse_booking_date(from_date) if from_date else None
        availability = uc.next_available(trainer_id, start)
    except BookingError as e:
        raise to_http_exception(e)
    return _to_schema(trainer_id, availability, uc)


def _to_schema(trainer_id: int, availability: DayAvailability, uc: AvailabilityUseCase) -> AvailabilitySchema:
    window_start, window_end = uc.window()
    return AvailabilitySchema(
        trainer_id=trainer_id,
        date=availability.day,
        weekday=availability.weekday.value,
        slots=[r.label() for r in availability.slots],
        bookable=availability.bookable,
        window_start=window_start,
        window_end=window_end,
    )
