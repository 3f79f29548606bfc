from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from fitbook.domain.entities.booking import BookingFilter, BookingStatus


class ClassSchema(BaseModel):
    id: int
    name: str
    price: int
    about: str
    syllabus: list[str] = Field(default_factory=list)
    level: str | None = None
    length: str | None = None
    group_size: str | None = None


class TrainerSchema(BaseModel):
    id: int
    name: str
    class_name: str
    class_id: int | None = None
    price: int | None = None
    schedule: dict[str, list[str]] = Field(default_factory=dict)


class AvailabilitySchema(BaseModel):
    trainer_id: int
    date: date
    weekday: str
    slots: list[str]
    bookable: bool
    window_start: date
    window_end: date


class BookingCreateSchema(BaseModel):
    trainer_id: int
    class_id: int
    date: date
    time_slot: str = Field(min_length=1)
    price: int | None = Field(default=None, ge=0)
    name: str | None = None
    email: str | None = Field(default=None, max_length=320)


class BookingCreatedSchema(BaseModel):
    id: int
    booked_time: datetime
    status: BookingStatus


class StatusUpdateSchema(BaseModel):
    # Validated by the use case so unknown values surface as invalid input.
    status: str


class StatusChangeSchema(BaseModel):
    id: int
    previous: BookingStatus
    status: BookingStatus
    rows_affected: int


class BookingSchema(BaseModel):
    id: int
    user_id: str
    trainer_id: int
    class_id: int
    trainer: str | None = None
    class_name: str | None = None
    name: str | None = None
    email: str | None = None
    price: int
    created_at: datetime
    booked_time: datetime
    status: BookingStatus
    effective_status: BookingStatus


class BookingListSchema(BaseModel):
    filter: BookingFilter
    items: list[BookingSchema]


class ErrorDetailSchema(BaseModel):
    error_code: str
    message: str
    existing: dict[str, Any] | None = None


class ErrorSchema(BaseModel):
    detail: ErrorDetailSchema
