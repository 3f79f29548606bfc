from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from fitbook.api.errors import CONFLICT_RESPONSES, ERROR_RESPONSES, to_http_exception
from fitbook.api.v1.schemas import (
    BookingCreatedSchema,
    BookingCreateSchema,
    BookingListSchema,
    BookingSchema,
    StatusChangeSchema,
    StatusUpdateSchema,
)
from fitbook.application.exceptions import BookingError
from fitbook.application.use_cases.booking import BookingRequest, BookingUseCase
from fitbook.application.utils.time_parser import parse_filter
from fitbook.domain.entities.booking import Booking
from fitbook.wiring.dependencies import get_booking_use_case

router = APIRouter()


def require_user(x_user_id: str | None = Header(None)) -> str:
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail={"error_code": "UNAUTHENTICATED", "message": "need login"})
    return x_user_id.strip()


def is_admin(x_user_role: str | None = Header(None)) -> bool:
    return (x_user_role or "").strip().lower() == "admin"


@router.post("/bookings", response_model=BookingCreatedSchema, status_code=201, responses=CONFLICT_RESPONSES)
def create_booking(
    req: BookingCreateSchema,
    user_id: str = Depends(require_user),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        booking = uc.create_booking(
            BookingRequest(
                user_id=user_id,
                trainer_id=req.trainer_id,
                class_id=req.class_id,
                day=req.date,
                time_slot=req.time_slot,
                price=req.price,
                name=req.name,
                email=req.email,
            )
        )
    except BookingError as e:
        raise to_http_exception(e)
    return BookingCreatedSchema(id=booking.id, booked_time=booking.booked_time, status=booking.status)


@router.get("/my-bookings", response_model=BookingListSchema, responses=ERROR_RESPONSES)
def my_bookings(
    filter: str | None = Query(None),
    user_id: str = Depends(require_user),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    now = datetime.now(timezone.utc)
    try:
        kind = parse_filter(filter)
        rows = uc.list_user_bookings(user_id, kind, now=now)
    except BookingError as e:
        raise to_http_exception(e)
    return BookingListSchema(filter=kind, items=[_to_schema(b, now) for b in rows])


@router.get("/bookings", response_model=BookingListSchema, responses=ERROR_RESPONSES)
def all_bookings(
    filter: str | None = Query(None),
    admin: bool = Depends(is_admin),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    if not admin:
        raise HTTPException(status_code=403, detail={"error_code": "FORBIDDEN", "message": "admin only"})
    now = datetime.now(timezone.utc)
    try:
        kind = parse_filter(filter)
        rows = uc.list_all_bookings(kind, now=now)
    except BookingError as e:
        raise to_http_exception(e)
    return BookingListSchema(filter=kind, items=[_to_schema(b, now) for b in rows])


@router.patch("/bookings/{booking_id}/status", response_model=StatusChangeSchema, responses=ERROR_RESPONSES)
def update_status(
    booking_id: int,
    req: StatusUpdateSchema,
    user_id: str = Depends(require_user),
    admin: bool = Depends(is_admin),
    uc: BookingUseCase = Depends(get_booking_use_case),
):
    try:
        change = uc.change_status(booking_id, user_id, req.status, is_admin=admin)
    except BookingError as e:
        raise to_http_exception(e)
    return StatusChangeSchema(
        id=change.booking_id,
        previous=change.previous,
        status=change.status,
        rows_affected=change.rows_affected,
    )


@router.delete("/bookings/{booking_id}", status_code=204, responses=ERROR_RESPONSES)
def cancel_booking(
    booking_id: int,
    user_id: str = Depends(require_user),
    admin: bool = Depends(is_admin),
    uc: BookingUseCase = Depends(get_booking_use_case),
) -> Response:
    try:
        uc.cancel(booking_id, user_id, is_admin=admin)
    except BookingError as e:
        raise to_http_exception(e)
    return Response(status_code=204)


def _to_schema(booking: Booking, now: datetime) -> BookingSchema:
    return BookingSchema(
        id=booking.id,
        user_id=booking.user_id,
        trainer_id=booking.trainer_id,
        class_id=booking.class_id,
        trainer=booking.trainer_name,
        class_name=booking.class_name,
        name=booking.name,
        email=booking.email,
        price=booking.price,
        created_at=booking.created_at,
        booked_time=booking.booked_time,
        status=booking.status,
        effective_status=booking.effective_status(now),
    )
