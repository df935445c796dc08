from pydantic import BaseModel, Field, model_validator
from datetime import datetime, date
from decimal import Decimal
from typing import List, Optional
from enum import Enum


class SelectedSlot(BaseModel):
    """
    Slot elegido en el calendario.

    Puede venir con el id de la availability, o con la sede y la hora local
    (Sydney) en formato "HH:MM" para buscar la ventana correspondiente.
    """

    availability_id: Optional[int] = None
    location_id: Optional[int] = None
    time24: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    display_time: Optional[str] = None  # e.g. "9:00 AM"

    @model_validator(mode="after")
    def check_reference(self):
        if self.availability_id is None and (
            self.location_id is None or self.time24 is None
        ):
            raise ValueError(
                "A slot needs either availability_id or location_id and time24"
            )
        return self


class BookingSubmission(BaseModel):
    slots: List[SelectedSlot] = Field(..., min_length=1)
    booking_date: Optional[date] = None  # Fecha local (Sydney); default: hoy


class BookingIntent(BaseModel):
    location_id: int
    start_time: datetime
    end_time: datetime
    service_name: Optional[str] = None
    cost: Decimal = Decimal("0.00")
    matching_availability_ids: List[int] = []
    current_count: int = 0
    max_capacity: int = 10

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600


class BookingBase(BaseModel):
    user_id: int
    location_id: int
    start_time: datetime
    end_time: datetime
    credit_cost: Decimal
    service_name: Optional[str] = None
    coach_id: Optional[int] = None


class BookingInDB(BookingBase):
    id: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Booking(BookingInDB):
    pass


class BookingSummary(BaseModel):
    count: int
    duration_hours: float
    total_cost: Decimal


class SubmissionStatus(str, Enum):
    CONFIRMED = "confirmed"
    PAYMENT_REQUIRED = "payment_required"


class BookingSubmissionResult(BaseModel):
    status: SubmissionStatus
    title: str
    message: str
    bookings: List[Booking] = []
    summary: Optional[BookingSummary] = None
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None
