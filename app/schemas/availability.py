from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional


class AvailabilityBase(BaseModel):
    location_id: int
    start_time: datetime
    end_time: datetime
    service_name: Optional[str] = None
    max_capacity: int = Field(10, ge=1)

    @model_validator(mode="after")
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class AvailabilityCreate(AvailabilityBase):
    pass


class Availability(AvailabilityBase):
    id: int
    is_booked: bool = False
    created_at: datetime

    class Config:
        from_attributes = True
