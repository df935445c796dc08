from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
from enum import Enum

from app.schemas.booking import Booking, BookingSummary


class PaymentType(str, Enum):
    TOPUP = "topup"
    BOOKING = "booking"


class PaymentVerification(BaseModel):
    success: bool
    type: Optional[PaymentType] = None
    amount: Optional[Decimal] = None
    error: Optional[str] = None


class CheckoutSession(BaseModel):
    session_id: str
    url: Optional[str] = None


class PaymentMethod(str, Enum):
    WALLET = "wallet"
    CHECKOUT = "checkout"


class DispatchResult(BaseModel):
    method: PaymentMethod
    total_cost: Decimal
    session_id: Optional[str] = None
    checkout_url: Optional[str] = None


class WalletBalance(BaseModel):
    user_id: int
    balance: Decimal


class TopUpRequest(BaseModel):
    amount: Decimal = Field(..., gt=0, le=10000)


class ResumeRequest(BaseModel):
    session_id: Optional[str] = None
    canceled: bool = False


class ResumptionStatus(str, Enum):
    BOOKING_CONFIRMED = "booking_confirmed"
    TOPUP = "topup"
    ALREADY_PROCESSED = "already_processed"


class ResumptionResult(BaseModel):
    status: ResumptionStatus
    title: str
    message: str
    bookings: List[Booking] = []
    summary: Optional[BookingSummary] = None
    new_balance: Optional[Decimal] = None
