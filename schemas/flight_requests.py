"""schemas/flight_requests.py - Pydantic models for flight request submission and dashboard CRUD."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator


class RequestStatus(str, Enum):
    ACTIVE = "active"
    HELD = "held"
    QUEUED = "queued"
    SUCCESS = "success"
    ERROR = "error"


class FormStatus(str, Enum):
    IDLE = "idle"
    SUCCESS = "success"
    QUEUED = "queued"
    HELD = "held"
    ERROR = "error"


class BookingPreference(BaseModel):
    id: int
    bookingClass: str = Field(..., min_length=1)
    flightNumber: str = Field(..., min_length=1)
    carrierCode: str = Field(..., min_length=1)


# =====================================================================
# SECTION: INBOUND FORM
# =====================================================================

class FlightRequestForm(BaseModel):
    """
    Raw form fields as posted by the request page.
    query, travelerInfo and bookingPreferences arrive JSON-encoded.
    Fields are untyped here so a bad submission still gets a FormState back,
    parse_submission does the real checking.
    """
    email: Optional[Any] = None
    query: Optional[Any] = None
    travelerInfo: Optional[Any] = None
    bookingPreferences: Optional[Any] = None

    # Deprecated single preference variant
    bookingClass: Optional[Any] = None
    flightNumber: Optional[Any] = None


class FlightRequestSubmission(BaseModel):
    """A validated submission. search_query and traveler_info are pass-through payloads."""

    submitted_by: EmailStr
    search_query: Dict[str, Any]
    traveler_info: List[Dict[str, Any]] = Field(default_factory=list)

    booking_preferences: Optional[List[BookingPreference]] = Field(default=None, min_length=1)

    target_booking_class: Optional[str] = Field(default=None, min_length=1)
    flight_number: Optional[str] = None

    @model_validator(mode="after")
    def _check_variant(self):
        if self.booking_preferences is None and self.target_booking_class is None:
            raise ValueError("Either booking preferences or a booking class is required")
        if self.booking_preferences is not None and not self.traveler_info:
            raise ValueError("Traveler info is required with booking preferences")
        return self

    @property
    def uses_preferences(self) -> bool:
        return self.booking_preferences is not None


class FormState(BaseModel):
    status: FormStatus = FormStatus.IDLE
    message: str = ""
    pnr: Optional[str] = None
    matchedPreference: Optional[Dict[str, Any]] = None


# =====================================================================
# SECTION: DASHBOARD
# =====================================================================

class FlightRequestOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    submitted_by: str
    search_query: Dict[str, Any]
    traveler_info: List[Dict[str, Any]] = Field(default_factory=list)
    booking_preferences: Optional[List[Dict[str, Any]]] = None
    target_booking_class: Optional[str] = None
    flight_number: Optional[str] = None
    status: str
    pnr_number: Optional[str] = None
    matched_preference: Optional[Dict[str, Any]] = None
    last_checked_at: Optional[datetime] = None
    submitted_at: datetime


class StatusUpdatePayload(BaseModel):
    status: RequestStatus


class TravelerInfoUpdatePayload(BaseModel):
    travelerInfo: List[Dict[str, Any]]


class SearchQueryUpdatePayload(BaseModel):
    searchQuery: Dict[str, Any]


class BookingPreferencesUpdatePayload(BaseModel):
    bookingPreferences: List[BookingPreference] = Field(..., min_length=1)


class DashboardActionResult(BaseModel):
    success: bool
    message: str
    data: Optional[FlightRequestOut] = None
