# =======================================
# SECTION: IMPORTS AND BASE
# =======================================

from datetime import datetime

from sqlalchemy import (
    Column,
    String,
    DateTime,
    JSON,
)

from db import Base


# =======================================
# SECTION: FLIGHT REQUEST MODEL
# =======================================

class FlightRequest(Base):
    __tablename__ = "flight_requests"

    id = Column(String, primary_key=True, index=True)
    submitted_by = Column(String(255), index=True, nullable=False)

    # Passed through to the provider search endpoint verbatim
    search_query = Column(JSON, nullable=False)

    # Amadeus traveler objects, only read when an order is submitted
    traveler_info = Column(JSON, nullable=False, default=list)

    # Array variant: [{id, bookingClass, flightNumber, carrierCode}, ...]
    booking_preferences = Column(JSON, nullable=True)

    # Single preference variant (deprecated)
    target_booking_class = Column(String(10), nullable=True)
    flight_number = Column(String(10), nullable=True)

    # active | held | queued | success | error
    status = Column(String(20), index=True, nullable=False, default="active")

    pnr_number = Column(String(20), nullable=True)
    matched_preference = Column(JSON, nullable=True)

    last_checked_at = Column(DateTime, nullable=True)
    submitted_at = Column(DateTime, index=True, nullable=False, default=datetime.utcnow)
