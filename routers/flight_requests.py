"""routers/flight_requests.py - Flight request submission and dashboard list/view/update."""

import logging
from typing import Callable, List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError

from config import STATUS_FILTER_ALL
from providers.amadeus import AmadeusClient, get_amadeus_client
from schemas.flight_requests import (
    BookingPreferencesUpdatePayload,
    DashboardActionResult,
    FlightRequestForm,
    FlightRequestOut,
    FormState,
    SearchQueryUpdatePayload,
    StatusUpdatePayload,
    TravelerInfoUpdatePayload,
)
from schemas.travelers import TravelerList
from services.request_store import (
    RequestNotFoundError,
    RequestStore,
    RequestStoreError,
    get_request_store,
)
from services.tracking_service import track_flight_request

logger = logging.getLogger(__name__)

router = APIRouter()


# =====================================================================
# SECTION: SUBMISSION
# =====================================================================

@router.post("/flight-requests", response_model=FormState)
def submit_flight_request(
    form: FlightRequestForm,
    client: AmadeusClient = Depends(get_amadeus_client),
    store: RequestStore = Depends(get_request_store),
):
    return track_flight_request(form, client=client, store=store)


# =====================================================================
# SECTION: DASHBOARD READS
# =====================================================================

@router.get("/flight-requests", response_model=List[FlightRequestOut])
def list_flight_requests(
    status: Optional[str] = STATUS_FILTER_ALL,
    store: RequestStore = Depends(get_request_store),
):
    try:
        rows = store.list_requests(status)
    except RequestStoreError:
        raise HTTPException(status_code=500, detail="Failed to fetch flight requests")
    return [FlightRequestOut.model_validate(r) for r in rows]


@router.get("/flight-requests/{request_id}", response_model=FlightRequestOut)
def get_flight_request(request_id: str, store: RequestStore = Depends(get_request_store)):
    try:
        row = store.get(request_id)
    except RequestNotFoundError:
        raise HTTPException(status_code=404, detail="Flight request not found")
    except RequestStoreError:
        raise HTTPException(status_code=500, detail="Failed to fetch flight request")
    return FlightRequestOut.model_validate(row)


# =====================================================================
# SECTION: DASHBOARD UPDATES
# Each handler answers with success/message, never an error status, so the
# dashboard can show a toast and re-fetch to undo its optimistic update.
# =====================================================================

def _run_update(update: Callable, request_id: str, value, label: str) -> DashboardActionResult:
    try:
        row = update(request_id, value)
    except RequestNotFoundError:
        return DashboardActionResult(success=False, message=f"Failed to update {label}: request not found")
    except RequestStoreError:
        return DashboardActionResult(success=False, message=f"Failed to update {label}")
    return DashboardActionResult(
        success=True,
        message=f"{label[0].upper()}{label[1:]} updated",
        data=FlightRequestOut.model_validate(row),
    )


@router.patch("/flight-requests/{request_id}/status", response_model=DashboardActionResult)
def update_flight_request_status(
    request_id: str,
    payload: StatusUpdatePayload,
    store: RequestStore = Depends(get_request_store),
):
    return _run_update(store.update_status, request_id, payload.status.value, "status")


@router.patch("/flight-requests/{request_id}/traveler-info", response_model=DashboardActionResult)
def update_flight_request_traveler(
    request_id: str,
    payload: TravelerInfoUpdatePayload,
    store: RequestStore = Depends(get_request_store),
):
    try:
        travelers = TravelerList.validate_python(payload.travelerInfo)
    except ValidationError as e:
        logger.info("[dashboard] invalid traveler info for request_id=%s: %s", request_id, e)
        return DashboardActionResult(success=False, message="Traveler info is not valid")

    traveler_info = [t.model_dump(exclude_none=True) for t in travelers]
    return _run_update(store.update_traveler_info, request_id, traveler_info, "traveler info")


@router.patch("/flight-requests/{request_id}/search-query", response_model=DashboardActionResult)
def update_flight_request_search_query(
    request_id: str,
    payload: SearchQueryUpdatePayload,
    store: RequestStore = Depends(get_request_store),
):
    return _run_update(store.update_search_query, request_id, payload.searchQuery, "search query")


@router.patch("/flight-requests/{request_id}/booking-preferences", response_model=DashboardActionResult)
def update_flight_request_preferences(
    request_id: str,
    payload: BookingPreferencesUpdatePayload,
    store: RequestStore = Depends(get_request_store),
):
    preferences = [p.model_dump() for p in payload.bookingPreferences]
    return _run_update(store.update_booking_preferences, request_id, preferences, "booking preferences")
