"""
services/tracking_service.py

Flight request submission pipeline:
- parse_submission: form fields -> FlightRequestSubmission
- track_flight_request: validate, authenticate, search, match, book, persist, notify

Runs synchronously in the request, one attempt per step, no retries.
Re-checking "active" rows later is a separate worker's job.

Persistence policy: once validation passes and the provider accepted our
credentials, exactly one row is written for the submission whatever happens
afterwards (held, success, active or error). Auth failures write nothing.
"""

import json
import logging
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, Optional

from pydantic import ValidationError

import pnr_email
from providers.amadeus import (
    AmadeusAuthError,
    AmadeusBookingError,
    AmadeusClient,
    AmadeusSearchError,
    extract_pnr,
)
from schemas.flight_requests import (
    FlightRequestForm,
    FlightRequestSubmission,
    FormState,
    FormStatus,
    RequestStatus,
)
from services.preference_matcher import find_first_class_match, find_first_match
from services.request_store import RequestStore, RequestStoreError

logger = logging.getLogger(__name__)

INVALID_FORM_MESSAGE = "Invalid form data."
AUTH_FAILED_MESSAGE = "Could not authenticate with Amadeus. Please try again later."
SEARCH_FAILED_MESSAGE = "Flight search failed. Please try again later."
BOOKING_FAILED_MESSAGE = "A matching flight was found but the booking could not be completed."
QUEUED_MESSAGE = (
    "Flight not available right now in any of your preferred options. "
    "Your request has been queued for future checking."
)
FOUND_MESSAGE = "Success! A matching flight was found immediately and a notification has been sent."
HELD_NO_PNR_MESSAGE = "Ticket held, but no PNR returned."


class SubmissionError(ValueError):
    pass


# Default notifier, tests and alternative transports pass their own
DEFAULT_NOTIFIER = SimpleNamespace(
    send_pnr_email=pnr_email.send_pnr_email,
    send_flight_found_email=pnr_email.send_flight_found_email,
)


# =====================================================================
# SECTION: VALIDATION
# =====================================================================

def _load_json(raw: Any, field: str) -> Any:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise SubmissionError(f"{field} must be a JSON-encoded string")
    if not raw.strip():
        return None
    try:
        return json.loads(raw)
    except (TypeError, ValueError) as e:
        raise SubmissionError(f"{field} must be valid JSON") from e


def parse_submission(form: FlightRequestForm) -> FlightRequestSubmission:
    search_query = _load_json(form.query, "query")
    traveler_info = _load_json(form.travelerInfo, "travelerInfo")
    preferences = _load_json(form.bookingPreferences, "bookingPreferences")

    if search_query is None:
        raise SubmissionError("query is required")

    fields: Dict[str, Any] = {
        "submitted_by": form.email,
        "search_query": search_query,
        "traveler_info": traveler_info if traveler_info is not None else [],
    }
    if preferences is not None:
        fields["booking_preferences"] = preferences
    else:
        if form.flightNumber is not None and not isinstance(form.flightNumber, str):
            raise SubmissionError("flightNumber must be a string")
        fields["target_booking_class"] = form.bookingClass
        fields["flight_number"] = (form.flightNumber or "").strip() or None

    try:
        return FlightRequestSubmission(**fields)
    except ValidationError as e:
        raise SubmissionError(str(e)) from e


# =====================================================================
# SECTION: PERSISTENCE
# =====================================================================

def _persist(
    store: RequestStore,
    submission: FlightRequestSubmission,
    status: RequestStatus,
    pnr: Optional[str] = None,
    matched_preference: Optional[dict] = None,
) -> Optional[str]:
    """Insert the one row for this submission. Store failures are logged, not raised."""
    preferences = (
        [p.model_dump() for p in submission.booking_preferences]
        if submission.booking_preferences is not None
        else None
    )
    try:
        row = store.create(
            submitted_by=str(submission.submitted_by),
            search_query=submission.search_query,
            traveler_info=submission.traveler_info,
            booking_preferences=preferences,
            target_booking_class=submission.target_booking_class,
            flight_number=submission.flight_number,
            status=status.value,
            pnr_number=pnr,
            matched_preference=matched_preference,
            last_checked_at=datetime.utcnow(),
        )
    except RequestStoreError as e:
        logger.error(
            "[tracking] insert error (%s) submitted_by=%s pnr=%s: %s",
            status.value, submission.submitted_by, pnr, e,
        )
        return None
    return row.id


def _notify(send, *args) -> bool:
    """Email failures are logged and swallowed, the row is already stored."""
    try:
        return bool(send(*args))
    except Exception:
        logger.exception("[tracking] notification failed to=%s", args[0] if args else None)
        return False


# =====================================================================
# SECTION: PIPELINE
# =====================================================================

def track_flight_request(
    form: FlightRequestForm,
    client: AmadeusClient,
    store: RequestStore,
    notifier: Any = DEFAULT_NOTIFIER,
) -> FormState:
    # 1. Validate
    try:
        submission = parse_submission(form)
    except SubmissionError as e:
        logger.info("[tracking] rejected submission: %s", e)
        return FormState(status=FormStatus.ERROR, message=INVALID_FORM_MESSAGE)

    logger.info(
        "[tracking] submission from=%s variant=%s",
        submission.submitted_by,
        "preferences" if submission.uses_preferences else "booking_class",
    )

    # 2. Credentials
    try:
        token = client.get_access_token()
    except AmadeusAuthError as e:
        logger.error("[tracking] auth failed status=%s body=%s", e.status_code, e.body)
        return FormState(status=FormStatus.ERROR, message=AUTH_FAILED_MESSAGE)

    # 3. Search once for all preferences
    try:
        offers = client.search_flight_offers(token, submission.search_query)
    except AmadeusSearchError as e:
        logger.error("[tracking] search failed status=%s body=%s", e.status_code, e.body)
        _persist(store, submission, RequestStatus.ERROR)
        return FormState(status=FormStatus.ERROR, message=SEARCH_FAILED_MESSAGE)

    # 4. Match
    if submission.uses_preferences:
        offer, pref = find_first_match(offers, submission.booking_preferences)
        matched = pref.model_dump() if pref is not None else None
    else:
        offer = find_first_class_match(offers, submission.target_booking_class, submission.flight_number)
        matched = (
            {"bookingClass": submission.target_booking_class, "flightNumber": submission.flight_number}
            if offer is not None
            else None
        )

    if offer is None:
        logger.info("[tracking] no match for %s, saving as active", submission.submitted_by)
        _persist(store, submission, RequestStatus.ACTIVE)
        return FormState(status=FormStatus.QUEUED, message=QUEUED_MESSAGE)

    # Deprecated path without travelers: notify only, nothing to book with
    if not submission.traveler_info:
        logger.info("[tracking] match for %s without travelers, notifying only", submission.submitted_by)
        _persist(store, submission, RequestStatus.SUCCESS, matched_preference=matched)
        _notify(notifier.send_flight_found_email, str(submission.submitted_by), offer)
        return FormState(status=FormStatus.SUCCESS, message=FOUND_MESSAGE, matchedPreference=matched)

    # 5. Book and hold
    try:
        booking = client.create_flight_order(token, offer, submission.traveler_info)
    except AmadeusBookingError as e:
        logger.error("[tracking] booking failed status=%s body=%s", e.status_code, e.body)
        _persist(store, submission, RequestStatus.ERROR, matched_preference=matched)
        return FormState(status=FormStatus.ERROR, message=BOOKING_FAILED_MESSAGE, matchedPreference=matched)

    pnr = extract_pnr(booking)
    logger.info("[tracking] held for %s pnr=%s", submission.submitted_by, pnr)
    _persist(store, submission, RequestStatus.HELD, pnr=pnr, matched_preference=matched)

    if not pnr:
        return FormState(status=FormStatus.HELD, message=HELD_NO_PNR_MESSAGE, matchedPreference=matched)

    sent = _notify(notifier.send_pnr_email, str(submission.submitted_by), pnr, booking)
    return FormState(
        status=FormStatus.HELD,
        message=(
            "The ticket has been successfully held for your matched preference. "
            f"PNR: {pnr}. "
            + ("Confirmation email sent." if sent else "The confirmation email could not be sent.")
        ),
        pnr=pnr,
        matchedPreference=matched,
    )
