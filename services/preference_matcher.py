"""
services/preference_matcher.py

Client-side checks of a provider fare offer against what the agent asked for.

An offer carries the booked fare class per segment only inside
travelerPricings[].fareDetailsBySegment[], keyed by segmentId. Matching
joins that back onto itineraries[].segments[] by segment id. All string
comparisons are upper-cased. Malformed or partial offers never raise, they
simply do not match.
"""

from typing import Dict, Iterable, List, Optional, Tuple

from schemas.flight_requests import BookingPreference


def _upper(value) -> str:
    return str(value).strip().upper() if value is not None else ""


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def segment_class_map(pricing: dict) -> Dict[str, str]:
    """segmentId -> fare class for one traveler pricing entry."""
    result: Dict[str, str] = {}
    for fare in _as_list(pricing.get("fareDetailsBySegment") if isinstance(pricing, dict) else None):
        if not isinstance(fare, dict):
            continue
        segment_id = fare.get("segmentId")
        fare_class = fare.get("class")
        if segment_id is None or fare_class is None:
            continue
        result[str(segment_id)] = _upper(fare_class)
    return result


def _iter_segments(offer: dict):
    for itinerary in _as_list(offer.get("itineraries")):
        if not isinstance(itinerary, dict):
            continue
        for seg in _as_list(itinerary.get("segments")):
            if isinstance(seg, dict):
                yield seg


def matches_preference(offer: dict, preference: BookingPreference) -> bool:
    if not isinstance(offer, dict):
        return False

    want_carrier = _upper(preference.carrierCode)
    want_number = _upper(preference.flightNumber)
    want_class = _upper(preference.bookingClass)

    for pricing in _as_list(offer.get("travelerPricings")):
        classes = segment_class_map(pricing)
        for seg in _iter_segments(offer):
            seg_id = seg.get("id")
            if seg_id is None:
                continue
            if (
                _upper(seg.get("carrierCode")) == want_carrier
                and _upper(seg.get("number")) == want_number
                and classes.get(str(seg_id)) == want_class
            ):
                return True
    return False


def matches_booking_class(offer: dict, booking_class: str, flight_number: Optional[str] = None) -> bool:
    """
    Single preference check (deprecated form path).
    Any segment booked in booking_class matches; when flight_number is set
    the same segment must also carry that flight number.
    """
    if not isinstance(offer, dict) or not booking_class:
        return False

    want_class = _upper(booking_class)
    want_number = _upper(flight_number) if flight_number else None

    for pricing in _as_list(offer.get("travelerPricings")):
        classes = segment_class_map(pricing)
        if want_number is None:
            if want_class in classes.values():
                return True
            continue
        for seg in _iter_segments(offer):
            seg_id = seg.get("id")
            if seg_id is None:
                continue
            if _upper(seg.get("number")) == want_number and classes.get(str(seg_id)) == want_class:
                return True
    return False


def find_first_match(
    offers: Iterable[dict],
    preferences: List[BookingPreference],
) -> Tuple[Optional[dict], Optional[BookingPreference]]:
    """
    Preferences in caller order, offers in provider order.
    First (offer, preference) hit wins, nothing after it is evaluated.
    """
    offers = list(offers or [])
    for pref in preferences:
        for offer in offers:
            if matches_preference(offer, pref):
                return offer, pref
    return None, None


def find_first_class_match(
    offers: Iterable[dict],
    booking_class: str,
    flight_number: Optional[str] = None,
) -> Optional[dict]:
    for offer in offers or []:
        if matches_booking_class(offer, booking_class, flight_number):
            return offer
    return None
