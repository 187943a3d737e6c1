import json
import os
import tempfile

# db.py refuses to import without DATABASE_URL
_DB_DIR = tempfile.mkdtemp(prefix="flight-hold-tests-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_DB_DIR, "test.db")

import pytest  # noqa: E402

from db import Base, SessionLocal, engine  # noqa: E402
import models  # noqa: E402,F401
from providers.amadeus import AmadeusAuthError, AmadeusBookingError, AmadeusSearchError  # noqa: E402
from services.request_store import RequestStore  # noqa: E402


def make_offer(carrier="EK", number="511", booking_class="K", segment_id="1", offer_id="1"):
    return {
        "id": offer_id,
        "itineraries": [
            {
                "segments": [
                    {
                        "id": segment_id,
                        "carrierCode": carrier,
                        "number": number,
                        "departure": {"iataCode": "DEL", "at": "2025-01-10T04:25:00"},
                        "arrival": {"iataCode": "DXB", "at": "2025-01-10T06:55:00"},
                        "aircraft": {"code": "77W"},
                    }
                ]
            }
        ],
        "travelerPricings": [
            {
                "travelerId": "1",
                "fareDetailsBySegment": [{"segmentId": segment_id, "class": booking_class}],
            }
        ],
        "price": {"total": "412.50", "currency": "USD"},
    }


def make_booking(pnr="ABC123", offer=None):
    data = {
        "type": "flight-order",
        "flightOffers": [offer or make_offer()],
        "travelers": [
            {
                "id": "1",
                "name": {"firstName": "JANE", "lastName": "DOE"},
                "dateOfBirth": "1990-01-01",
                "gender": "FEMALE",
            }
        ],
    }
    if pnr is not None:
        data["associatedRecords"] = [{"reference": pnr, "originSystemCode": "GDS"}]
    return {"data": data}


TRAVELERS = [
    {
        "id": "1",
        "dateOfBirth": "1990-01-01",
        "name": {"firstName": "JANE", "lastName": "DOE"},
        "gender": "FEMALE",
        "contact": {
            "emailAddress": "jane@example.com",
            "phones": [{"deviceType": "MOBILE", "countryCallingCode": "91", "number": "9876543210"}],
        },
        "documents": [
            {
                "documentType": "PASSPORT",
                "birthPlace": "IN",
                "issuanceLocation": "IN",
                "issuanceDate": "2015-04-14",
                "number": "00000000",
                "expiryDate": "2030-04-14",
                "issuanceCountry": "IN",
                "validityCountry": "IN",
                "nationality": "IN",
                "holder": True,
            }
        ],
    }
]

SEARCH_QUERY = {
    "originDestinations": [
        {
            "id": "1",
            "originLocationCode": "DEL",
            "destinationLocationCode": "DXB",
            "departureDateTimeRange": {"date": "2025-01-10"},
        }
    ],
    "travelers": [{"id": "1", "travelerType": "ADULT"}],
    "sources": ["GDS"],
}


def form_fields(**overrides):
    fields = {
        "email": "agent@example.com",
        "query": json.dumps(SEARCH_QUERY),
        "travelerInfo": json.dumps(TRAVELERS),
        "bookingPreferences": json.dumps(
            [{"id": 1, "bookingClass": "K", "flightNumber": "511", "carrierCode": "EK"}]
        ),
    }
    fields.update(overrides)
    return {k: v for k, v in fields.items() if v is not None}


class FakeAmadeusClient:
    def __init__(self, offers=None, booking=None, auth_error=False, search_error=False, booking_error=False):
        self.offers = offers if offers is not None else []
        self.booking = booking if booking is not None else make_booking()
        self.auth_error = auth_error
        self.search_error = search_error
        self.booking_error = booking_error
        self.calls = []

    def get_access_token(self):
        self.calls.append(("token",))
        if self.auth_error:
            raise AmadeusAuthError("rejected", status_code=401, body={"error": "invalid_client"})
        return "token-123"

    def search_flight_offers(self, token, search_query):
        self.calls.append(("search", token, search_query))
        if self.search_error:
            raise AmadeusSearchError("search failed", status_code=500, body={"errors": []})
        return self.offers

    def create_flight_order(self, token, flight_offer, travelers):
        self.calls.append(("book", token, flight_offer, travelers))
        if self.booking_error:
            raise AmadeusBookingError("booking failed", status_code=400, body="SEGMENT SELL FAILURE")
        return self.booking


class FakeNotifier:
    def __init__(self):
        self.pnr_emails = []
        self.found_emails = []

    def send_pnr_email(self, to_email, pnr, booking=None):
        self.pnr_emails.append((to_email, pnr, booking))
        return True

    def send_flight_found_email(self, to_email, offer):
        self.found_emails.append((to_email, offer))
        return True


@pytest.fixture
def store():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    return RequestStore(SessionLocal)


@pytest.fixture
def notifier():
    return FakeNotifier()
