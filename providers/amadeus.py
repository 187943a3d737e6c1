"""
providers/amadeus.py

Amadeus API helpers:
- Client-credential token exchange
- Flight offer search (query passed through verbatim)
- Flight order creation with a delayed-ticketing hold
- PNR extraction from an order response

Every call is a single attempt. Failures raise an AmadeusError subclass that
carries the HTTP status and body for the server log; callers decide what the
user sees.
"""

import logging
from functools import lru_cache
from typing import Any, Dict, List, Optional

import requests

from config import (
    AMADEUS_API_BASE,
    AMADEUS_CLIENT_ID,
    AMADEUS_CLIENT_SECRET,
    AMADEUS_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)

TOKEN_PATH = "/v1/security/oauth2/token"
FLIGHT_OFFERS_PATH = "/v2/shopping/flight-offers"
FLIGHT_ORDERS_PATH = "/v1/booking/flight-orders"

# Hold the seat for one day, the provider cancels it if nobody pays
TICKETING_AGREEMENT = {"option": "DELAY_TO_CANCEL", "delay": "1D"}


# =====================================================================
# SECTION: ERRORS
# =====================================================================

class AmadeusError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class AmadeusAuthError(AmadeusError):
    pass


class AmadeusSearchError(AmadeusError):
    pass


class AmadeusBookingError(AmadeusError):
    pass


# =====================================================================
# SECTION: LOW LEVEL HTTP HELPERS
# =====================================================================

def _safe_json(resp: requests.Response) -> Any:
    try:
        return resp.json()
    except ValueError:
        return {"raw": resp.text}


def _log_response(method: str, path: str, resp: requests.Response) -> None:
    request_id = resp.headers.get("ama-request-id") or resp.headers.get("X-Request-Id")
    if resp.status_code >= 400:
        safe_body = (resp.text or "").replace("\n", "\\n").replace("\r", "\\r")
        logger.error(
            "[amadeus] %s %s status=%s request_id=%s body=%s",
            method, path, resp.status_code, request_id, safe_body[:2000],
        )
    else:
        logger.info("[amadeus] %s %s status=%s request_id=%s", method, path, resp.status_code, request_id)


# =====================================================================
# SECTION: CLIENT
# =====================================================================

class AmadeusClient:
    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: str,
        timeout: int = 45,
    ):
        self.base_url = (base_url or "").strip().rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return self.base_url + path

    def get_access_token(self) -> str:
        payload = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            # data= sends application/x-www-form-urlencoded
            resp = requests.post(self._url(TOKEN_PATH), data=payload, timeout=self.timeout)
        except requests.RequestException as e:
            raise AmadeusAuthError(f"Amadeus token request failed: {e}")

        _log_response("POST", TOKEN_PATH, resp)
        data = _safe_json(resp)

        if resp.status_code >= 400:
            raise AmadeusAuthError(
                "Failed to obtain Amadeus access token",
                status_code=resp.status_code,
                body=data,
            )

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AmadeusAuthError("Amadeus token response had no access_token", status_code=resp.status_code, body=data)
        return token

    def _bearer_headers(self, token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    def search_flight_offers(self, token: str, search_query: Dict[str, Any]) -> List[dict]:
        try:
            resp = requests.post(
                self._url(FLIGHT_OFFERS_PATH),
                headers=self._bearer_headers(token),
                json=search_query,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AmadeusSearchError(f"Flight search request failed: {e}")

        _log_response("POST", FLIGHT_OFFERS_PATH, resp)
        data = _safe_json(resp)

        if resp.status_code >= 400:
            raise AmadeusSearchError(
                "Flight search API request failed",
                status_code=resp.status_code,
                body=data,
            )

        offers = data.get("data") if isinstance(data, dict) else None
        if not isinstance(offers, list):
            return []
        logger.info("[amadeus] offers=%s", len(offers))
        return offers

    def create_flight_order(self, token: str, flight_offer: dict, travelers: List[dict]) -> dict:
        payload = {
            "data": {
                "type": "flight-order",
                "flightOffers": [flight_offer],
                "travelers": travelers,
                "ticketingAgreement": dict(TICKETING_AGREEMENT),
            }
        }
        try:
            resp = requests.post(
                self._url(FLIGHT_ORDERS_PATH),
                headers=self._bearer_headers(token),
                json=payload,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise AmadeusBookingError(f"Flight booking request failed: {e}")

        _log_response("POST", FLIGHT_ORDERS_PATH, resp)

        if resp.status_code >= 400:
            raise AmadeusBookingError(
                f"Flight booking API request failed: {resp.status_code} - {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        data = _safe_json(resp)
        return data if isinstance(data, dict) else {"data": data}


# =====================================================================
# SECTION: RESPONSE HELPERS
# =====================================================================

def extract_pnr(booking: Optional[dict]) -> Optional[str]:
    """data.associatedRecords[0].reference, or None when any link is missing."""
    if not isinstance(booking, dict):
        return None
    data = booking.get("data") or {}
    if not isinstance(data, dict):
        return None
    records = data.get("associatedRecords")
    if not isinstance(records, list) or not records:
        return None
    first = records[0]
    if not isinstance(first, dict):
        return None
    reference = first.get("reference")
    if reference is None or reference == "":
        return None
    return str(reference)


@lru_cache()
def get_amadeus_client() -> AmadeusClient:
    """Process-wide client built once from the environment."""
    if not (AMADEUS_CLIENT_ID and AMADEUS_CLIENT_SECRET):
        logger.warning("[amadeus] AMADEUS_CLIENT_ID / AMADEUS_CLIENT_SECRET not set")
    return AmadeusClient(
        base_url=AMADEUS_API_BASE,
        client_id=AMADEUS_CLIENT_ID,
        client_secret=AMADEUS_CLIENT_SECRET,
        timeout=AMADEUS_TIMEOUT_SECONDS,
    )
