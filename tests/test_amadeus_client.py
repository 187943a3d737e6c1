from unittest.mock import Mock, patch

import pytest
import requests

from providers.amadeus import (
    AmadeusAuthError,
    AmadeusBookingError,
    AmadeusClient,
    AmadeusSearchError,
    extract_pnr,
)

from conftest import make_booking, make_offer


def make_client():
    return AmadeusClient(
        base_url="https://test.travel.api.amadeus.com/",
        client_id="id-1",
        client_secret="secret-1",
        timeout=5,
    )


def make_response(status_code=200, payload=None, text=""):
    resp = Mock(status_code=status_code, headers={}, text=text)
    resp.json.return_value = payload if payload is not None else {}
    return resp


@patch("requests.post")
def test_token_exchange_posts_client_credentials(mock_post):
    mock_post.return_value = make_response(payload={"access_token": "tok", "expires_in": 1799})

    assert make_client().get_access_token() == "tok"

    args, kwargs = mock_post.call_args
    assert args[0] == "https://test.travel.api.amadeus.com/v1/security/oauth2/token"
    assert kwargs["data"] == {
        "grant_type": "client_credentials",
        "client_id": "id-1",
        "client_secret": "secret-1",
    }


@patch("requests.post")
def test_token_rejected_raises_auth_error(mock_post):
    mock_post.return_value = make_response(status_code=401, payload={"error": "invalid_client"})

    with pytest.raises(AmadeusAuthError) as exc:
        make_client().get_access_token()
    assert exc.value.status_code == 401


@patch("requests.post")
def test_token_transport_failure_raises_auth_error(mock_post):
    mock_post.side_effect = requests.ConnectionError("boom")

    with pytest.raises(AmadeusAuthError):
        make_client().get_access_token()


@patch("requests.post")
def test_search_passes_query_through_with_bearer(mock_post):
    offer = make_offer()
    mock_post.return_value = make_response(payload={"data": [offer]})
    query = {"originDestinations": [], "custom": {"kept": True}}

    offers = make_client().search_flight_offers("tok", query)

    assert offers == [offer]
    args, kwargs = mock_post.call_args
    assert args[0].endswith("/v2/shopping/flight-offers")
    assert kwargs["json"] is query
    assert kwargs["headers"]["Authorization"] == "Bearer tok"


@patch("requests.post")
def test_search_without_data_returns_empty_list(mock_post):
    mock_post.return_value = make_response(payload={"meta": {"count": 0}})
    assert make_client().search_flight_offers("tok", {}) == []


@patch("requests.post")
def test_search_failure_raises(mock_post):
    mock_post.return_value = make_response(status_code=500, payload={"errors": [{"code": 141}]})

    with pytest.raises(AmadeusSearchError) as exc:
        make_client().search_flight_offers("tok", {})
    assert exc.value.status_code == 500


@patch("requests.post")
def test_order_requests_delayed_ticketing_hold(mock_post):
    booking = make_booking()
    mock_post.return_value = make_response(status_code=201, payload=booking)
    offer = make_offer()
    travelers = [{"id": "1"}]

    result = make_client().create_flight_order("tok", offer, travelers)

    assert result == booking
    args, kwargs = mock_post.call_args
    assert args[0].endswith("/v1/booking/flight-orders")
    body = kwargs["json"]["data"]
    assert body["type"] == "flight-order"
    assert body["flightOffers"] == [offer]
    assert body["travelers"] == travelers
    assert body["ticketingAgreement"] == {"option": "DELAY_TO_CANCEL", "delay": "1D"}


@patch("requests.post")
def test_order_failure_carries_status_and_body(mock_post):
    mock_post.return_value = make_response(status_code=400, text='{"errors":[{"title":"SEGMENT SELL FAILURE"}]}')

    with pytest.raises(AmadeusBookingError) as exc:
        make_client().create_flight_order("tok", make_offer(), [])
    assert exc.value.status_code == 400
    assert "SEGMENT SELL FAILURE" in exc.value.body


def test_extract_pnr():
    assert extract_pnr(make_booking(pnr="XYZ789")) == "XYZ789"


def test_extract_pnr_missing_pieces():
    assert extract_pnr(make_booking(pnr=None)) is None
    assert extract_pnr({"data": {"associatedRecords": []}}) is None
    assert extract_pnr({"data": {"associatedRecords": [{"originSystemCode": "GDS"}]}}) is None
    assert extract_pnr({}) is None
    assert extract_pnr(None) is None


def test_extract_pnr_numeric_reference_as_text():
    assert extract_pnr({"data": {"associatedRecords": [{"reference": 12345}]}}) == "12345"
    assert extract_pnr({"data": {"associatedRecords": [{"reference": ""}]}}) is None
