"""
services/request_store.py

Persistence for flight requests:
- create: one row per validated form submission
- list_requests / get: dashboard reads, newest first
- update_*: dashboard edits of status, travelers, search query, preferences

Rows are never deleted here. Every failure is logged with the operation and
request id, then re-raised as RequestStoreError so callers can tell a store
problem apart from a provider problem.
"""

import logging
from functools import lru_cache
from typing import Any, Callable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError

from config import REQUEST_STATUSES, STATUS_FILTER_ALL
from db import SessionLocal
from models import FlightRequest

logger = logging.getLogger(__name__)


class RequestStoreError(Exception):
    pass


class RequestNotFoundError(RequestStoreError):
    pass


ChangeListener = Callable[[FlightRequest], None]


class RequestStore:
    def __init__(self, session_factory=SessionLocal):
        self.session_factory = session_factory
        self._listeners: List[ChangeListener] = []

    # =================================================================
    # SECTION: CHANGE LISTENERS
    # =================================================================

    def add_change_listener(self, listener: ChangeListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def _notify_changed(self, row: FlightRequest) -> None:
        for listener in self._listeners:
            try:
                listener(row)
            except Exception:
                logger.exception("[store] change listener failed for request_id=%s", row.id)

    # =================================================================
    # SECTION: WRITES
    # =================================================================

    def create(self, **fields: Any) -> FlightRequest:
        db = self.session_factory()
        try:
            row = FlightRequest(id=str(uuid4()), **fields)
            db.add(row)
            db.commit()
            db.refresh(row)
            logger.info("[store] inserted request_id=%s status=%s", row.id, row.status)
            return row
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception(
                "[store] insert failed submitted_by=%s status=%s",
                fields.get("submitted_by"), fields.get("status"),
            )
            raise RequestStoreError(f"Failed to insert flight request: {e}") from e
        finally:
            db.close()

    def _update(self, request_id: str, column: str, value: Any, label: str) -> FlightRequest:
        db = self.session_factory()
        try:
            row = db.query(FlightRequest).filter(FlightRequest.id == request_id).first()
            if not row:
                raise RequestNotFoundError(f"Flight request {request_id} not found")
            setattr(row, column, value)
            db.commit()
            db.refresh(row)
        except SQLAlchemyError as e:
            db.rollback()
            logger.exception("[store] failed to update %s request_id=%s", label, request_id)
            raise RequestStoreError(f"Failed to update {label}: {e}") from e
        except RequestNotFoundError:
            logger.error("[store] failed to update %s request_id=%s: not found", label, request_id)
            raise
        finally:
            db.close()

        logger.info("[store] updated %s request_id=%s", label, request_id)
        self._notify_changed(row)
        return row

    def update_status(self, request_id: str, status: str) -> FlightRequest:
        status = (status or "").strip().lower()
        if status not in REQUEST_STATUSES:
            logger.error("[store] failed to update status request_id=%s: unknown status %r", request_id, status)
            raise RequestStoreError(f"Unknown status: {status!r}")
        return self._update(request_id, "status", status, "status")

    def update_traveler_info(self, request_id: str, traveler_info: List[dict]) -> FlightRequest:
        return self._update(request_id, "traveler_info", traveler_info, "traveler info")

    def update_search_query(self, request_id: str, search_query: dict) -> FlightRequest:
        return self._update(request_id, "search_query", search_query, "search query")

    def update_booking_preferences(self, request_id: str, preferences: List[dict]) -> FlightRequest:
        if not preferences:
            logger.error("[store] failed to update booking preferences request_id=%s: empty list", request_id)
            raise RequestStoreError("Booking preferences cannot be empty")
        return self._update(request_id, "booking_preferences", preferences, "booking preferences")

    # =================================================================
    # SECTION: READS
    # =================================================================

    def list_requests(self, status: Optional[str] = STATUS_FILTER_ALL) -> List[FlightRequest]:
        db = self.session_factory()
        try:
            query = db.query(FlightRequest)
            if status and status != STATUS_FILTER_ALL:
                query = query.filter(FlightRequest.status == status.lower())
            return query.order_by(FlightRequest.submitted_at.desc()).all()
        except SQLAlchemyError as e:
            logger.exception("[store] failed to fetch flight requests status=%s", status)
            raise RequestStoreError(f"Failed to fetch flight requests: {e}") from e
        finally:
            db.close()

    def get(self, request_id: str) -> FlightRequest:
        db = self.session_factory()
        try:
            row = db.query(FlightRequest).filter(FlightRequest.id == request_id).first()
        except SQLAlchemyError as e:
            logger.exception("[store] failed to fetch request_id=%s", request_id)
            raise RequestStoreError(f"Failed to fetch flight request: {e}") from e
        finally:
            db.close()
        if not row:
            raise RequestNotFoundError(f"Flight request {request_id} not found")
        return row


@lru_cache()
def get_request_store() -> RequestStore:
    """Process-wide store bound to the app's SessionLocal."""
    return RequestStore(SessionLocal)
