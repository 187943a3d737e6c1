# =====================================================================
# SECTION START: IMPORTS
# =====================================================================

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import LOG_LEVEL
from db import engine, Base
import models  # noqa: F401
from routers.admin import router as admin_router
from routers.flight_requests import router as flight_requests_router
from services.request_store import get_request_store

# =====================================================================
# SECTION END: IMPORTS
# =====================================================================


# =====================================================================
# SECTION START: LOGGING
# =====================================================================

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("main")

# =====================================================================
# SECTION END: LOGGING
# =====================================================================


# =====================================================================
# SECTION START: FastAPI APP AND CORS
# =====================================================================

app = FastAPI()


def _log_dashboard_invalidation(row) -> None:
    # The dashboard reads straight from the table, a changed row only needs a re-fetch
    logger.info("[dashboard] request_id=%s changed, status=%s", row.id, row.status)


@app.on_event("startup")
def on_startup():
    Base.metadata.create_all(bind=engine)
    get_request_store().add_change_listener(_log_dashboard_invalidation)


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(admin_router)
app.include_router(flight_requests_router)

# =====================================================================
# SECTION END: FastAPI APP AND CORS
# =====================================================================
