"""FastAPI intake for parcel lookups requested by coordinate and email."""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import Depends, FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from arba_lookup.alerts.mailer import Mailer
from arba_lookup.config import LookupSettings, load_config
from arba_lookup.errors import DeliveryError, NoResultsError, ParcelLookupError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import Coordinate
from arba_lookup.portal.lookup import lookup_parcels

LOGGER = get_logger(__name__)

CONFIG = load_config()
SETTINGS = LookupSettings.from_config(CONFIG)
LOOKUP_TIMEOUT_S = float((CONFIG.get("api") or {}).get("lookup_timeout_s") or 300)

MESSAGE_SENT = "Email enviado con éxito"
MESSAGE_PARTIAL = "Partidas obtenidas, pero falló el envío de email"
MESSAGE_NO_RESULTS = "No se encontraron partidas para la ubicación"
MESSAGE_FAILED = "Error procesando la solicitud"

app = FastAPI(title="ARBA Parcel Lookup")
app.add_middleware(
    CORSMiddleware,
    allow_origins=list((CONFIG.get("api") or {}).get("cors_origins") or ["*"]),
    allow_methods=["*"],
    allow_headers=["*"],
)


class LookupRequest(BaseModel):
    lat: float = Field(..., description="Latitude in decimal degrees.")
    lng: float = Field(..., description="Longitude in decimal degrees.")
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$", description="Recipient address.")


def get_mailer() -> Mailer:
    return Mailer()


def _failure(details: str, stage: str | None) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": MESSAGE_FAILED, "details": details, "stage": stage},
    )


@app.post("/fetch-vf-arba-data")
async def fetch_vf_arba_data(
    payload: LookupRequest,
    mailer: Mailer = Depends(get_mailer),
) -> JSONResponse:
    coordinate = Coordinate(lat=payload.lat, lng=payload.lng)
    try:
        result = await asyncio.wait_for(
            lookup_parcels(coordinate, SETTINGS), timeout=LOOKUP_TIMEOUT_S
        )
    except NoResultsError:
        LOGGER.info("No parcels for %s", coordinate.as_query())
        return JSONResponse({"message": MESSAGE_NO_RESULTS, "partidas": [], "partido": ""})
    except ParcelLookupError as exc:
        return _failure(exc.reason, exc.stage)
    except asyncio.TimeoutError:
        LOGGER.warning("Lookup timed out after %.0fs | %s", LOOKUP_TIMEOUT_S, coordinate.as_query())
        return _failure(f"Lookup exceeded {LOOKUP_TIMEOUT_S:.0f}s", "timeout")

    body: dict[str, Any] = {
        "partidas": result.parcel_ids,
        "partido": result.district.district_code,
        "municipio": result.district.municipality_name,
    }
    try:
        await run_in_threadpool(mailer.send_lookup, payload.email, result)
    except DeliveryError as exc:
        return JSONResponse({"message": MESSAGE_PARTIAL, **body, "emailError": str(exc)})
    return JSONResponse({"message": MESSAGE_SENT, **body})


@app.get("/healthz")
def healthcheck() -> dict[str, str]:
    return {"status": "ok"}
