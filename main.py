# -*- coding: utf-8 -*-
"""
Vehicle Identity Autofill API

Given partial identifying data typed into an insurance intake form (plate,
chassis, engine, national ID, owner name), searches the live vehicle store and
the legacy registry and either proposes a silent autofill or a ranked list of
candidates for the user to pick from.
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional, Tuple

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pymongo import MongoClient
import uvicorn

from autofill_service import AutofillService
from mongodb_client import (
    check_connection, create_mongo_client, get_database,
    legacy_registry_source, live_vehicle_source, StoreQueryError,
)
from records import IdentityQuery


# ============================================================================
# CONFIGURATION
# ============================================================================

DEFAULT_PORT = int(os.environ.get('PORT', '8000'))
LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)


# ============================================================================
# MODELS
# ============================================================================

class AutofillResponse(BaseModel):
    success: bool = True
    match: Optional[Dict[str, Any]] = None
    candidates: List[Dict[str, Any]] = []


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class HealthResponse(BaseModel):
    dbName: Optional[str] = None
    regCount: Optional[int] = None
    sample: Optional[Dict[str, Any]] = None


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(message=message).model_dump())


# ============================================================================
# SERVICE WIRING
# ============================================================================

def build_service_from_env() -> Tuple[AutofillService, MongoClient]:
    """Connect to MongoDB and build the autofill service (caller closes the client)."""
    client = create_mongo_client()
    db = get_database(client)
    live = live_vehicle_source(db)
    legacy = legacy_registry_source(db)

    for source in (live, legacy):
        try:
            source.ensure_indexes()
        except StoreQueryError as e:
            logger.warning(f"Could not ensure indexes on {source.collection.name}: {e}")

    return AutofillService(live, legacy, db_name=db.name), client


# ============================================================================
# FASTAPI APPLICATION
# ============================================================================

def create_app(service: Optional[AutofillService] = None) -> FastAPI:
    """
    Build the API application.

    With an explicit ``service`` the app uses it as-is (tests, embedding);
    otherwise the MongoDB-backed service is built on startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if app.state.service is None:
            try:
                app.state.service, client = build_service_from_env()
                logger.info("Autofill service initialised")
            except Exception:
                logger.exception("Error initialising autofill service")
        yield
        if client is not None:
            client.close()

    app = FastAPI(
        title="Vehicle Identity Autofill",
        description="Live store + legacy registry identity resolution for intake forms",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/autofill", response_model=AutofillResponse, responses={500: {"model": ErrorResponse}})
    def autofill(
        request: Request,
        chassis_number: Optional[str] = Query(None, alias="chassisNumber"),
        engine_number: Optional[str] = Query(None, alias="engineNumber"),
        plate_number: Optional[str] = Query(None, alias="plateNumber"),
        plate_country: Optional[str] = Query(None, alias="plateCountry"),
        plate_region: Optional[str] = Query(None, alias="plateRegion"),
        owner_name: Optional[str] = Query(None, alias="ownerName"),
        national_id: Optional[str] = Query(None, alias="nationalId"),
        exclude_id: Optional[str] = Query(None, alias="excludeId"),
    ):
        """Propose an autofill patch and/or ranked candidates for a partial identity."""
        svc: Optional[AutofillService] = request.app.state.service
        if svc is None:
            return error_response(500, "Autofill service not available")

        query = IdentityQuery.from_params(
            chassis_number=chassis_number,
            engine_number=engine_number,
            plate_number=plate_number,
            plate_country=plate_country,
            plate_region=plate_region,
            owner_name=owner_name,
            national_id=national_id,
            exclude_id=exclude_id,
        )
        try:
            resolution = svc.autofill(query)
        except Exception as e:
            logger.exception("autofill error")
            return error_response(500, str(e) or "Server error")

        return AutofillResponse(match=resolution.match, candidates=resolution.candidates)

    @app.get("/autofill/health", response_model=HealthResponse, responses={500: {"model": ErrorResponse}})
    def autofill_health(request: Request):
        """Store name, approximate registry count and one sample registry record."""
        svc: Optional[AutofillService] = request.app.state.service
        if svc is None:
            return error_response(500, "Autofill service not available")
        try:
            return HealthResponse(**svc.health())
        except Exception as e:
            logger.exception("autofill health error")
            return error_response(500, str(e) or "Server error")

    return app


app = create_app()


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

def find_available_port(start_port=DEFAULT_PORT, max_attempts=10):
    """Find an available port starting from start_port."""
    import socket
    for port in range(start_port, start_port + max_attempts):
        try:
            with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
                s.bind(('0.0.0.0', port))
                return port
        except OSError:
            continue
    return None


def main():
    """Run the autofill API server."""
    print("=" * 60)
    print("Vehicle Identity Autofill API")
    print("=" * 60)

    port = find_available_port()
    if port is None:
        print(f"\nERROR: Could not find an available port ({DEFAULT_PORT}-{DEFAULT_PORT + 9}).")
        return

    print("\nTesting MongoDB connection...")
    try:
        client = create_mongo_client()
    except ValueError as e:
        print(f"  ERROR: {e}")
        return
    conn_test = check_connection(client)
    client.close()
    if conn_test.get('connected'):
        print(f"  Connected to MongoDB: {conn_test.get('database')}.{conn_test.get('collection')}")
        print(f"  Registry records (approx.): {conn_test.get('registry_count', 0):,}")
    else:
        print(f"  WARNING: MongoDB connection failed: {conn_test.get('error')}")
        print("  Requests will fail until the database is reachable.")

    print(f"\nStarting server at http://0.0.0.0:{port}")
    print("Press Ctrl+C to stop\n")

    uvicorn.run(app, host="0.0.0.0", port=port, log_level="warning")


if __name__ == "__main__":
    main()
