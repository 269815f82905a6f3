"""HTTP surface for the reconciliation service (aiohttp)."""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator

from aiohttp import web

from vinsync.config import VinSyncConfig
from vinsync.exceptions import VinValidationError
from vinsync.models.record import VinEntry, parse_records
from vinsync.service import VinService

_logger = logging.getLogger(__name__)

SERVICE_KEY: web.AppKey[VinService] = web.AppKey("vin_service", VinService)

routes = web.RouteTableDef()


def _entry_response(entry: VinEntry | None, missing: str) -> web.Response:
    if entry is None:
        return web.json_response({"error": missing}, status=404)
    return web.json_response(entry.model_dump(mode="json"))


def _error_response(exc: Exception, context: str) -> web.Response:
    _logger.error("Error %s", context, exc_info=exc)
    return web.json_response({"error": str(exc)}, status=500)


@routes.post("/api/vin/process-batch")
async def process_batch(request: web.Request) -> web.Response:
    service = request.app[SERVICE_KEY]
    try:
        payload = await request.json()
    except json.JSONDecodeError:
        return web.json_response({"error": "Request body must be valid JSON"}, status=400)

    try:
        records = parse_records(payload)
        if not records:
            raise VinValidationError("Records list cannot be empty")
        outcome = await service.process_batch(records, request.query.get("batchTag"))
    except VinValidationError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except Exception as exc:
        return _error_response(exc, "processing VIN batch")
    return web.json_response(outcome.model_dump(mode="json", by_alias=True))


@routes.get("/api/vin/chassis/{vin}")
async def get_by_vin(request: web.Request) -> web.Response:
    vin = request.match_info["vin"]
    try:
        entry = await request.app[SERVICE_KEY].get_by_vin(vin)
    except VinValidationError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except Exception as exc:
        return _error_response(exc, "getting VIN by chassis")
    return _entry_response(entry, f"Chassis {vin} not found")


@routes.get("/api/vin/plate/{plate}")
async def get_by_plate(request: web.Request) -> web.Response:
    plate = request.match_info["plate"]
    try:
        entry = await request.app[SERVICE_KEY].get_by_plate(plate)
    except VinValidationError as exc:
        return web.json_response({"error": str(exc)}, status=400)
    except Exception as exc:
        return _error_response(exc, "getting VIN by plate")
    return _entry_response(entry, f"Plate {plate} not found")


@routes.delete("/api/vin/clear-all")
async def clear_all(request: web.Request) -> web.Response:
    try:
        deleted = await request.app[SERVICE_KEY].clear_all()
    except Exception as exc:
        return _error_response(exc, "clearing VIN data")
    return web.json_response({"message": "All VIN data cleared", "deleted": deleted})


def create_app(service: VinService) -> web.Application:
    """Build the application around an already-entered service."""
    app = web.Application()
    app[SERVICE_KEY] = service
    app.add_routes(routes)
    return app


def create_managed_app(config: VinSyncConfig) -> web.Application:
    """Build an application whose service lives as long as the app runs."""
    service = VinService(config)

    async def _service_ctx(_app: web.Application) -> AsyncIterator[None]:
        async with service:
            yield

    app = create_app(service)
    app.cleanup_ctx.append(_service_ctx)
    return app
