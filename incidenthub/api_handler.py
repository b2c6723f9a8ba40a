"""Incident Hub API - FastAPI service.

HTTP surface for alerts, citizen reports, the nearby view and relief
centers. Part of the imperative shell - handles HTTP I/O; every decision
is delegated to the engines wired up in incidenthub.services.

Locations are exchanged as GeoJSON points:
    {"type": "Point", "coordinates": [longitude, latitude]}
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Literal

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from incidenthub.core.aggregate import SortOrder
from incidenthub.core.config import Config
from incidenthub.core.errors import FieldError, IncidentHubError, NotFound, ValidationError
from incidenthub.core.feed import ExternalEvent, event_to_alert_draft, sort_by_recency
from incidenthub.core.models import (
    AggregatedRecord,
    Alert,
    AlertDraft,
    AlertStatus,
    ReliefCenter,
    Report,
    ReportStatus,
)
from incidenthub.core.validation import (
    validate_alert_input,
    validate_point,
    validate_radius,
    validate_relief_center_input,
)
from incidenthub.registry import ResourceRegistry
from incidenthub.services import Services, build_services


logger = logging.getLogger(__name__)


DEFAULT_IMPORT_LIMIT = 5


# ===== Request Models =====

class PointIn(BaseModel):
    type: str = "Point"
    coordinates: list[Any] = Field(default_factory=list)


class ReportCreate(BaseModel):
    type: Any = None
    details: Any = None
    location: PointIn | None = None
    submitted_by: str | None = None


class ReportTransition(BaseModel):
    action: Any = None


class AlertCreate(BaseModel):
    type: Any = None
    title: Any = None
    details: Any = None
    location: PointIn | None = None
    severity: Any = None
    source: Any = None


class AlertImport(BaseModel):
    event_ids: list[str] | None = None
    limit: int = Field(default=DEFAULT_IMPORT_LIMIT, ge=1, le=50)


class ReliefCenterCreate(BaseModel):
    name: Any = None
    details: Any = None
    lat: Any = None
    lng: Any = None


class PointQuery(BaseModel):
    lat: Any = None
    lng: Any = None


class AnalyzeRequest(BaseModel):
    text: str


# ===== Serialization =====

def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def alert_to_dict(alert: Alert) -> dict[str, Any]:
    return {
        "id": alert.id,
        "type": alert.type,
        "title": alert.title,
        "details": alert.details,
        "location": alert.location.to_geojson(),
        "severity": alert.severity.value,
        "status": alert.status.value,
        "source": alert.source,
        "report_id": alert.report_id,
        "created_at": _iso(alert.created_at),
        "resolved_at": _iso(alert.resolved_at),
    }


def report_to_dict(report: Report) -> dict[str, Any]:
    return {
        "id": report.id,
        "type": report.incident_type.value,
        "details": report.details,
        "location": report.location.to_geojson(),
        "status": report.status.value,
        "priority": report.priority.value,
        "submitted_by": report.submitted_by,
        "created_at": _iso(report.created_at),
    }


def relief_center_to_dict(center: ReliefCenter) -> dict[str, Any]:
    return {
        "id": center.id,
        "name": center.name,
        "details": center.details,
        "location": center.location.to_geojson(),
        "created_at": _iso(center.created_at),
    }


def record_to_dict(record: AggregatedRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "origin": record.origin.value,
        "type": record.type,
        "title": record.title,
        "details": record.details,
        "location": record.location.to_geojson(),
        "severity": record.severity.value,
        "status": record.status,
        "provenance": record.provenance,
        "created_at": _iso(record.created_at),
        "distance_km": round(record.distance_km, 2) if record.distance_km is not None else None,
    }


def _point_args(location: PointIn | None) -> tuple[Any, Any]:
    """Extract (latitude, longitude) from a GeoJSON point, None where absent."""
    if location is None or len(location.coordinates) < 2:
        return None, None
    return location.coordinates[1], location.coordinates[0]


# ===== Error Handling =====

async def incident_hub_error_handler(request: Request, exc: IncidentHubError) -> JSONResponse:
    """Render service errors as {"error": {"code", "message", "fields"?}}."""
    if exc.status_code >= 500:
        logger.error("%s %s: %s: %s", request.method, request.url.path, exc.code, exc.message)
    else:
        logger.info("%s %s: %s: %s", request.method, request.url.path, exc.code, exc.message)

    body: dict[str, Any] = {"error": {"code": exc.code, "message": exc.message}}
    if isinstance(exc, ValidationError):
        body["error"]["fields"] = [
            {"field": e.field, "message": e.message} for e in exc.errors
        ]
    return JSONResponse(status_code=exc.status_code, content=body)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Render request-shape errors in the same format as ValidationError."""
    fields = [
        FieldError(
            field=".".join(str(loc) for loc in error["loc"] if loc not in ("body", "query", "path")),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    return await incident_hub_error_handler(request, ValidationError(fields))


# ===== Application =====

def create_app(config: Config | None = None, services: Services | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Application configuration (defaults if None)
        services: Pre-built service graph; when None one is built from config
            on first use and closed on shutdown

    Returns:
        Configured FastAPI app
    """
    if config is None:
        config = services.config if services is not None else Config()

    registry: ResourceRegistry[Services] | None = None
    if services is None:
        registry = ResourceRegistry(lambda: build_services(config), closer=Services.close)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting Incident Hub API (backend=%s)", config.store_backend)
        yield
        if registry is not None:
            registry.release(id(app))
        logger.info("Incident Hub API stopped")

    app = FastAPI(
        title="Incident Hub API",
        description="Citizen reports, operator alerts and external hazard events around a location",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    app.add_exception_handler(IncidentHubError, incident_hub_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    def get_services() -> Services:
        if services is not None:
            return services
        return registry.acquire(id(app))

    # ===== Public Endpoints =====

    @app.get("/health")
    def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.get("/api/alerts")
    def list_alerts(svc: Services = Depends(get_services)):
        """List active alerts, newest first."""
        alerts = svc.alert_store.list_by_status(AlertStatus.ACTIVE, svc.config.alert_list_limit)
        return {"alerts": [alert_to_dict(a) for a in alerts], "count": len(alerts)}

    @app.get("/api/alerts/nearby")
    def nearby_alerts(
        lat: float | None = Query(default=None),
        lng: float | None = Query(default=None),
        radius_km: float | None = Query(default=None),
        view: Literal["observer", "responder"] = Query(default="observer"),
        order: SortOrder | None = Query(default=None),
        svc: Services = Depends(get_services),
    ):
        """Merged alerts, verified reports and feed events around a point.

        Without lat/lng every active record is returned.
        """
        preset = svc.view(view)

        center = None
        if lat is not None or lng is not None:
            center = validate_point(lat, lng)

        radius = validate_radius(radius_km) if radius_km is not None else preset.radius_km
        result = svc.aggregator.query_nearby(center, radius, order or preset.order)

        return {
            "center": (
                {"lat": result.center.latitude, "lng": result.center.longitude}
                if result.center is not None else None
            ),
            "radius_km": radius,
            "view": preset.name,
            "order": (order or preset.order).value,
            "feed_degraded": result.feed_degraded,
            "records": [record_to_dict(r) for r in result.records],
            "count": len(result.records),
        }

    @app.post("/api/alerts", status_code=201)
    def create_alert(body: AlertCreate, svc: Services = Depends(get_services)):
        """Create an operator alert; severity defaults to moderate."""
        latitude, longitude = _point_args(body.location)
        alert_input = validate_alert_input(
            body.type, body.title, body.details, latitude, longitude,
            severity=body.severity, source=body.source,
        )
        alert = svc.alert_store.create(AlertDraft(
            type=alert_input.type,
            title=alert_input.title,
            details=alert_input.details,
            location=alert_input.location,
            severity=alert_input.severity,
            source=alert_input.source,
        ))
        return {"id": alert.id, "alert": alert_to_dict(alert)}

    @app.patch("/api/alerts/{alert_id}/resolve")
    def resolve_alert(alert_id: str, svc: Services = Depends(get_services)):
        """Mark an alert resolved."""
        alert = svc.alert_store.resolve(alert_id)
        if alert is None:
            raise NotFound("Alert", alert_id)
        return alert_to_dict(alert)

    @app.post("/api/alerts/import", status_code=201)
    def import_alerts(body: AlertImport | None = None, svc: Services = Depends(get_services)):
        """Materialize external feed events as active alerts.

        Selects the requested events, or the most recent ones when no ids
        are given. Feed failure is a 502 here: there is nothing to fall
        back on.
        """
        body = body or AlertImport()
        events = svc.feed_client.fetch_events()

        missing: list[str] = []
        if body.event_ids:
            by_id = {e.id: e for e in events}
            selected: list[ExternalEvent] = []
            for event_id in body.event_ids:
                if event_id in by_id:
                    selected.append(by_id[event_id])
                else:
                    missing.append(event_id)
        else:
            selected = sort_by_recency(events)[:body.limit]

        created = [svc.alert_store.create(event_to_alert_draft(e)) for e in selected]

        logger.info("Imported %d feed events as alerts", len(created))

        return {
            "imported": [alert_to_dict(a) for a in created],
            "count": len(created),
            "missing": missing,
        }

    @app.post("/api/reports", status_code=201)
    def submit_report(body: ReportCreate, svc: Services = Depends(get_services)):
        """Submit a citizen report."""
        latitude, longitude = _point_args(body.location)
        report = svc.lifecycle.submit(
            body.type, body.details, latitude, longitude, submitted_by=body.submitted_by,
        )
        return {"id": report.id, "report": report_to_dict(report)}

    @app.get("/api/reports")
    def list_reports(
        status: str = Query(default=ReportStatus.PENDING.value),
        svc: Services = Depends(get_services),
    ):
        """List reports by status, newest first."""
        parsed = next((s for s in ReportStatus if s.value == status.strip().lower()), None)
        if parsed is None:
            allowed = ", ".join(s.value for s in ReportStatus)
            raise ValidationError([FieldError("status", f"must be one of: {allowed}")])

        reports = svc.lifecycle.list_by_status(parsed, svc.config.report_list_limit)
        return {"reports": [report_to_dict(r) for r in reports], "count": len(reports)}

    @app.get("/api/reports/{report_id}")
    def get_report(report_id: str, svc: Services = Depends(get_services)):
        return report_to_dict(svc.lifecycle.get(report_id))

    @app.patch("/api/reports/{report_id}")
    def transition_report(
        report_id: str,
        body: ReportTransition,
        svc: Services = Depends(get_services),
    ):
        """Apply accept, reject, resolve or confirm to a report."""
        result = svc.lifecycle.transition(report_id, body.action)
        return {
            "id": result.report_id,
            "action": result.action.value,
            "status": result.status.value if result.status is not None else None,
            "deleted": result.status is None,
            "alert_created": result.alert_created,
        }

    @app.post("/api/reports/analyze")
    def analyze_report(body: AnalyzeRequest, svc: Services = Depends(get_services)):
        """Classify report text into a priority."""
        result = svc.priority_client.classify(body.text)
        return {"priority": result.priority.value, "score": result.score}

    @app.get("/api/relief-centers")
    def list_relief_centers(svc: Services = Depends(get_services)):
        centers = svc.relief_center_store.list_all(svc.config.relief_center_list_limit)
        return {"relief_centers": [relief_center_to_dict(c) for c in centers], "count": len(centers)}

    @app.post("/api/relief-centers", status_code=201)
    def create_relief_center(body: ReliefCenterCreate, svc: Services = Depends(get_services)):
        center_input = validate_relief_center_input(body.name, body.details, body.lat, body.lng)
        center = svc.relief_center_store.create(center_input)
        return {"id": center.id, "relief_center": relief_center_to_dict(center)}

    @app.delete("/api/relief-centers/{center_id}")
    def delete_relief_center(center_id: str, svc: Services = Depends(get_services)):
        if not svc.relief_center_store.delete(center_id):
            raise NotFound("Relief center", center_id)
        return {"deleted": center_id}

    @app.post("/api/relief-centers/nearest")
    def nearest_relief_center(body: PointQuery, svc: Services = Depends(get_services)):
        """Closest relief center to a point, with no radius cap."""
        point = validate_point(body.lat, body.lng)
        found = svc.locator.nearest(point)
        result = relief_center_to_dict(found.center)
        result["distance_km"] = round(found.distance_km, 2)
        return result

    return app
