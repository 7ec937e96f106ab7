"""
FastAPI backend for AltiGuard.

Serves:
- REST API for active low-altitude alerts, alert history and
  per-aircraft altitude status
- Manual trigger of a detection cycle
- Prometheus metrics endpoint

The altitude monitor is constructed once in the lifespan and, unless
EMBED_MONITOR is false, runs its periodic checks inside this process.
"""

import os
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from contracts.constants import DEFAULT_HISTORY_LIMIT
from monitor.altitude_monitor import AltitudeMonitor
from monitor.factory import create_monitor
from backend.alert_service import AlertQueryService
from backend.metrics import get_metrics, HTTP_REQUESTS

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Configuration
BACKEND_HOST = os.getenv("BACKEND_HOST", "0.0.0.0")
BACKEND_PORT = int(os.getenv("BACKEND_PORT", "8000"))
EMBED_MONITOR = os.getenv("EMBED_MONITOR", "true").lower() == "true"
MAX_HISTORY_LIMIT = 1000


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _query_service(request: Request) -> Optional[AlertQueryService]:
    return getattr(request.app.state, "alert_service", None)


def create_app(monitor: Optional[AltitudeMonitor] = None, start_monitor: bool = EMBED_MONITOR) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        monitor: Pre-built monitor. If None, one is created from the
                 environment when the app starts.
        start_monitor: Run the periodic schedule for the app's lifetime.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("=" * 50)
        logger.info("AltiGuard Backend - Starting")
        logger.info("=" * 50)

        owned = monitor is None
        active_monitor = monitor or create_monitor()
        app.state.monitor = active_monitor
        app.state.alert_service = AlertQueryService(
            snapshots=active_monitor.snapshots,
            oracle=active_monitor.oracle,
            store=active_monitor.store,
            min_safe_altitude_ft=active_monitor.min_safe_altitude_ft,
        )
        logger.info("Alert query service initialized")

        if start_monitor:
            active_monitor.start()

        yield

        # Cleanup
        logger.info("Shutting down...")
        if owned:
            active_monitor.close()
        else:
            active_monitor.stop()
        app.state.alert_service = None
        logger.info("Shutdown complete")

    app = FastAPI(
        title="AltiGuard Backend API",
        description="Low-altitude hazard alerts outside airport zones",
        version="1.0.0",
        lifespan=lifespan
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # In production, specify allowed origins
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Middleware to track HTTP requests."""
        response = await call_next(request)
        route = request.scope.get("route")
        HTTP_REQUESTS.labels(
            method=request.method,
            path=route.path if route else request.url.path,
            status=response.status_code
        ).inc()
        return response

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": "AltiGuard Backend",
            "version": "1.0.0",
            "endpoints": {
                "active_alerts": "/api/altitude/alerts",
                "aircraft_status": "/api/altitude/aircraft/{callsign}",
                "history": "/api/altitude/history",
                "check": "/api/altitude/check",
                "health": "/health",
                "metrics": "/metrics"
            }
        }

    @app.get("/health")
    async def health(request: Request):
        """Health check endpoint."""
        active_monitor = getattr(request.app.state, "monitor", None)
        return {
            "status": "healthy" if active_monitor else "starting",
            "monitor_state": active_monitor.state.value if active_monitor else None,
            "min_safe_altitude_ft": active_monitor.min_safe_altitude_ft if active_monitor else None,
        }

    @app.get("/api/altitude/alerts")
    def get_active_alerts(request: Request):
        """Active low-altitude alerts, newest first."""
        service = _query_service(request)
        if not service:
            return _error(503, "Service not ready")
        try:
            alerts = service.get_active_alerts()
        except Exception as e:
            logger.error(f"Error serving active alerts: {e}", exc_info=True)
            return _error(500, str(e))
        return {
            "success": True,
            "count": len(alerts),
            "data": [alert.model_dump(mode="json") for alert in alerts]
        }

    @app.get("/api/altitude/aircraft/{callsign}")
    def get_aircraft_status(callsign: str, request: Request):
        """Current altitude safety status of one aircraft."""
        service = _query_service(request)
        if not service:
            return _error(503, "Service not ready")
        try:
            status = service.get_aircraft_altitude_status(callsign)
        except Exception as e:
            logger.error(f"Error serving altitude status for {callsign}: {e}", exc_info=True)
            return _error(500, str(e))
        if status is None:
            return _error(404, "Aircraft not found")
        return {"success": True, "data": status.model_dump(mode="json")}

    @app.get("/api/altitude/history")
    def get_alert_history(
        request: Request,
        limit: int = Query(DEFAULT_HISTORY_LIMIT, ge=1, le=MAX_HISTORY_LIMIT),
    ):
        """Non-expired alerts, most recent first."""
        service = _query_service(request)
        if not service:
            return _error(503, "Service not ready")
        try:
            alerts = service.get_alert_history(limit)
        except Exception as e:
            logger.error(f"Error serving alert history: {e}", exc_info=True)
            return _error(500, str(e))
        return {
            "success": True,
            "count": len(alerts),
            "data": [alert.model_dump(mode="json") for alert in alerts]
        }

    @app.post("/api/altitude/check")
    def run_check(request: Request):
        """Run one detection cycle now and return the alerts it raised."""
        active_monitor = getattr(request.app.state, "monitor", None)
        if not active_monitor:
            return _error(503, "Service not ready")
        alerts = active_monitor.check()
        return {
            "success": True,
            "count": len(alerts),
            "data": [alert.model_dump(mode="json") for alert in alerts]
        }

    @app.get("/metrics")
    async def metrics():
        """Prometheus metrics endpoint."""
        return await get_metrics()

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "backend.main:app",
        host=BACKEND_HOST,
        port=BACKEND_PORT,
        log_level="info"
    )
