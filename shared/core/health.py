"""
Health checks following the RFC draft "Health Check Response Format for HTTP
APIs" and the Kubernetes liveness / readiness / startup probe conventions.
"""

import os
import time
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Optional

import psutil
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

from .downstream import CircuitBreaker, CircuitState
from .logging_config import get_logger

logger = get_logger(__name__)


class HealthStatus(str, Enum):
    PASS = "pass"
    FAIL = "fail"
    WARN = "warn"


def _now() -> str:
    return datetime.utcnow().isoformat() + "Z"


class ServiceHealth:
    """
    Health endpoints for one service.

    ``engine`` is the service's SQLAlchemy engine; ``tables`` the tables the
    startup probe expects; ``breakers`` returns the circuit breakers guarding
    sibling services so an open circuit shows up as a readiness warning.
    """

    def __init__(
        self,
        service_name: str,
        version: str = "1.0.0",
        engine: Optional[Engine] = None,
        tables: Iterable[str] = (),
        breakers: Optional[Callable[[], Dict[str, CircuitBreaker]]] = None,
    ):
        self.service_name = service_name
        self.version = version
        self.engine = engine
        self.tables = tuple(tables)
        self.breakers = breakers
        self.start_time = time.time()
        self.checks_performed = 0
        self.last_check_time = None

    def create_health_router(self) -> APIRouter:
        router = APIRouter(tags=["health"])

        @router.get("/health", status_code=status.HTTP_200_OK)
        async def health_check() -> Dict[str, Any]:
            """Lightweight liveness check used by load balancers."""
            return {
                "status": HealthStatus.PASS,
                "service": self.service_name,
                "version": self.version,
                "releaseId": os.getenv("RELEASE_ID", "unknown"),
                "timestamp": _now(),
            }

        @router.get("/health/live", status_code=status.HTTP_200_OK)
        async def liveness() -> Dict[str, Any]:
            return {"status": "alive"}

        @router.get("/health/ready")
        def readiness() -> JSONResponse:
            """Checks every dependency and reports per-check detail."""
            checks = self.perform_readiness_checks()
            overall_status = self.calculate_overall_status(checks)
            status_code = (
                status.HTTP_503_SERVICE_UNAVAILABLE
                if overall_status == HealthStatus.FAIL
                else status.HTTP_200_OK
            )
            return JSONResponse(
                status_code=status_code,
                content={
                    "status": overall_status.value,
                    "version": self.version,
                    "releaseId": os.getenv("RELEASE_ID", "unknown"),
                    "checks": checks,
                    "serviceId": self.service_name,
                    "description": f"{self.service_name} microservice",
                    "timestamp": _now(),
                },
            )

        @router.get("/health/startup")
        def startup() -> JSONResponse:
            checks = {
                "database:schema": self._check_schema(),
                "config:environment": self._check_environment(),
            }
            if self.calculate_overall_status(checks) == HealthStatus.FAIL:
                return JSONResponse(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    content={"status": "starting", "checks": checks},
                )
            return JSONResponse(content={"status": "started", "checks": checks})

        @router.get("/metrics")
        async def metrics() -> Dict[str, Any]:
            process = psutil.Process()
            memory = process.memory_info()
            return {
                "service": self.service_name,
                "version": self.version,
                "uptime_seconds": time.time() - self.start_time,
                "checks_performed": self.checks_performed,
                "timestamp": _now(),
                "system": {
                    "memory_rss_bytes": memory.rss,
                    "memory_vms_bytes": memory.vms,
                    "cpu_percent": process.cpu_percent(),
                    "num_threads": process.num_threads(),
                },
            }

        return router

    def perform_readiness_checks(self) -> Dict[str, Dict[str, Any]]:
        self.checks_performed += 1
        self.last_check_time = time.time()

        checks = {"database:connectivity": self._check_database()}
        if self.breakers is not None:
            for name, breaker in self.breakers().items():
                checks[f"downstream:{name}"] = self._check_breaker(breaker)
        checks["storage:disk_space"] = self._check_disk_space()
        checks["system:memory"] = self._check_memory()
        return checks

    def _check_database(self) -> Dict[str, Any]:
        if self.engine is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore", "output": "No engine configured", "time": _now()}
        try:
            start_time = time.time()
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1")).fetchone()
            response_time = (time.time() - start_time) * 1000
            return {
                "status": HealthStatus.PASS,
                "componentType": "datastore",
                "observedValue": f"{response_time:.2f}",
                "observedUnit": "ms",
                "time": _now(),
            }
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return {"status": HealthStatus.FAIL, "componentType": "datastore", "output": str(e), "time": _now()}

    def _check_breaker(self, breaker: CircuitBreaker) -> Dict[str, Any]:
        state = breaker.state
        return {
            "status": HealthStatus.PASS if state == CircuitState.CLOSED else HealthStatus.WARN,
            "componentType": "component",
            "observedValue": state.value,
            "time": _now(),
        }

    def _check_disk_space(self) -> Dict[str, Any]:
        try:
            free_gb = psutil.disk_usage("/").free / (1024 ** 3)
            if free_gb < 1:
                status_val = HealthStatus.FAIL
            elif free_gb < 5:
                status_val = HealthStatus.WARN
            else:
                status_val = HealthStatus.PASS
            return {
                "status": status_val,
                "componentType": "system",
                "observedValue": f"{free_gb:.2f}",
                "observedUnit": "GB",
                "time": _now(),
            }
        except Exception as e:
            return {"status": HealthStatus.WARN, "componentType": "system", "output": str(e), "time": _now()}

    def _check_memory(self) -> Dict[str, Any]:
        try:
            available_mb = psutil.virtual_memory().available / (1024 ** 2)
            if available_mb < 100:
                status_val = HealthStatus.FAIL
            elif available_mb < 500:
                status_val = HealthStatus.WARN
            else:
                status_val = HealthStatus.PASS
            return {
                "status": status_val,
                "componentType": "system",
                "observedValue": f"{available_mb:.2f}",
                "observedUnit": "MB",
                "time": _now(),
            }
        except Exception as e:
            return {"status": HealthStatus.WARN, "componentType": "system", "output": str(e), "time": _now()}

    def _check_schema(self) -> Dict[str, Any]:
        """All expected tables exist."""
        if self.engine is None:
            return {"status": HealthStatus.WARN, "componentType": "datastore", "output": "No engine configured", "time": _now()}
        try:
            present = set(inspect(self.engine).get_table_names())
            missing = [t for t in self.tables if t not in present]
            if missing:
                return {
                    "status": HealthStatus.FAIL,
                    "componentType": "datastore",
                    "output": f"Missing tables: {', '.join(missing)}",
                    "time": _now(),
                }
            return {"status": HealthStatus.PASS, "componentType": "datastore", "time": _now()}
        except Exception as e:
            return {"status": HealthStatus.FAIL, "componentType": "datastore", "output": str(e), "time": _now()}

    def _check_environment(self) -> Dict[str, Any]:
        if os.getenv("DATABASE_URL"):
            return {"status": HealthStatus.PASS, "componentType": "configuration", "time": _now()}
        required_vars = ["POSTGRES_HOST", "POSTGRES_DB", "POSTGRES_USER", "POSTGRES_PASSWORD"]
        missing = [var for var in required_vars if not os.getenv(var)]
        if missing:
            return {
                "status": HealthStatus.WARN,
                "componentType": "configuration",
                "output": f"Using defaults for: {', '.join(missing)}",
                "time": _now(),
            }
        return {"status": HealthStatus.PASS, "componentType": "configuration", "time": _now()}

    @staticmethod
    def calculate_overall_status(checks: Dict[str, Dict[str, Any]]) -> HealthStatus:
        statuses = [check.get("status", HealthStatus.PASS) for check in checks.values()]
        if HealthStatus.FAIL in statuses:
            return HealthStatus.FAIL
        if HealthStatus.WARN in statuses:
            return HealthStatus.WARN
        return HealthStatus.PASS
