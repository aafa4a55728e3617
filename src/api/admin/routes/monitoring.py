"""
Monitoring & Health Check Endpoints
====================================
System health and request metrics
"""
from fastapi import APIRouter, Request

from src.core.circuit_breaker import get_all_circuit_breakers_status
from src.core.database import check_database_health
from src.core.monitoring.metrics import metrics

router = APIRouter(prefix="/monitoring", tags=["Monitoring"])


@router.get("/health")
def health_check(request: Request):
    """
    🏥 Health check used by load balancers

    The database is only checked when customers are stored in it.
    """
    breakers = get_all_circuit_breakers_status()
    services = {
        "customers_store": request.app.state.customers_store_backend,
        "circuit_breakers": breakers,
    }
    healthy = True

    if request.app.state.customers_store_backend == "database":
        db_health = check_database_health()
        services["database"] = "up" if db_health["healthy"] else "down"
        healthy = db_health["healthy"]

    return {
        "status": "healthy" if healthy else "unhealthy",
        "degraded": any(b["state"] != "CLOSED" for b in breakers.values()),
        "services": services,
    }


@router.get("/metrics")
async def get_metrics():
    """
    📊 Request metrics
    """
    return metrics.get_metrics_summary()
