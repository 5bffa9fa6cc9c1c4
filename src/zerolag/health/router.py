"""Health, readiness, and version endpoints."""

from fastapi import APIRouter

from zerolag.config import get_settings
from zerolag.redis_client import get_redis, redis_enabled
from zerolag.store import get_store

router = APIRouter()


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe: returns 200 if the process is alive."""
    return {"status": "healthy"}


@router.get("/ready")
async def readiness() -> dict[str, object]:
    """Readiness probe: checks the record store and, when configured, Redis."""
    settings = get_settings()
    checks: dict[str, object] = {}

    try:
        checks["store"] = "ok" if await get_store().ping() else "error: ping failed"
    except RuntimeError as exc:
        checks["store"] = f"error: {exc}"

    if redis_enabled():
        try:
            await get_redis().ping()
            checks["redis"] = "ok"
        except Exception as exc:  # noqa: BLE001
            checks["redis"] = f"error: {exc}"

    all_ok = all(v == "ok" for v in checks.values())
    return {
        "status": "ready" if all_ok else "degraded",
        "backend": settings.store_backend,
        "checks": checks,
    }


@router.get("/version")
async def version() -> dict[str, str]:
    """Return API version and environment."""
    settings = get_settings()
    return {
        "version": settings.app_version,
        "environment": settings.environment,
    }
