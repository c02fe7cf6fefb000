"""
Health check endpoints
"""

import psutil
from fastapi import APIRouter, Depends

from allone.core.config import settings
from allone.core.database import Database, get_database
from allone.schemas.common import success_response
from allone.services.uploads import UploadService

router = APIRouter()


@router.get("/health")
def health_check():
    """Basic health check"""
    return success_response(
        {"status": "healthy", "service": settings.APP_NAME, "version": settings.APP_VERSION}
    )


@router.get("/health/detailed")
def detailed_health_check(database: Database = Depends(get_database)):
    """Database, upload storage and host resources"""
    checks = {"database": database.check_connection()}

    upload_dir = UploadService.upload_dir()
    disk = psutil.disk_usage(str(upload_dir))
    checks["storage"] = {
        "path": str(upload_dir),
        "writable": upload_dir.is_dir(),
        "disk_free_mb": round(disk.free / (1024 * 1024), 1),
    }

    memory = psutil.virtual_memory()
    checks["resources"] = {
        "cpu_percent": psutil.cpu_percent(interval=None),
        "memory_percent": memory.percent,
        "memory_available_mb": round(memory.available / (1024 * 1024), 1),
    }

    healthy = checks["database"]["status"] == "healthy"
    return success_response(
        {
            "status": "healthy" if healthy else "degraded",
            "service": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "checks": checks,
        }
    )
