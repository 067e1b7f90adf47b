# boutique_pos/routes/system.py
"""
System health endpoint.

Checks database connectivity and reports the size of the barcode pool, since
an empty pool blocks product creation.
"""

import time

from flask import Blueprint, current_app

from ..extensions import db
from ..models import Barcode, Product
from ..models.catalog import BARCODE_AVAILABLE
from ..time_utils import utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """
    Check database connectivity and basic operations.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        product_count = db.session.query(Product).count()
        available_barcodes = (
            db.session.query(Barcode).filter(Barcode.status == BARCODE_AVAILABLE).count()
        )

        elapsed_ms = (time.time() - start_time) * 1000

        return {
            "status": "healthy" if available_barcodes else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "products": product_count,
                "available_barcodes": available_barcodes,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy, or degraded (no available barcodes)
    - 503: database unreachable
    """
    database_health = check_database_health()
    http_status = 503 if database_health["status"] == "unhealthy" else 200

    return {
        "status": database_health["status"],
        "timestamp": utcnow().isoformat() + "Z",
        "checks": {"database": database_health},
    }, http_status
