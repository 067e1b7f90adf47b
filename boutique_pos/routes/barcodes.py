# Overview: Flask API routes for the barcode pool and scanner lookups.

from flask import Blueprint, Response, current_app, request

from ..responses import api_error, internal_error, success
from ..services import barcode_service, export_service, products_service, settings_service
from ..time_utils import utcnow
from ..validation import ApiError, NotFoundError, ValidationError, parse_int


barcodes_bp = Blueprint("barcodes", __name__, url_prefix="/api/barcodes")
barcode_lookup_bp = Blueprint("barcode_lookup", __name__, url_prefix="/api/barcode")


@barcodes_bp.post("/generate")
def generate_barcodes_route():
    """
    Body: {count} with 1 <= count <= 50.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        raw = payload.get("count")
        if raw is None:
            raise ValidationError(f"count must be between 1 and {barcode_service.MAX_GENERATE}")
        rows = barcode_service.generate_barcodes(parse_int(raw, "count"))
        return success(
            [b.to_dict() for b in rows],
            201,
            message=f"Generated {len(rows)} barcodes",
        )
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to generate barcodes")
        return internal_error()


@barcodes_bp.get("")
def list_barcodes_route():
    """
    Query params: page, limit, status (available|used|void|all), search
    """
    try:
        rows, pagination = barcode_service.list_barcodes(
            page=request.args.get("page", type=int),
            limit=request.args.get("limit", type=int),
            status=request.args.get("status"),
            search=request.args.get("search"),
        )
        return success([b.to_dict() for b in rows], pagination=pagination)
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to list barcodes")
        return internal_error()


@barcodes_bp.patch("/<int:barcode_pk>")
def update_barcode_status_route(barcode_pk: int):
    """Body: {status: available|void}"""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        row = barcode_service.set_status(barcode_pk, payload.get("status"))
        return success(row.to_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to update barcode status")
        return internal_error()


@barcodes_bp.post("/download")
def download_barcodes_route():
    """
    Body: {barcodeIds: [id, ...]} -> PDF label sheet.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return api_error(ValidationError("Invalid JSON payload"))

    try:
        ids = payload.get("barcodeIds") or []
        if not isinstance(ids, list) or not ids:
            raise ValidationError("barcodeIds must be a non-empty list")
        ids = [parse_int(i, "barcodeIds") for i in ids]

        rows = barcode_service.get_by_ids(ids)
        if not rows:
            raise NotFoundError("No barcodes found", code="BARCODE_NOT_FOUND")

        shop_name = settings_service.get_settings()["shopName"]
        pdf = export_service.build_barcode_labels_pdf([b.barcode for b in rows], shop_name=shop_name)
        filename = f"barcodes-{utcnow():%Y%m%d-%H%M%S}.pdf"
        return Response(
            pdf.getvalue(),
            mimetype=export_service.PDF_MIMETYPE,
            headers={"Content-Disposition": f"attachment; filename={filename}"},
        )
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to build barcode labels")
        return internal_error()


@barcode_lookup_bp.get("/available")
def barcode_availability_route():
    try:
        return success(barcode_service.get_availability())
    except Exception:
        current_app.logger.exception("Failed to read barcode availability")
        return internal_error()


def _scan(code: str):
    try:
        product = products_service.lookup_by_barcode(code)
        return success(product.to_scan_dict())
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to look up barcode")
        return internal_error()


@barcode_lookup_bp.get("/<code>")
def scan_barcode_route(code: str):
    return _scan(code)


@barcode_lookup_bp.get("")
def scan_barcode_query_route():
    return _scan(request.args.get("barcode", ""))
