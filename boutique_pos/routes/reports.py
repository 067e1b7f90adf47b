# Overview: Flask API routes for dashboards, statistics and exports.

from flask import Blueprint, Response, current_app, request

from ..pagination import paginate_list
from ..responses import api_error, internal_error, success
from ..services import export_service, reporting_service, settings_service
from ..validation import ApiError, ValidationError

reports_bp = Blueprint("reports", __name__, url_prefix="/api")


@reports_bp.get("/stats/dashboard")
def dashboard_stats_route():
    try:
        return success(reporting_service.dashboard_stats())
    except Exception:
        current_app.logger.exception("Failed to load dashboard stats")
        return internal_error()


@reports_bp.get("/admin/statistics")
def admin_statistics_route():
    """Query params: startDate, endDate (default: last 30 days)"""
    try:
        return success(reporting_service.admin_statistics(
            request.args.get("startDate"), request.args.get("endDate"),
        ))
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load admin statistics")
        return internal_error()


def _export(kind: str):
    stats = reporting_service.admin_statistics(
        request.args.get("startDate"), request.args.get("endDate"),
    )
    settings = settings_service.get_settings()
    start, end = stats["period"]["start"][:10], stats["period"]["end"][:10]

    if kind == "xlsx":
        body = export_service.build_statistics_workbook(
            stats, shop_name=settings["shopName"], currency=settings["currency"],
        )
        mimetype = export_service.XLSX_MIMETYPE
    else:
        body = export_service.build_statistics_pdf(
            stats, shop_name=settings["shopName"], currency=settings["currency"],
        )
        mimetype = export_service.PDF_MIMETYPE

    filename = f"sales-report-{start}-to-{end}.{kind}"
    return Response(
        body.getvalue(),
        mimetype=mimetype,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@reports_bp.get("/admin/statistics/export")
def export_statistics_route():
    try:
        return _export("xlsx")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to export statistics workbook")
        return internal_error()


@reports_bp.get("/admin/statistics/export/pdf")
def export_statistics_pdf_route():
    try:
        return _export("pdf")
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to export statistics report")
        return internal_error()


@reports_bp.get("/cashier/statistics")
def cashier_statistics_route():
    """Query params: cashier_id (required)"""
    try:
        cashier_id = request.args.get("cashier_id", type=int)
        if cashier_id is None:
            raise ValidationError("cashier_id is required")
        return success(reporting_service.cashier_statistics(cashier_id))
    except ApiError as e:
        return api_error(e)
    except Exception:
        current_app.logger.exception("Failed to load cashier statistics")
        return internal_error()


@reports_bp.get("/customers")
def customers_route():
    """Query params: page, limit, search"""
    try:
        rows, pagination = paginate_list(
            reporting_service.customers(search=request.args.get("search")),
            request.args.get("page", type=int),
            request.args.get("limit", type=int),
        )
        return success(rows, pagination=pagination)
    except Exception:
        current_app.logger.exception("Failed to load customers")
        return internal_error()
