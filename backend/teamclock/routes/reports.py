# Overview: Flask API routes for attendance reports; balance, monthly, CSV export, calendar and day details.

from flask import Blueprint, Response, request, jsonify, g

from ..decorators import require_auth, require_any_permission
from ..services import report_service
from ..services.project_service import TenantAccessError
from ..services.report_service import ReportError, ReportAccessError
from teamclock.time_utils import parse_iso_date


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

REPORT_PERMISSIONS = ("VIEW_OWN_REPORTS", "VIEW_TEAM_REPORTS")


def _subject():
    """Resolve ?user_id= against the caller's hierarchy."""
    user_id = request.args.get("user_id", type=int)
    return report_service.resolve_report_subject(g.current_user, user_id)


def _report_error_response(e: Exception):
    if isinstance(e, ReportAccessError):
        return jsonify({"error": str(e)}), 403
    if isinstance(e, TenantAccessError):
        return jsonify({"error": str(e)}), 404
    return jsonify({"error": str(e)}), 400


@reports_bp.get("/balance")
@require_auth
@require_any_permission(*REPORT_PERMISSIONS)
def balance_route():
    try:
        return jsonify(report_service.dashboard_balance(_subject())), 200
    except (ReportAccessError, TenantAccessError) as e:
        return _report_error_response(e)


@reports_bp.get("/monthly")
@require_auth
@require_any_permission(*REPORT_PERMISSIONS)
def monthly_route():
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    if not year or not month:
        return jsonify({"error": "year and month are required"}), 400

    try:
        return jsonify(report_service.monthly_report(_subject(), year, month)), 200
    except (ReportAccessError, TenantAccessError, ReportError) as e:
        return _report_error_response(e)


@reports_bp.get("/calendar")
@require_auth
@require_any_permission(*REPORT_PERMISSIONS)
def calendar_route():
    try:
        start = parse_iso_date(request.args.get("start"))
        end = parse_iso_date(request.args.get("end"))
    except ValueError:
        return jsonify({"error": "Invalid date format, expected YYYY-MM-DD"}), 400

    try:
        return jsonify(report_service.calendar_totals(_subject(), start, end)), 200
    except (ReportAccessError, TenantAccessError, ReportError) as e:
        return _report_error_response(e)


@reports_bp.get("/day-details")
@require_auth
@require_any_permission(*REPORT_PERMISSIONS)
def day_details_route():
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return jsonify({"error": "Invalid date format, expected YYYY-MM-DD"}), 400

    try:
        return jsonify(report_service.day_details(_subject(), day)), 200
    except (ReportAccessError, TenantAccessError, ReportError) as e:
        return _report_error_response(e)


@reports_bp.get("/export")
@require_auth
@require_any_permission(*REPORT_PERMISSIONS)
def export_route():
    """Monthly report as a CSV download (UTF-8 with BOM so spreadsheets detect the encoding)."""
    year = request.args.get("year", type=int)
    month = request.args.get("month", type=int)
    if not year or not month:
        return jsonify({"error": "year and month are required"}), 400

    try:
        subject = _subject()
        content = report_service.monthly_csv(subject, year, month)
    except (ReportAccessError, TenantAccessError, ReportError) as e:
        return _report_error_response(e)

    filename = f"report-{subject.id}-{year}-{month:02d}.csv"
    return Response(
        "\ufeff" + content,
        mimetype="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
