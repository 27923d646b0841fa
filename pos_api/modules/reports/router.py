from fastapi import APIRouter, Query, Response

from pos_api.common.clock import local_today
from pos_api.dependencies.dbDependencies import db_dependency
from pos_api.dependencies.userDependencies import user_dependency
from pos_api.modules.reports.service import ReportService, SHIFT_REPORT_DAYS, GENERAL_REPORT_DAYS
from pos_api.modules.reports.pdf import render_general_report
from pos_api.modules.reports.schemas import ShiftSalesOut, ShiftReport, DailySummaryOut, GeneralReport

reports_router = APIRouter(prefix="/reportes", tags=["Reports"])


@reports_router.get("/turnos", response_model=ShiftReport)
def shift_report(
    db: db_dependency,
    current_user: user_dependency,
    dias: int = Query(SHIFT_REPORT_DAYS, gt=0, description="Días hacia atrás")
):
    """Venta bruta por corte de caja (fecha, turno)"""
    rows = ReportService(db).shift_report(dias)
    return ShiftReport(reports=[ShiftSalesOut.model_validate(r) for r in rows])


@reports_router.get("/general", response_model=GeneralReport)
def general_report(
    db: db_dependency,
    current_user: user_dependency,
    dias: int = Query(GENERAL_REPORT_DAYS, gt=0, description="Días hacia atrás")
):
    """
    Resumen diario.

    - **day_shift** / **night_shift**: suma de venta bruta por turno
    - **met**: el total del día alcanza la meta (SALES_TARGET)
    """
    summary = ReportService(db).general_summary(dias)
    return GeneralReport(
        days=summary.days,
        summary=[DailySummaryOut.model_validate(r) for r in summary.rows],
        total_day=summary.total_day,
        total_night=summary.total_night,
        total=summary.total
    )


@reports_router.get("/general/pdf")
def general_report_pdf(
    db: db_dependency,
    current_user: user_dependency,
    dias: int = Query(GENERAL_REPORT_DAYS, gt=0, description="Días hacia atrás")
):
    summary = ReportService(db).general_summary(dias)
    content = render_general_report(summary, local_today())
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": "inline; filename=reporte_general.pdf"}
    )
