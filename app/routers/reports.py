import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder

from app.core.deps import get_report_exporter
from app.core.rate_limit import rate_limited_user
from app.core.responses import success
from app.models.report import ReportRequest
from app.utils.report_export import ReportExporter

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/")
def list_reports(user_id: str = Depends(rate_limited_user), exporter: ReportExporter = Depends(get_report_exporter)):
    return success(exporter.list_reports(user_id))


@router.post("/")
def generate_report(
    request: ReportRequest,
    user_id: str = Depends(rate_limited_user),
    exporter: ReportExporter = Depends(get_report_exporter),
):
    """
    Build a monthly summary or expense analysis. JSON requests return the
    report body; CSV / PDF requests upload the file and return its record (201).
    """
    logger.info(f"Generating {request.type.value} report ({request.format.value}) for user {user_id}")
    result = exporter.generate(user_id, request)
    if not result.pop("exported"):
        return success(result["report"])
    return JSONResponse(status_code=201, content=jsonable_encoder(success(result)))
