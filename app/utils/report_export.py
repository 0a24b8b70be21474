"""
Report generation and export.

Reports are built by FinanceAnalyzer from the user's rows, then either
returned as JSON or rendered to CSV / PDF, uploaded to S3 under
reports/<user_id>/<report_id>.<ext>, and recorded in the reports table.
"""
from __future__ import annotations

import csv
import io
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import ClientError
from fpdf import FPDF

from app.core.config import settings
from app.db import dynamo
from app.models.report import ReportFormat, ReportInDB, ReportRequest, ReportType
from app.utils.analyzer import FinanceAnalyzer
from app.utils.dates import current_month_bounds, month_bounds, to_datetime

logger = logging.getLogger(__name__)

# Uses the default AWS credential chain
s3 = boto3.client("s3", region_name=settings.S3_REGION)

CONTENT_TYPES = {
    ReportFormat.CSV: "text/csv",
    ReportFormat.PDF: "application/pdf",
}

EXPENSE_COLUMNS = ["Date", "Amount", "Category", "Merchant", "Description", "Payment Method"]


def render_expenses_csv(expenses: List[Dict[str, Any]]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(EXPENSE_COLUMNS)
    for exp in expenses:
        writer.writerow([
            to_datetime(exp["date"]).strftime("%Y-%m-%d"),
            exp.get("amount", 0),
            exp.get("category", ""),
            exp.get("merchant") or "",
            exp.get("description") or "",
            exp.get("payment_method") or "",
        ])
    return output.getvalue().encode()


def _summary_rows(summary: Dict[str, float]) -> List[List[Any]]:
    return [
        ["Total Income", summary["total_income"]],
        ["Total Expenses", summary["total_expenses"]],
        ["Net Savings", summary["net_savings"]],
        ["Savings Rate (%)", summary["savings_rate"]],
    ]


def render_summary_csv(report: Dict[str, Any]) -> bytes:
    output = io.StringIO()
    writer = csv.writer(output)
    writer.writerow(["Metric", "Value"])
    writer.writerows(_summary_rows(report["summary"]))
    return output.getvalue().encode()


def render_summary_pdf(report: Dict[str, Any], user_id: str) -> bytes:
    period = report["period"]
    pdf = FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", "B", 16)
    pdf.cell(0, 10, f"Monthly Summary - {period['year']}-{period['month']:02d}", new_x="LMARGIN", new_y="NEXT")

    pdf.set_font("Helvetica", "", 12)
    pdf.cell(0, 10, f"User ID: {user_id}", new_x="LMARGIN", new_y="NEXT")
    for metric, value in _summary_rows(report["summary"]):
        pdf.cell(0, 10, f"{metric}: {value}", new_x="LMARGIN", new_y="NEXT")
    pdf.ln(5)

    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 10, "Spending by Category:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 12)
    if report["expense_breakdown"]:
        for category, amount in report["expense_breakdown"].items():
            pdf.cell(0, 10, f"- {category}: {amount}", new_x="LMARGIN", new_y="NEXT")
    else:
        pdf.cell(0, 10, "None", new_x="LMARGIN", new_y="NEXT")

    pdf.ln(5)
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 10, "Budget Performance:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 12)
    for budget in report["budget_performance"]:
        pdf.cell(
            0, 10,
            f"- {budget['category']}: {budget['spent']} of {budget['limit']} ({budget['utilization']}%)",
            new_x="LMARGIN", new_y="NEXT",
        )

    pdf.ln(5)
    pdf.set_font("Helvetica", "B", 12)
    pdf.cell(0, 10, "Top Expenses:", new_x="LMARGIN", new_y="NEXT")
    pdf.set_font("Helvetica", "", 12)
    for exp in report["top_expenses"]:
        label = exp.get("merchant") or exp.get("description") or exp["category"]
        pdf.cell(0, 10, f"- {label}: {exp['amount']} ({exp['category']})", new_x="LMARGIN", new_y="NEXT")

    return bytes(pdf.output())


class ReportExporter:
    def __init__(self, store=dynamo, s3_client=None, bucket: Optional[str] = None) -> None:
        self.store = store
        self.s3 = s3_client or s3
        self.bucket = bucket or settings.S3_BUCKET_NAME
        self.analyzer = FinanceAnalyzer()

    def monthly_summary(self, user_id: str, year: int, month: int) -> Dict[str, Any]:
        start, end = month_bounds(year, month)
        return self.analyzer.monthly_summary(
            self.store.get_incomes(user_id, start=start, end=end),
            self.store.get_expenses(user_id, start=start, end=end),
            self.store.get_budgets(user_id, start=start, end=end),
            year,
            month,
        )

    def expense_analysis(self, user_id: str, start: datetime, end: datetime) -> Dict[str, Any]:
        expenses = self.store.get_expenses(user_id, start=start, end=end)
        return self.analyzer.expense_analysis(expenses, start, end)

    def build(self, user_id: str, request: ReportRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        if request.type == ReportType.MONTHLY_SUMMARY:
            return self.monthly_summary(user_id, request.year or now.year, request.month or now.month)

        default_start, default_end = current_month_bounds(now)
        start = to_datetime(request.start_date) if request.start_date else default_start
        end = to_datetime(request.end_date) if request.end_date else default_end
        if end < start:
            raise ValueError("end_date must not be before start_date")
        return self.expense_analysis(user_id, start, end)

    def generate(self, user_id: str, request: ReportRequest, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Build the requested report. JSON requests get the data back directly;
        CSV and PDF requests are exported and return the stored Report record.
        """
        now = now or datetime.utcnow()
        data = self.build(user_id, request, now)
        if request.format == ReportFormat.JSON:
            return {"exported": False, "report": data}
        return {"exported": True, **self.export(user_id, request.type, request.format, data, now)}

    def render(self, report_type: ReportType, report_format: ReportFormat, data: Dict[str, Any], user_id: str) -> bytes:
        if report_format == ReportFormat.CSV:
            if report_type == ReportType.MONTHLY_SUMMARY:
                return render_summary_csv(data)
            if report_type == ReportType.EXPENSE_ANALYSIS:
                return render_expenses_csv(data["expenses"])
        if report_format == ReportFormat.PDF and report_type == ReportType.MONTHLY_SUMMARY:
            return render_summary_pdf(data, user_id)
        raise ValueError(f"Unsupported report export: {report_type.value} as {report_format.value}")

    def export(
        self,
        user_id: str,
        report_type: ReportType,
        report_format: ReportFormat,
        data: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        now = now or datetime.utcnow()
        content = self.render(report_type, report_format, data, user_id)

        period = data.get("period", {})
        report = ReportInDB(
            user_id=user_id,
            type=report_type,
            title=f"{report_type.value} Report",
            format=report_format,
            start_date=period.get("start_date") or now,
            end_date=period.get("end_date") or now,
            file_size=len(content),
            generated_at=now,
        )
        report.file_url = self.upload(user_id, report.report_id, report_format, content)
        if report.file_url is None:
            raise RuntimeError("Failed to upload report file")

        item = report.model_dump(mode="json")
        if not self.store.put_report(item):
            logger.error(f"Report {report.report_id} uploaded but metadata was not stored (user {user_id})")
        logger.info(f"Exported {report_type.value} report {report.report_id} as {report_format.value} for user {user_id}")
        return {"report": item, "download_url": report.file_url}

    def upload(self, user_id: str, report_id: str, report_format: ReportFormat, content: bytes) -> Optional[str]:
        s3_key = f"reports/{user_id}/{report_id}.{report_format.value.lower()}"
        try:
            self.s3.upload_fileobj(
                io.BytesIO(content),
                self.bucket,
                s3_key,
                ExtraArgs={"ContentType": CONTENT_TYPES[report_format]},
            )
        except ClientError as e:
            logger.error(f"Failed to upload {s3_key}: {e.response['Error']['Message']}")
            return None
        return f"https://{self.bucket}.s3.{settings.S3_REGION}.amazonaws.com/{s3_key}"

    def list_reports(self, user_id: str) -> List[Dict[str, Any]]:
        reports = self.store.get_reports(user_id)
        return sorted(reports, key=lambda r: to_datetime(r["generated_at"]), reverse=True)
