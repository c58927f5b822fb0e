"""CSV and Excel export of the asset register and report summary."""

import csv
from io import BytesIO, StringIO

import openpyxl
from openpyxl.styles import Font, PatternFill

from django.conf import settings

from ..models import Asset
from .reports import build_report

# Threshold above which .iterator() is used for memory efficiency
ITERATOR_THRESHOLD = 1000
ITERATOR_CHUNK_SIZE = 1000

ASSET_HEADERS = [
    "Asset Code",
    "Name",
    "Category",
    "Department",
    "Brand",
    "Model",
    "Serial Number",
    "Status",
    "Condition",
    "Location",
    "Purchase Date",
    "Purchase Price",
    "Warranty Expiry",
    "Created",
]


def _asset_queryset(queryset=None):
    if queryset is None:
        queryset = Asset.objects.all()
    return queryset.select_related("category", "department").order_by(
        "asset_code"
    )


def _iterate(queryset):
    if queryset.count() > ITERATOR_THRESHOLD:
        return queryset.iterator(chunk_size=ITERATOR_CHUNK_SIZE)
    return queryset


def _asset_row(asset):
    return [
        asset.asset_code,
        asset.name,
        asset.category.name,
        asset.department.name if asset.department else "",
        asset.brand,
        asset.model,
        asset.serial_number or "",
        asset.get_status_display(),
        asset.get_condition_display(),
        asset.location,
        asset.purchase_date.isoformat() if asset.purchase_date else "",
        float(asset.purchase_price) if asset.purchase_price else "",
        asset.warranty_expiry.isoformat() if asset.warranty_expiry else "",
        asset.created_at.strftime("%Y-%m-%dT%H:%M:%S"),
    ]


def export_assets_csv(queryset=None) -> str:
    """Return the asset register as CSV text."""
    out = StringIO()
    writer = csv.writer(out)
    writer.writerow(ASSET_HEADERS)
    for asset in _iterate(_asset_queryset(queryset)):
        writer.writerow(_asset_row(asset))
    return out.getvalue()


def export_report_xlsx(queryset=None, today=None) -> BytesIO:
    """Return a workbook with Summary, Departments, Categories, Assets."""
    report = build_report(today)
    wb = openpyxl.Workbook()
    header_font = Font(bold=True)
    header_fill = PatternFill(
        start_color="1D4ED8", end_color="1D4ED8", fill_type="solid"
    )
    header_text = Font(bold=True, color="FFFFFF")

    ws_summary = wb.active
    ws_summary.title = "Summary"
    ws_summary.append([f"{settings.SITE_NAME} Asset Report"])
    ws_summary["A1"].font = Font(bold=True, size=14)
    ws_summary.append(["Generated", report["generated_on"].isoformat()])
    ws_summary.append([])
    ws_summary.append(["Total Assets", report["total_assets"]])
    ws_summary.append(["Active Users", report["total_users"]])
    ws_summary.append(["Active Issues", report["active_issues"]])
    ws_summary.append(["Overdue Issues", report["overdue_issues"]])
    ws_summary.append(["Asset Value", float(report["asset_value"])])
    ws_summary.append([])
    for status, count in report["status_counts"].items():
        ws_summary.append([status.title(), count])
    ws_summary.append([])
    ws_summary.append(["Month", "Issues"])
    ws_summary.cell(row=ws_summary.max_row, column=1).font = header_font
    ws_summary.cell(row=ws_summary.max_row, column=2).font = header_font
    for month in report["monthly_issues"]:
        ws_summary.append([month["label"], month["count"]])

    def _sheet(title, headers, rows):
        ws = wb.create_sheet(title)
        ws.append(headers)
        for col_idx in range(1, len(headers) + 1):
            cell = ws.cell(row=1, column=col_idx)
            cell.font = header_text
            cell.fill = header_fill
        for row in rows:
            ws.append(row)
        return ws

    ws_depts = _sheet(
        "Departments",
        ["Department", "Code", "Users", "Assets", "Value"],
        (
            [
                d.name,
                d.code,
                d.user_count,
                d.asset_count,
                float(d.asset_value or 0),
            ]
            for d in report["department_stats"]
        ),
    )
    ws_cats = _sheet(
        "Categories",
        ["Category", "Assets", "Issued", "Share %"],
        (
            [c.name, c.asset_count, c.issued_count, c.percentage]
            for c in report["category_distribution"]
        ),
    )
    ws_assets = _sheet(
        "Assets",
        ASSET_HEADERS,
        (_asset_row(a) for a in _iterate(_asset_queryset(queryset))),
    )

    # Auto-size columns
    for ws in [ws_summary, ws_depts, ws_cats, ws_assets]:
        for column_cells in ws.columns:
            max_length = max(
                len(str(cell.value or "")) for cell in column_cells
            )
            ws.column_dimensions[column_cells[0].column_letter].width = min(
                max_length + 2, 50
            )

    buffer = BytesIO()
    wb.save(buffer)
    buffer.seek(0)
    return buffer
