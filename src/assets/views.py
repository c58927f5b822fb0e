"""Views for the assets app."""

import datetime
import logging

from django_ratelimit.decorators import ratelimit

from django.contrib import messages
from django.contrib.auth import get_user_model
from django.contrib.auth.decorators import login_required
from django.core.cache import cache
from django.core.exceptions import PermissionDenied, ValidationError
from django.core.paginator import Paginator
from django.db.models import Count, Q
from django.http import HttpResponse, JsonResponse
from django.shortcuts import get_object_or_404, redirect, render
from django.urls import reverse
from django.utils import timezone
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.http import require_POST

from accounts.models import Role

from .forms import (
    AssetEditForm,
    AssetForm,
    AssetRequestForm,
    CategoryForm,
    DepartmentForm,
    IssueForm,
    MaintenanceCompleteForm,
    MaintenanceForm,
    RequestReviewForm,
    ReturnForm,
)
from .models import (
    Asset,
    AssetIssue,
    AssetRequest,
    AuditLog,
    Category,
    Department,
    MaintenanceRecord,
)
from .services import asset_requests, maintenance
from .services.audit import record_event
from .services.codes import generate_asset_code, register_asset, update_asset
from .services.export import export_assets_csv, export_report_xlsx
from .services.issues import (
    DEFAULT_RETURN_CONDITION,
    active_issues as filter_active_issues,
    annotate_overdue,
    issue_asset,
    return_asset,
    return_preset_dates,
)
from .services.navigation import dashboard_template
from .services.permissions import (
    admin_required,
    can_manage_assets,
    can_return_issue,
    get_user_role,
    manager_required,
)
from .services.reports import build_report, status_counts
from .services.scan import lookup_asset, normalize_code
from .services.schedule import adjacent_months, month_events

logger = logging.getLogger(__name__)

User = get_user_model()

PAGE_SIZE = 25


def _page(request, queryset, per_page=PAGE_SIZE):
    paginator = Paginator(queryset, per_page)
    page_obj = paginator.get_page(request.GET.get("page"))
    return {
        "page_obj": page_obj,
        "paginator": paginator,
        "is_paginated": page_obj.has_other_pages(),
    }


def _form_errors_from(form, exc: ValidationError):
    """Attach a service ValidationError to the form it came from."""
    if hasattr(exc, "error_dict"):
        for field, errors in exc.message_dict.items():
            form.add_error(field if field in form.fields else None, errors)
    else:
        form.add_error(None, exc.messages)


def _first_message(exc: ValidationError) -> str:
    return " ".join(exc.messages)


def _safe_next(request, default):
    next_url = request.POST.get("next") or request.GET.get("next")
    if next_url and url_has_allowed_host_and_scheme(
        next_url,
        allowed_hosts={request.get_host()},
        require_https=request.is_secure(),
    ):
        return next_url
    return default


# --- Dashboard ---


DASHBOARD_CACHE_TTL = 60  # seconds


def _compute_dashboard_aggregates():
    """Register-wide counts shared by the admin and technician dashboards."""
    counts = status_counts()
    return {
        "total_assets": sum(counts.values()),
        "status_counts": counts,
        "total_available": counts["available"],
        "total_issued": counts["issued"],
        "total_maintenance": counts["maintenance"],
        "total_retired": counts["retired"],
        "total_categories": Category.objects.filter(is_active=True).count(),
        "total_users": User.objects.filter(is_active=True).count(),
    }


@login_required
def dashboard(request):
    """Render the dashboard for the user's role."""
    role = get_user_role(request.user)
    today = timezone.localdate()
    context = {"role": role, "today": today}

    if role in (Role.ADMIN, Role.TECHNICIAN):
        aggregates = cache.get("dashboard_aggregates")
        if aggregates is None:
            aggregates = _compute_dashboard_aggregates()
            cache.set("dashboard_aggregates", aggregates, DASHBOARD_CACHE_TTL)
        context.update(aggregates)
        context["overdue_count"] = AssetIssue.objects.overdue(today).count()
        context["active_issue_count"] = AssetIssue.objects.active().count()
        context["pending_requests"] = AssetRequest.objects.filter(
            status="pending"
        ).count()

    if role == Role.ADMIN:
        context["recent_issues"] = annotate_overdue(
            AssetIssue.objects.select_related(
                "asset", "issued_to", "issued_to__profile"
            )[:8],
            today,
        )
        context["recent_assets"] = Asset.objects.select_related(
            "category"
        )[:5]
    elif role == Role.TECHNICIAN:
        context["active_issues"] = annotate_overdue(
            filter_active_issues(today=today)[:10], today
        )
        context["overdue_issues"] = annotate_overdue(
            AssetIssue.objects.overdue(today)
            .select_related("asset", "issued_to", "issued_to__profile")
            .order_by("expected_return_date")[:10],
            today,
        )
        context["upcoming_maintenance"] = MaintenanceRecord.objects.exclude(
            status="completed"
        ).select_related("asset")[:5]
    else:
        my_issues = annotate_overdue(
            AssetIssue.objects.active()
            .filter(issued_to=request.user)
            .select_related("asset", "asset__category")
            .order_by("expected_return_date"),
            today,
        )
        context["my_issues"] = my_issues
        context["my_overdue_count"] = sum(1 for i in my_issues if i.overdue)
        context["available_count"] = Asset.objects.filter(
            status="available"
        ).count()
        context["my_requests"] = AssetRequest.objects.filter(
            requester=request.user
        ).select_related("category")[:5]

    return render(request, dashboard_template(role), context)


# --- Asset register ---


ASSET_SORT_FIELDS = {
    "code": "asset_code",
    "-code": "-asset_code",
    "name": "name",
    "-name": "-name",
    "category": "category__name",
    "-category": "-category__name",
    "status": "status",
    "-status": "-status",
    "created": "created_at",
    "-created": "-created_at",
}


@login_required
def asset_list(request):
    """List assets with search and filters."""
    queryset = Asset.objects.select_related("category", "department")

    q = request.GET.get("q", "").strip()
    if q:
        queryset = queryset.filter(
            Q(name__icontains=q)
            | Q(asset_code__icontains=q)
            | Q(brand__icontains=q)
            | Q(model__icontains=q)
            | Q(serial_number__icontains=q)
        )

    category = request.GET.get("category", "")
    if category:
        queryset = queryset.filter(category__slug=category)

    status = request.GET.get("status", "")
    if status in dict(Asset.STATUS_CHOICES):
        queryset = queryset.filter(status=status)

    condition = request.GET.get("condition", "")
    if condition in dict(Asset.CONDITION_CHOICES):
        queryset = queryset.filter(condition=condition)

    department = request.GET.get("department", "")
    if department.isdigit():
        queryset = queryset.filter(department_id=department)

    sort = request.GET.get("sort", "-created")
    queryset = queryset.order_by(ASSET_SORT_FIELDS.get(sort, "-created_at"))

    context = {
        **_page(request, queryset),
        "q": q,
        "categories": Category.objects.filter(is_active=True),
        "departments": Department.objects.filter(is_active=True),
        "status_choices": Asset.STATUS_CHOICES,
        "condition_choices": Asset.CONDITION_CHOICES,
        "current_category": category,
        "current_status": status,
        "current_condition": condition,
        "current_department": department,
        "sort": sort,
        "can_manage": can_manage_assets(request.user),
    }
    return render(request, "assets/asset_list.html", context)


@login_required
def asset_detail(request, pk):
    """Asset detail with its issue and maintenance history."""
    asset = get_object_or_404(
        Asset.objects.select_related("category", "department", "created_by"),
        pk=pk,
    )
    today = timezone.localdate()
    issues = annotate_overdue(
        asset.issues.select_related(
            "issued_to", "issued_to__profile", "issued_by"
        )[:25],
        today,
    )
    active_issue = next((i for i in issues if i.status == "active"), None)
    return render(
        request,
        "assets/asset_detail.html",
        {
            "asset": asset,
            "issues": issues,
            "active_issue": active_issue,
            "maintenance_records": asset.maintenance_records.select_related(
                "technician"
            )[:25],
            "can_manage": can_manage_assets(request.user),
            "can_return": (
                active_issue is not None
                and can_return_issue(request.user, active_issue)
            ),
            "today": today,
        },
    )


@manager_required
def asset_create(request):
    """Register a new asset."""
    if request.method == "POST":
        form = AssetForm(request.POST)
        if form.is_valid():
            try:
                asset = register_asset(form.cleaned_data, request.user)
            except ValidationError as exc:
                _form_errors_from(form, exc)
            else:
                messages.success(
                    request,
                    f"Asset {asset.asset_code} registered successfully.",
                )
                return redirect("assets:asset_detail", pk=asset.pk)
    else:
        category = Category.objects.filter(
            slug=request.GET.get("category", "")
        ).first()
        form = AssetForm(
            initial={
                "category": category,
                "asset_code": generate_asset_code(category) or "",
            }
        )
    return render(request, "assets/asset_form.html", {"form": form})


@manager_required
def asset_edit(request, pk):
    """Edit an existing asset."""
    asset = get_object_or_404(Asset, pk=pk)
    if request.method == "POST":
        form = AssetEditForm(request.POST, instance=asset)
        if form.is_valid():
            try:
                update_asset(asset, form.cleaned_data, request.user)
            except ValidationError as exc:
                _form_errors_from(form, exc)
            else:
                messages.success(request, f"Asset {asset.asset_code} updated.")
                return redirect("assets:asset_detail", pk=asset.pk)
    else:
        form = AssetEditForm(instance=asset)
    return render(
        request, "assets/asset_form.html", {"form": form, "asset": asset}
    )


@manager_required
def generate_code(request):
    """Return a fresh unused asset code for a category as JSON.

    The category is given by slug (``category``) or pk (``category_id``).
    """
    category = None
    category_id = request.GET.get("category_id", "")
    slug = request.GET.get("category", "")
    if category_id.isdigit():
        category = Category.objects.filter(pk=category_id).first()
    elif slug:
        category = Category.objects.filter(slug=slug).first()
    code = generate_asset_code(category)
    if code is None:
        return JsonResponse(
            {
                "code": None,
                "warning": "Could not generate a unique code. Please enter "
                "one manually.",
            }
        )
    return JsonResponse({"code": code})


# --- Issue / return ---


@manager_required
def issue_create(request):
    """Issue an available asset to a person."""
    today = timezone.localdate()
    request_obj = None
    request_pk = request.GET.get("request") or request.POST.get("request")
    if request_pk:
        request_obj = AssetRequest.objects.filter(
            pk=request_pk, status="approved"
        ).first()

    if request.method == "POST":
        form = IssueForm(request.POST)
        if form.is_valid():
            try:
                issue = issue_asset(
                    form.cleaned_data["asset"],
                    form.cleaned_data["issued_to"],
                    request.user,
                    form.cleaned_data["expected_return_date"],
                    notes=form.cleaned_data["notes"],
                    today=today,
                )
            except ValidationError as exc:
                _form_errors_from(form, exc)
            else:
                if request_obj is not None:
                    asset_requests.fulfil_request(request_obj, issue)
                messages.success(
                    request,
                    f"{issue.asset.asset_code} issued to "
                    f"{issue.issued_to.get_display_name()}.",
                )
                return redirect("assets:active_issues")
    else:
        initial = {}
        if request.GET.get("asset"):
            initial["asset"] = request.GET["asset"]
        if request_obj is not None:
            initial["issued_to"] = request_obj.requester_id
            initial["expected_return_date"] = request_obj.expected_return_date
            if request_obj.asset_id:
                initial["asset"] = request_obj.asset_id
        form = IssueForm(initial=initial)

    return render(
        request,
        "assets/issue_form.html",
        {
            "form": form,
            "presets": return_preset_dates(today),
            "asset_request": request_obj,
        },
    )


@manager_required
def active_issues(request):
    """Active issues with search, category and overdue filters."""
    today = timezone.localdate()
    q = request.GET.get("q", "")
    category = request.GET.get("category", "")
    overdue_filter = request.GET.get("overdue", "")
    overdue = {"1": True, "0": False}.get(overdue_filter)

    issues = filter_active_issues(
        search=q, category=category, overdue=overdue, today=today
    )
    context = _page(request, issues)
    context["page_obj"].object_list = annotate_overdue(
        context["page_obj"].object_list, today
    )
    context.update(
        {
            "q": q,
            "current_category": category,
            "current_overdue": overdue_filter,
            "categories": Category.objects.filter(is_active=True),
            "overdue_count": AssetIssue.objects.overdue(today).count(),
            "return_form": ReturnForm(),
        }
    )
    return render(request, "assets/active_issues.html", context)


@login_required
def issue_return(request, pk):
    """Return an issued asset. Holders may return their own."""
    issue = get_object_or_404(
        AssetIssue.objects.select_related("asset", "issued_to"), pk=pk
    )
    if not can_return_issue(request.user, issue):
        raise PermissionDenied

    if request.method == "POST":
        form = ReturnForm(request.POST)
        if form.is_valid():
            try:
                return_asset(
                    issue,
                    request.user,
                    form.cleaned_data["return_condition"],
                    notes=form.cleaned_data["notes"],
                )
            except ValidationError as exc:
                messages.error(request, _first_message(exc))
            else:
                messages.success(
                    request, f"{issue.asset.asset_code} has been returned."
                )
            default = (
                "assets:active_issues"
                if can_manage_assets(request.user)
                else "assets:my_assets"
            )
            return redirect(_safe_next(request, reverse(default)))
    else:
        form = ReturnForm()

    today = timezone.localdate()
    annotate_overdue([issue], today)
    return render(
        request, "assets/issue_return.html", {"issue": issue, "form": form}
    )


@login_required
def my_assets(request):
    """Assets currently issued to the signed-in user, plus history."""
    today = timezone.localdate()
    mine = AssetIssue.objects.filter(issued_to=request.user).select_related(
        "asset", "asset__category", "issued_by"
    )
    current = annotate_overdue(
        mine.filter(status="active").order_by("expected_return_date"), today
    )
    history = mine.filter(status="returned").order_by("-actual_return_date")[
        :20
    ]
    return render(
        request,
        "assets/my_assets.html",
        {
            "current_issues": current,
            "history": history,
            "overdue_count": sum(1 for i in current if i.overdue),
            "return_form": ReturnForm(),
        },
    )


# --- Quick scan ---


@manager_required
def scan_view(request):
    """Code entry / camera scan page."""
    result = None
    code = normalize_code(request.GET.get("code", ""))
    if code:
        result = lookup_asset(code)
    return render(
        request,
        "assets/scan.html",
        {"code": code, "result": result, "return_form": ReturnForm()},
    )


@manager_required
@ratelimit(key="user", rate="60/m", method="GET", block=True)
def scan_lookup(request):
    """Look up a scanned code. HTMX gets a fragment, others JSON."""
    code = normalize_code(request.GET.get("code", ""))
    result = lookup_asset(code) if code else None

    if request.htmx:
        return render(
            request,
            "assets/partials/scan_result.html",
            {"code": code, "result": result, "return_form": ReturnForm()},
        )

    if not code:
        return JsonResponse({"found": False, "code": "", "error": "No code"})
    if result is None:
        return JsonResponse(
            {"found": False, "code": code, "error": "Asset not found"},
            status=404,
        )
    return JsonResponse({"found": True, "code": code, **result.as_dict()})


@login_required
@require_POST
def quick_return(request, pk):
    """One-step return from the scan page, condition defaults to good."""
    issue = get_object_or_404(
        AssetIssue.objects.select_related("asset"), pk=pk
    )
    if not can_return_issue(request.user, issue):
        raise PermissionDenied
    condition = request.POST.get("return_condition") or (
        DEFAULT_RETURN_CONDITION
    )
    try:
        return_asset(
            issue,
            request.user,
            condition,
            notes=request.POST.get("notes", ""),
        )
    except ValidationError as exc:
        messages.error(request, _first_message(exc))
    else:
        messages.success(
            request, f"{issue.asset.asset_code} returned ({condition})."
        )
    return redirect(
        _safe_next(
            request,
            f"{reverse('assets:scan')}?code={issue.asset.asset_code}",
        )
    )


# --- Maintenance ---


@manager_required
def maintenance_list(request):
    today = timezone.localdate()
    records = MaintenanceRecord.objects.select_related(
        "asset", "asset__category", "technician"
    )
    status = request.GET.get("status", "")
    if status == "overdue":
        records = maintenance.overdue_maintenance(today)
    elif status in dict(MaintenanceRecord.STATUS_CHOICES):
        records = records.filter(status=status)
    mtype = request.GET.get("type", "")
    if mtype in dict(MaintenanceRecord.TYPE_CHOICES):
        records = records.filter(maintenance_type=mtype)

    context = _page(request, records.order_by("scheduled_date"))
    page_records = list(context["page_obj"].object_list)
    for record in page_records:
        record.overdue = record.is_overdue(today)
    context["page_obj"].object_list = page_records
    context.update(
        {
            "current_status": status,
            "current_type": mtype,
            "status_choices": MaintenanceRecord.STATUS_CHOICES,
            "type_choices": MaintenanceRecord.TYPE_CHOICES,
            "overdue_count": maintenance.overdue_maintenance(today).count(),
            "complete_form": MaintenanceCompleteForm(),
        }
    )
    return render(request, "assets/maintenance_list.html", context)


@manager_required
def maintenance_create(request):
    if request.method == "POST":
        form = MaintenanceForm(request.POST)
        if form.is_valid():
            data = dict(form.cleaned_data)
            asset = data.pop("asset")
            try:
                record = maintenance.schedule_maintenance(
                    asset, request.user, **data
                )
            except ValidationError as exc:
                _form_errors_from(form, exc)
            else:
                messages.success(
                    request,
                    f"Maintenance scheduled for {asset.asset_code} on "
                    f"{record.scheduled_date:%d %b %Y}.",
                )
                return redirect("assets:maintenance_list")
    else:
        form = MaintenanceForm(
            initial={
                "asset": request.GET.get("asset"),
                "scheduled_date": timezone.localdate(),
                "technician": request.user.pk,
            }
        )
    return render(request, "assets/maintenance_form.html", {"form": form})


@manager_required
@require_POST
def maintenance_start(request, pk):
    record = get_object_or_404(MaintenanceRecord, pk=pk)
    try:
        maintenance.start_maintenance(record, request.user)
    except ValidationError as exc:
        messages.error(request, _first_message(exc))
    else:
        messages.success(request, "Maintenance started.")
    return redirect("assets:maintenance_list")


@manager_required
@require_POST
def maintenance_complete(request, pk):
    record = get_object_or_404(MaintenanceRecord, pk=pk)
    form = MaintenanceCompleteForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Enter a valid cost.")
        return redirect("assets:maintenance_list")
    try:
        maintenance.complete_maintenance(
            record,
            request.user,
            cost=form.cleaned_data["cost"],
            notes=form.cleaned_data["notes"],
        )
    except ValidationError as exc:
        messages.error(request, _first_message(exc))
    else:
        messages.success(request, "Maintenance completed.")
    return redirect("assets:maintenance_list")


# --- Calendar ---


@login_required
def calendar_view(request):
    """Month grid of maintenance and issue periods."""
    today = timezone.localdate()
    try:
        year = int(request.GET.get("year", today.year))
        month = int(request.GET.get("month", today.month))
        # The grid spills into the next month, so stay below MAXYEAR
        if not datetime.MINYEAR <= year < datetime.MAXYEAR:
            raise ValueError(year)
        first = datetime.date(year, month, 1)
    except (TypeError, ValueError):
        first = today.replace(day=1)
    year, month = first.year, first.month

    # Staff see only their own issues
    user = None if can_manage_assets(request.user) else request.user
    prev_month, next_month = adjacent_months(year, month)
    return render(
        request,
        "assets/calendar.html",
        {
            "weeks": month_events(year, month, user=user, today=today),
            "month_start": first,
            "prev_year": prev_month[0],
            "prev_month": prev_month[1],
            "next_year": next_month[0],
            "next_month": next_month[1],
            "weekdays": ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"],
        },
    )


# --- Reports ---


@admin_required
def reports(request):
    return render(request, "assets/reports.html", build_report())


@admin_required
def reports_export(request):
    """Download the asset register as CSV or the full report as Excel."""
    fmt = "csv" if request.GET.get("format") == "csv" else "xlsx"
    stamp = timezone.localdate().isoformat()
    record_event(
        request.user,
        "report_exported",
        resource="report",
        details=f"Exported {fmt.upper()} report",
        request=request,
    )
    if fmt == "csv":
        response = HttpResponse(
            export_assets_csv(), content_type="text/csv; charset=utf-8"
        )
        filename = f"assets-{stamp}.csv"
    else:
        response = HttpResponse(
            export_report_xlsx().getvalue(),
            content_type="application/vnd.openxmlformats-officedocument"
            ".spreadsheetml.sheet",
        )
        filename = f"asset-report-{stamp}.xlsx"
    response["Content-Disposition"] = f'attachment; filename="{filename}"'
    return response


# --- Asset requests ---


@login_required
def request_create(request):
    if request.method == "POST":
        form = AssetRequestForm(request.POST)
        if form.is_valid():
            try:
                asset_requests.submit_request(
                    request.user, **form.cleaned_data
                )
            except ValidationError as exc:
                _form_errors_from(form, exc)
            else:
                messages.success(request, "Your request has been submitted.")
                return redirect("assets:request_list")
    else:
        form = AssetRequestForm(
            initial={
                "requested_date": timezone.localdate(),
                "asset": request.GET.get("asset"),
            }
        )
    return render(request, "assets/request_form.html", {"form": form})


@login_required
def request_list(request):
    """Staff see their own requests; managers see everyone's."""
    manager = can_manage_assets(request.user)
    requests_qs = AssetRequest.objects.select_related(
        "requester", "requester__profile", "category", "asset", "reviewed_by"
    )
    if not manager:
        requests_qs = requests_qs.filter(requester=request.user)
    status = request.GET.get("status", "")
    if status in dict(AssetRequest.STATUS_CHOICES):
        requests_qs = requests_qs.filter(status=status)
    context = _page(request, requests_qs)
    context.update(
        {
            "can_review": manager,
            "current_status": status,
            "status_choices": AssetRequest.STATUS_CHOICES,
            "review_form": RequestReviewForm(),
        }
    )
    return render(request, "assets/request_list.html", context)


@manager_required
@require_POST
def request_review(request, pk):
    request_obj = get_object_or_404(AssetRequest, pk=pk)
    form = RequestReviewForm(request.POST)
    if not form.is_valid():
        messages.error(request, "Choose approve or reject.")
        return redirect("assets:request_list")
    try:
        asset_requests.review_request(
            request_obj,
            request.user,
            form.cleaned_data["decision"],
            notes=form.cleaned_data["notes"],
        )
    except ValidationError as exc:
        messages.error(request, _first_message(exc))
    else:
        messages.success(
            request, f"Request {form.cleaned_data['decision']}."
        )
    return redirect("assets:request_list")


# --- Categories / departments ---


@admin_required
def category_list(request):
    categories = Category.objects.annotate(
        asset_count=Count("assets")
    ).order_by("name")
    departments = Department.objects.annotate(
        asset_count=Count("assets", distinct=True),
        user_count=Count("profiles", distinct=True),
    ).order_by("name")
    return render(
        request,
        "assets/category_list.html",
        {"categories": categories, "departments": departments},
    )


def _simple_edit(request, form_class, instance, label, template):
    if request.method == "POST":
        form = form_class(request.POST, instance=instance)
        if form.is_valid():
            obj = form.save()
            messages.success(
                request,
                f"{label} '{obj.name}' "
                f"{'updated' if instance else 'created'}.",
            )
            return redirect("assets:category_list")
    else:
        form = form_class(instance=instance)
    return render(
        request,
        template,
        {"form": form, "object": instance, "label": label},
    )


@admin_required
def category_create(request):
    return _simple_edit(
        request, CategoryForm, None, "Category", "assets/simple_form.html"
    )


@admin_required
def category_edit(request, pk):
    category = get_object_or_404(Category, pk=pk)
    return _simple_edit(
        request, CategoryForm, category, "Category", "assets/simple_form.html"
    )


@admin_required
@require_POST
def category_toggle(request, pk):
    category = get_object_or_404(Category, pk=pk)
    category.is_active = not category.is_active
    category.save(update_fields=["is_active", "updated_at"])
    state = "activated" if category.is_active else "deactivated"
    messages.success(request, f"Category '{category.name}' {state}.")
    return redirect("assets:category_list")


@admin_required
def department_create(request):
    return _simple_edit(
        request, DepartmentForm, None, "Department", "assets/simple_form.html"
    )


@admin_required
def department_edit(request, pk):
    department = get_object_or_404(Department, pk=pk)
    return _simple_edit(
        request,
        DepartmentForm,
        department,
        "Department",
        "assets/simple_form.html",
    )


@admin_required
@require_POST
def department_toggle(request, pk):
    department = get_object_or_404(Department, pk=pk)
    department.is_active = not department.is_active
    department.save(update_fields=["is_active", "updated_at"])
    state = "activated" if department.is_active else "deactivated"
    messages.success(request, f"Department '{department.name}' {state}.")
    return redirect("assets:category_list")


# --- Audit log ---


AUDIT_DAY_RANGES = (1, 7, 30, 90)


@admin_required
def audit_log(request):
    entries = AuditLog.objects.select_related("user")
    action = request.GET.get("action", "")
    if action:
        entries = entries.filter(action=action)
    severity = request.GET.get("severity", "")
    if severity in dict(AuditLog.SEVERITY_CHOICES):
        entries = entries.filter(severity=severity)
    try:
        days = int(request.GET.get("days", 7))
    except (TypeError, ValueError):
        days = 7
    if days not in AUDIT_DAY_RANGES:
        days = 7
    since = timezone.now() - datetime.timedelta(days=days)
    entries = entries.filter(timestamp__gte=since)

    context = _page(request, entries, per_page=50)
    context.update(
        {
            "actions": AuditLog.objects.order_by("action")
            .values_list("action", flat=True)
            .distinct(),
            "severity_choices": AuditLog.SEVERITY_CHOICES,
            "day_ranges": AUDIT_DAY_RANGES,
            "current_action": action,
            "current_severity": severity,
            "current_days": days,
        }
    )
    return render(request, "assets/audit_log.html", context)
