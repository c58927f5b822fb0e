"""Models for AssetDesk asset tracking."""

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.urls import reverse
from django.utils import timezone

CONDITION_CHOICES = [
    ("excellent", "Excellent"),
    ("good", "Good"),
    ("fair", "Fair"),
    ("poor", "Poor"),
    ("damaged", "Damaged"),
]


class Department(models.Model):
    """Organisational unit that owns assets and employs staff."""

    name = models.CharField(max_length=100, unique=True)
    code = models.CharField(max_length=20, unique=True)
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)


class Category(models.Model):
    """Asset type. ``code_prefix`` is the middle part of asset codes."""

    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=50, unique=True)
    code_prefix = models.CharField(
        max_length=10,
        help_text="Used in generated asset codes, e.g. PROJ",
    )
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name_plural = "categories"
        ordering = ["name"]

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        self.code_prefix = (self.code_prefix or "").strip().upper()
        super().save(*args, **kwargs)


class Asset(models.Model):
    """Individual trackable piece of university equipment."""

    STATUS_CHOICES = [
        ("available", "Available"),
        ("issued", "Issued"),
        ("maintenance", "Maintenance"),
        ("retired", "Retired"),
    ]

    CONDITION_CHOICES = CONDITION_CHOICES

    asset_code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=200)
    category = models.ForeignKey(
        Category,
        on_delete=models.PROTECT,
        related_name="assets",
    )
    department = models.ForeignKey(
        Department,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="assets",
    )
    brand = models.CharField(max_length=100, blank=True)
    model = models.CharField(max_length=100, blank=True)
    serial_number = models.CharField(
        max_length=100,
        unique=True,
        null=True,
        blank=True,
        help_text="Manufacturer serial; unique when present",
    )
    purchase_date = models.DateField(null=True, blank=True)
    purchase_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    warranty_expiry = models.DateField(null=True, blank=True)
    condition = models.CharField(
        max_length=20, choices=CONDITION_CHOICES, default="good"
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="available"
    )
    location = models.CharField(max_length=200, blank=True)
    description = models.TextField(blank=True)
    qr_code_url = models.URLField(max_length=500, blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_assets",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status"], name="idx_asset_status"),
            models.Index(fields=["condition"], name="idx_asset_condition"),
            models.Index(fields=["created_at"], name="idx_asset_created_at"),
        ]

    def __str__(self):
        return f"{self.name} ({self.asset_code})"

    def get_absolute_url(self):
        return reverse("assets:asset_detail", kwargs={"pk": self.pk})

    def save(self, *args, **kwargs):
        self.asset_code = (self.asset_code or "").strip().upper()
        # Blank serials are stored as NULL so the unique index ignores them
        serial = (self.serial_number or "").strip()
        self.serial_number = serial or None
        super().save(*args, **kwargs)

    def clean(self):
        super().clean()
        if (
            self.purchase_date
            and self.warranty_expiry
            and self.warranty_expiry < self.purchase_date
        ):
            raise ValidationError(
                {
                    "warranty_expiry": "Warranty cannot expire before the "
                    "purchase date."
                }
            )

    @property
    def is_available(self):
        return self.status == "available"

    @property
    def active_issue(self):
        """Return the open issue for this asset, if any."""
        return (
            self.issues.filter(status="active")
            .select_related("issued_to", "issued_by")
            .first()
        )


class AssetIssueQuerySet(models.QuerySet):
    def active(self):
        return self.filter(status="active")

    def overdue(self, today=None):
        """Active issues whose expected return date has passed."""
        today = today or timezone.localdate()
        return self.active().filter(expected_return_date__lt=today)


class AssetIssue(models.Model):
    """A loan of one asset to one person.

    Whether an issue is overdue is never stored; see
    :mod:`assets.services.issues`.
    """

    STATUS_CHOICES = [
        ("active", "Active"),
        ("returned", "Returned"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="issues"
    )
    issued_to = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="received_issues",
    )
    issued_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="performed_issues",
    )
    issue_date = models.DateTimeField(default=timezone.now)
    expected_return_date = models.DateField()
    actual_return_date = models.DateTimeField(null=True, blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="active"
    )
    return_condition = models.CharField(
        max_length=20, choices=CONDITION_CHOICES, blank=True
    )
    returned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="received_returns",
    )
    notes = models.TextField(blank=True)
    return_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AssetIssueQuerySet.as_manager()

    class Meta:
        ordering = ["-issue_date"]
        constraints = [
            models.UniqueConstraint(
                fields=["asset"],
                condition=models.Q(status="active"),
                name="unique_active_issue_per_asset",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="idx_issue_status"),
            models.Index(
                fields=["expected_return_date"],
                name="idx_issue_expected_return",
            ),
        ]

    def __str__(self):
        return f"{self.asset.asset_code} -> {self.issued_to}"

    @property
    def is_active(self):
        return self.status == "active"


class MaintenanceRecord(models.Model):
    """Scheduled or completed work on an asset."""

    TYPE_CHOICES = [
        ("preventive", "Preventive"),
        ("corrective", "Corrective"),
        ("emergency", "Emergency"),
    ]

    STATUS_CHOICES = [
        ("scheduled", "Scheduled"),
        ("in_progress", "In Progress"),
        ("completed", "Completed"),
    ]

    asset = models.ForeignKey(
        Asset, on_delete=models.PROTECT, related_name="maintenance_records"
    )
    maintenance_type = models.CharField(
        max_length=20, choices=TYPE_CHOICES, default="preventive"
    )
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="scheduled"
    )
    description = models.TextField()
    scheduled_date = models.DateField()
    completed_date = models.DateField(null=True, blank=True)
    technician = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="maintenance_assignments",
    )
    cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        null=True,
        blank=True,
        validators=[MinValueValidator(0)],
    )
    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name="created_maintenance",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["scheduled_date"]
        indexes = [
            models.Index(fields=["status"], name="idx_maintenance_status"),
            models.Index(
                fields=["scheduled_date"], name="idx_maintenance_scheduled"
            ),
        ]

    def __str__(self):
        return (
            f"{self.get_maintenance_type_display()} - "
            f"{self.asset.asset_code} ({self.scheduled_date})"
        )

    def is_overdue(self, today=None):
        """Open work whose scheduled date has passed."""
        if self.status == "completed":
            return False
        today = today or timezone.localdate()
        return self.scheduled_date < today


class AssetRequest(models.Model):
    """A staff member asking to borrow an asset of some category."""

    PRIORITY_CHOICES = [
        ("low", "Low"),
        ("medium", "Medium"),
        ("high", "High"),
    ]

    STATUS_CHOICES = [
        ("pending", "Pending"),
        ("approved", "Approved"),
        ("rejected", "Rejected"),
        ("fulfilled", "Fulfilled"),
    ]

    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="asset_requests",
    )
    category = models.ForeignKey(
        Category, on_delete=models.PROTECT, related_name="requests"
    )
    asset = models.ForeignKey(
        Asset,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="requests",
        help_text="Preferred asset, if the requester has one in mind",
    )
    purpose = models.TextField()
    requested_date = models.DateField()
    expected_return_date = models.DateField()
    priority = models.CharField(
        max_length=10, choices=PRIORITY_CHOICES, default="medium"
    )
    notes = models.TextField(blank=True)
    status = models.CharField(
        max_length=20, choices=STATUS_CHOICES, default="pending"
    )
    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reviewed_requests",
    )
    reviewed_at = models.DateTimeField(null=True, blank=True)
    review_notes = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.category} for {self.requester} ({self.status})"

    def clean(self):
        super().clean()
        if (
            self.requested_date
            and self.expected_return_date
            and self.expected_return_date < self.requested_date
        ):
            raise ValidationError(
                {
                    "expected_return_date": "Return date must be on or after "
                    "the requested date."
                }
            )


class AuditLog(models.Model):
    """Immutable record of security-relevant and data-changing actions."""

    SEVERITY_CHOICES = [
        ("low", "Low"),
        ("medium", "Medium"),
        ("high", "High"),
        ("critical", "Critical"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_entries",
    )
    action = models.CharField(max_length=50)
    resource = models.CharField(max_length=50, blank=True)
    resource_id = models.CharField(max_length=50, blank=True)
    details = models.TextField(blank=True)
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.CharField(max_length=255, blank=True)
    severity = models.CharField(
        max_length=10, choices=SEVERITY_CHOICES, default="low"
    )
    timestamp = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-timestamp"]
        indexes = [
            models.Index(fields=["timestamp"], name="idx_audit_timestamp"),
            models.Index(fields=["action"], name="idx_audit_action"),
            models.Index(fields=["severity"], name="idx_audit_severity"),
        ]

    def __str__(self):
        who = self.user or "anonymous"
        return f"{self.action} by {who} at {self.timestamp}"

    def save(self, *args, **kwargs):
        if self.pk is not None:
            raise ValidationError(
                "Audit entries are immutable and cannot be modified."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError(
            "Audit entries are immutable and cannot be deleted."
        )
