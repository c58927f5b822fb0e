"""Forms for the assets app."""

from django import forms
from django.contrib.auth import get_user_model
from django.utils import timezone

from .models import (
    Asset,
    AssetRequest,
    Category,
    Department,
    MaintenanceRecord,
)
from .services.codes import (
    ASSET_CODE_TAKEN,
    SERIAL_NUMBER_TAKEN,
    is_asset_code_available,
    is_serial_number_available,
)

User = get_user_model()

INPUT_CLASS = "form-input w-full rounded-lg px-4 py-2.5"

DATE_WIDGET = forms.DateInput(attrs={"type": "date", "class": INPUT_CLASS})

# Issued and maintenance are reached only through their workflows
EDIT_STATUS_CHOICES = [
    ("available", "Available"),
    ("retired", "Retired"),
]


class UserChoiceField(forms.ModelChoiceField):
    def label_from_instance(self, obj):
        return f"{obj.get_display_name()} <{obj.email}>"


class StyledFormMixin:
    """Add the shared input class to every visible widget."""

    def _apply_input_class(self):
        for field in self.fields.values():
            css = field.widget.attrs.get("class", "")
            if INPUT_CLASS not in css:
                field.widget.attrs["class"] = f"{css} {INPUT_CLASS}".strip()


class AssetForm(StyledFormMixin, forms.ModelForm):
    """Register a new asset."""

    class Meta:
        model = Asset
        fields = [
            "asset_code",
            "name",
            "category",
            "department",
            "brand",
            "model",
            "serial_number",
            "purchase_date",
            "purchase_price",
            "warranty_expiry",
            "condition",
            "location",
            "description",
        ]
        widgets = {
            "asset_code": forms.TextInput(
                attrs={"placeholder": "CUT-PROJ-001", "autocomplete": "off"}
            ),
            "purchase_date": DATE_WIDGET,
            "warranty_expiry": DATE_WIDGET,
            "purchase_price": forms.NumberInput(
                attrs={"step": "0.01", "min": "0", "placeholder": "0.00"}
            ),
            "description": forms.Textarea(attrs={"rows": 3}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["category"].queryset = Category.objects.filter(
            is_active=True
        )
        self.fields["department"].queryset = Department.objects.filter(
            is_active=True
        )
        self._apply_input_class()

    def clean_asset_code(self):
        code = self.cleaned_data.get("asset_code", "").strip().upper()
        if not is_asset_code_available(code, exclude_pk=self.instance.pk):
            raise forms.ValidationError(ASSET_CODE_TAKEN)
        return code

    def clean_serial_number(self):
        serial = (self.cleaned_data.get("serial_number") or "").strip()
        if not is_serial_number_available(
            serial, exclude_pk=self.instance.pk
        ):
            raise forms.ValidationError(SERIAL_NUMBER_TAKEN)
        return serial or None


class AssetEditForm(AssetForm):
    """Edit an asset; status may only move between available and retired."""

    status = forms.ChoiceField(choices=EDIT_STATUS_CHOICES)

    class Meta(AssetForm.Meta):
        fields = AssetForm.Meta.fields + ["status"]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        current = self.instance.status
        if current not in dict(EDIT_STATUS_CHOICES):
            self.fields["status"].choices = [
                (current, self.instance.get_status_display())
            ]
        self._apply_input_class()

    def clean_status(self):
        status = self.cleaned_data["status"]
        current = self.instance.status
        if status != current and current not in dict(EDIT_STATUS_CHOICES):
            raise forms.ValidationError(
                f"An {current} asset must be returned or completed first."
            )
        return status


class IssueForm(StyledFormMixin, forms.Form):
    asset = forms.ModelChoiceField(
        queryset=Asset.objects.none(), empty_label="Select an asset..."
    )
    issued_to = UserChoiceField(
        queryset=User.objects.none(),
        empty_label="Select a person...",
        label="Issue to",
    )
    expected_return_date = forms.DateField(widget=DATE_WIDGET)
    notes = forms.CharField(
        required=False, widget=forms.Textarea(attrs={"rows": 2})
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["asset"].queryset = Asset.objects.filter(
            status="available"
        ).select_related("category")
        self.fields["issued_to"].queryset = (
            User.objects.filter(is_active=True)
            .select_related("profile")
            .order_by("profile__full_name", "email")
        )
        self._apply_input_class()

    def clean_expected_return_date(self):
        value = self.cleaned_data["expected_return_date"]
        if value < timezone.localdate():
            raise forms.ValidationError(
                "Expected return date cannot be in the past."
            )
        return value


class ReturnForm(StyledFormMixin, forms.Form):
    return_condition = forms.ChoiceField(
        choices=Asset.CONDITION_CHOICES, initial="good"
    )
    notes = forms.CharField(
        required=False, widget=forms.Textarea(attrs={"rows": 2})
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_input_class()


class MaintenanceForm(StyledFormMixin, forms.ModelForm):
    technician = UserChoiceField(queryset=User.objects.none(), required=False)

    class Meta:
        model = MaintenanceRecord
        fields = [
            "asset",
            "maintenance_type",
            "description",
            "scheduled_date",
            "technician",
            "cost",
            "notes",
        ]
        widgets = {
            "scheduled_date": DATE_WIDGET,
            "description": forms.Textarea(attrs={"rows": 3}),
            "notes": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["asset"].queryset = Asset.objects.exclude(
            status="retired"
        ).select_related("category")
        self.fields["technician"].queryset = User.objects.filter(
            is_active=True,
            profile__role__in=["admin", "technician"],
        ).select_related("profile")
        self._apply_input_class()


class MaintenanceCompleteForm(StyledFormMixin, forms.Form):
    cost = forms.DecimalField(
        required=False, min_value=0, max_digits=10, decimal_places=2
    )
    notes = forms.CharField(
        required=False, widget=forms.Textarea(attrs={"rows": 2})
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_input_class()


class AssetRequestForm(StyledFormMixin, forms.ModelForm):
    class Meta:
        model = AssetRequest
        fields = [
            "category",
            "asset",
            "purpose",
            "requested_date",
            "expected_return_date",
            "priority",
            "notes",
        ]
        widgets = {
            "requested_date": DATE_WIDGET,
            "expected_return_date": DATE_WIDGET,
            "purpose": forms.Textarea(attrs={"rows": 3}),
            "notes": forms.Textarea(attrs={"rows": 2}),
        }

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["category"].queryset = Category.objects.filter(
            is_active=True
        )
        self.fields["asset"].queryset = Asset.objects.filter(
            status="available"
        )
        self.fields["asset"].required = False
        self._apply_input_class()

    def clean_requested_date(self):
        value = self.cleaned_data["requested_date"]
        if value < timezone.localdate():
            raise forms.ValidationError("Requested date cannot be in the past.")
        return value


class RequestReviewForm(StyledFormMixin, forms.Form):
    decision = forms.ChoiceField(
        choices=[("approved", "Approve"), ("rejected", "Reject")]
    )
    notes = forms.CharField(
        required=False, widget=forms.Textarea(attrs={"rows": 2})
    )

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_input_class()


class CategoryForm(StyledFormMixin, forms.ModelForm):
    class Meta:
        model = Category
        fields = ["name", "slug", "code_prefix", "description", "is_active"]
        widgets = {"description": forms.Textarea(attrs={"rows": 2})}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_input_class()

    def clean_code_prefix(self):
        prefix = self.cleaned_data["code_prefix"].strip().upper()
        if not prefix.isalnum():
            raise forms.ValidationError(
                "Prefix may only contain letters and digits."
            )
        return prefix


class DepartmentForm(StyledFormMixin, forms.ModelForm):
    class Meta:
        model = Department
        fields = ["name", "code", "description", "is_active"]
        widgets = {"description": forms.Textarea(attrs={"rows": 2})}

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._apply_input_class()

    def clean_code(self):
        return self.cleaned_data["code"].strip().upper()
