"""Factory Boy factories for AssetDesk test data generation."""

import datetime

import factory
from factory.django import DjangoModelFactory

from django.utils import timezone


class UserFactory(DjangoModelFactory):
    """Factory for CustomUser model.

    Pass ``role`` to give the user a profile with that role.
    """

    class Meta:
        model = "accounts.CustomUser"
        skip_postgeneration_save = True

    username = factory.Sequence(lambda n: f"user{n}")
    email = factory.LazyAttribute(lambda o: f"{o.username}@cut.ac.zw")
    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    is_active = True

    @factory.post_generation
    def password(self, create, extracted, **kwargs):
        pwd = extracted or "testpass123!"
        self.set_password(pwd)
        if create:
            self.save(update_fields=["password"])

    @factory.post_generation
    def role(self, create, extracted, **kwargs):
        if not create or not extracted:
            return
        ProfileFactory(user=self, role=extracted)


class ProfileFactory(DjangoModelFactory):
    """Factory for Profile model."""

    class Meta:
        model = "accounts.Profile"
        django_get_or_create = ("user",)

    user = factory.SubFactory(UserFactory)
    full_name = factory.LazyAttribute(
        lambda o: f"{o.user.first_name} {o.user.last_name}".strip()
    )
    role = "staff"


class DepartmentFactory(DjangoModelFactory):
    """Factory for Department model."""

    class Meta:
        model = "assets.Department"
        django_get_or_create = ("code",)

    name = factory.Sequence(lambda n: f"Department {n}")
    code = factory.Sequence(lambda n: f"D{n:03d}")
    description = factory.Faker("sentence")


class CategoryFactory(DjangoModelFactory):
    """Factory for Category model."""

    class Meta:
        model = "assets.Category"
        django_get_or_create = ("slug",)

    name = factory.Sequence(lambda n: f"Category {n}")
    slug = factory.Sequence(lambda n: f"category-{n}")
    code_prefix = factory.Sequence(lambda n: f"C{n}")


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model."""

    class Meta:
        model = "assets.Asset"

    asset_code = factory.Sequence(lambda n: f"CUT-TEST-{n:03d}")
    name = factory.Sequence(lambda n: f"Asset {n}")
    category = factory.SubFactory(CategoryFactory)
    department = factory.SubFactory(DepartmentFactory)
    brand = factory.Sequence(lambda n: f"Brand {n}")
    model = factory.Sequence(lambda n: f"EB-{n}")
    condition = "good"
    status = "available"
    location = "Main Store"
    qr_code_url = factory.LazyAttribute(
        lambda o: (
            "https://api.qrserver.com/v1/create-qr-code/"
            f"?size=200x200&data={o.asset_code}"
        )
    )
    created_by = factory.SubFactory(UserFactory)


class AssetIssueFactory(DjangoModelFactory):
    """Factory for an active AssetIssue.

    Does not change the asset's status; pass an asset with
    ``status="issued"`` when the pair must be consistent.
    """

    class Meta:
        model = "assets.AssetIssue"

    asset = factory.SubFactory(AssetFactory, status="issued")
    issued_to = factory.SubFactory(UserFactory)
    issued_by = factory.SubFactory(UserFactory)
    issue_date = factory.LazyFunction(timezone.now)
    expected_return_date = factory.LazyFunction(
        lambda: timezone.localdate() + datetime.timedelta(days=7)
    )
    status = "active"


class MaintenanceRecordFactory(DjangoModelFactory):
    """Factory for MaintenanceRecord model."""

    class Meta:
        model = "assets.MaintenanceRecord"

    asset = factory.SubFactory(AssetFactory)
    maintenance_type = "preventive"
    status = "scheduled"
    description = factory.Faker("sentence")
    scheduled_date = factory.LazyFunction(timezone.localdate)
    created_by = factory.SubFactory(UserFactory)


class AssetRequestFactory(DjangoModelFactory):
    """Factory for AssetRequest model."""

    class Meta:
        model = "assets.AssetRequest"

    requester = factory.SubFactory(UserFactory)
    category = factory.SubFactory(CategoryFactory)
    purpose = factory.Faker("sentence")
    requested_date = factory.LazyFunction(timezone.localdate)
    expected_return_date = factory.LazyFunction(
        lambda: timezone.localdate() + datetime.timedelta(days=7)
    )
    priority = "medium"
    status = "pending"
