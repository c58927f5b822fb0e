"""Seed the default asset categories."""

from django.db import migrations

CATEGORIES = [
    ("Projector", "projector", "PROJ"),
    ("Laptop", "laptop", "LAP"),
    ("Desktop", "desktop", "DESK"),
    ("Printer", "printer", "PRINT"),
    ("Camera", "camera", "CAM"),
    ("Other", "other", "OTHER"),
]


def seed_categories(apps, schema_editor):
    Category = apps.get_model("assets", "Category")
    for name, slug, prefix in CATEGORIES:
        Category.objects.update_or_create(
            slug=slug,
            defaults={"name": name, "code_prefix": prefix},
        )


def reverse_categories(apps, schema_editor):
    Category = apps.get_model("assets", "Category")
    Category.objects.filter(
        slug__in=[slug for _, slug, _ in CATEGORIES],
        assets__isnull=True,
    ).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("assets", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_categories, reverse_categories),
    ]
