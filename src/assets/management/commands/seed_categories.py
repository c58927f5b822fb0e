"""Seed the default asset categories."""

from django.core.management.base import BaseCommand

from assets.models import Category

DEFAULT_CATEGORIES = [
    {"name": "Projector", "slug": "projector", "code_prefix": "PROJ"},
    {"name": "Laptop", "slug": "laptop", "code_prefix": "LAP"},
    {"name": "Desktop", "slug": "desktop", "code_prefix": "DESK"},
    {"name": "Printer", "slug": "printer", "code_prefix": "PRINT"},
    {"name": "Camera", "slug": "camera", "code_prefix": "CAM"},
    {"name": "Other", "slug": "other", "code_prefix": "OTHER"},
]


class Command(BaseCommand):
    help = "Seed default asset categories"

    def handle(self, *args, **options):
        for c in DEFAULT_CATEGORIES:
            obj, created = Category.objects.update_or_create(
                slug=c["slug"],
                defaults=c,
            )
            action = "Created" if created else "Updated"
            self.stdout.write(f"{action}: {obj.name} ({obj.code_prefix})")
