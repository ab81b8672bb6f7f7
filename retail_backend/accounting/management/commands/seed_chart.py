# accounting/management/commands/seed_chart.py

from django.core.management.base import BaseCommand

from accounting.services.chart_seed import RETAIL_CHART_NAME, seed_retail_chart


class Command(BaseCommand):
    help = "Seed the active Chart of Accounts with the accounts payment posting requires"

    def handle(self, *args, **options):
        self.stdout.write(f"Seeding {RETAIL_CHART_NAME} Chart of Accounts...")

        chart, created_count, updated_count = seed_retail_chart()

        self.stdout.write(
            self.style.SUCCESS(
                f"{chart.name} chart seeded ({created_count} new accounts, {updated_count} updated)."
            )
        )
