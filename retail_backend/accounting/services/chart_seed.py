# accounting/services/chart_seed.py

"""
CHART SEEDING

Idempotent creation of the General Retail chart and the accounts the
payment postings need. Used by `manage.py seed_chart` and by tests.
"""

from __future__ import annotations

from django.db import transaction

from accounting.models.account import Account
from accounting.models.chart import ChartOfAccounts

RETAIL_CHART_NAME = "General Retail"
RETAIL_CHART_CODE = "retail_standard"

RETAIL_ACCOUNTS = [
    ("1000", "Cash", Account.ASSET),
    ("1010", "Bank", Account.ASSET),
    ("1100", "Accounts Receivable", Account.ASSET),
    ("1200", "Inventory", Account.ASSET),
    ("2000", "Accounts Payable", Account.LIABILITY),
    ("3000", "Owner's Equity", Account.EQUITY),
    ("4000", "Sales Revenue", Account.REVENUE),
    ("6000", "Operating Expenses", Account.EXPENSE),
]


@transaction.atomic
def seed_retail_chart() -> tuple[ChartOfAccounts, int, int]:
    """
    Returns (chart, created_count, updated_count).
    """
    chart, _ = ChartOfAccounts.objects.get_or_create(
        code=RETAIL_CHART_CODE,
        defaults={
            "name": RETAIL_CHART_NAME,
            "business_type": ChartOfAccounts.BUSINESS_RETAIL,
            "is_active": True,
        },
    )

    if not chart.is_active:
        chart.is_active = True
        chart.save()

    created_count = 0
    updated_count = 0

    for code, name, account_type in RETAIL_ACCOUNTS:
        acc, acc_created = Account.objects.get_or_create(
            chart=chart,
            code=code,
            defaults={
                "name": name,
                "account_type": account_type,
                "is_active": True,
            },
        )

        if acc_created:
            created_count += 1
            continue

        if (acc.name, acc.account_type, acc.is_active) != (name, account_type, True):
            acc.name = name
            acc.account_type = account_type
            acc.is_active = True
            acc.save(update_fields=["name", "account_type", "is_active", "updated_at"])
            updated_count += 1

    return chart, created_count, updated_count
