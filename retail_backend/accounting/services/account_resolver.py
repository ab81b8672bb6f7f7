# accounting/services/account_resolver.py

"""
======================================================
PATH: accounting/services/account_resolver.py
======================================================
ACCOUNT RESOLVER (AUTHORITATIVE)

This module answers ONE question:
"Which account should be used for this purpose?"

It is chart-aware: different charts may use different codes for the same
semantic account (e.g., Accounts Receivable differs between charts).

Design goals:
- deterministic
- chart-safe
- hard-fail on missing setup (so we never post to the wrong account)
"""

from __future__ import annotations

import logging
from functools import lru_cache

from django.core.exceptions import MultipleObjectsReturned, ObjectDoesNotExist

from accounting.models.account import Account
from accounting.models.chart import ChartOfAccounts
from accounting.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# SEMANTIC CODES BY CHART KEY
# ------------------------------------------------------------

DEFAULT_CODES = {
    "CASH": "1000",
    "BANK": "1010",
    "AR": "1100",
    "INVENTORY": "1200",
    "ACCOUNTS_PAYABLE": "2000",
    "SALES_REVENUE": "4000",
}

CHART_CODE_MAP = {
    "retail_standard": DEFAULT_CODES,
    "pharmacy_standard": {
        "CASH": "1000",
        "BANK": "1010",
        "AR": "1200",
        "INVENTORY": "1300",
        "ACCOUNTS_PAYABLE": "2000",
        "SALES_REVENUE": "4000",
    },
}

# Payment method -> semantic key of the account the money moves through
PAYMENT_METHOD_ACCOUNTS = {
    "cash": "CASH",
    "bank": "BANK",
    "card": "BANK",
    "transfer": "BANK",
    "pos": "BANK",
}


def _codes_for_chart(chart: ChartOfAccounts) -> dict:
    key = (getattr(chart, "code", "") or "").strip().lower()
    return CHART_CODE_MAP.get(key, DEFAULT_CODES)


# ------------------------------------------------------------
# ACTIVE CHART
# ------------------------------------------------------------


@lru_cache(maxsize=1)
def get_active_chart() -> ChartOfAccounts:
    """
    Cached resolver for the *single* active chart.

    NOTE:
    ChartOfAccounts.save() clears this cache whenever the active chart changes.
    """
    try:
        return ChartOfAccounts.objects.get(is_active=True)
    except ObjectDoesNotExist as exc:
        raise AccountResolutionError(
            "No active Chart of Accounts. Run `manage.py seed_chart` first."
        ) from exc
    except MultipleObjectsReturned as exc:
        raise AccountResolutionError(
            "Multiple active Charts of Accounts found. Only one active chart is allowed."
        ) from exc


def clear_active_chart_cache() -> None:
    get_active_chart.cache_clear()


# ------------------------------------------------------------
# RESOLUTION HELPERS
# ------------------------------------------------------------


def resolve_semantic_code(semantic_key: str, *, chart: ChartOfAccounts | None = None) -> str:
    semantic_key = (semantic_key or "").strip().upper()
    if not semantic_key:
        raise AccountResolutionError("semantic_key is required")

    chart = chart or get_active_chart()
    code = (_codes_for_chart(chart).get(semantic_key) or "").strip()

    if not code:
        raise AccountResolutionError(
            f"Missing mapping for semantic key '{semantic_key}' in chart '{chart.name}'."
        )
    return code


def get_account_by_code(code: str, *, chart: ChartOfAccounts | None = None) -> Account:
    code = (code or "").strip()
    if not code:
        raise AccountResolutionError("Account code is required")

    chart = chart or get_active_chart()
    try:
        return Account.objects.active().in_chart(chart).get(code=code)
    except ObjectDoesNotExist as exc:
        logger.error(
            "Account resolution failed: account not found",
            extra={"account_code": code, "chart": chart.name},
        )
        raise AccountResolutionError(
            f"Account with code={code} not found (or inactive) in active chart '{chart.name}'."
        ) from exc


def payment_source_code(*, payment_method: str | None, account_code: str | None = None) -> str:
    """
    Code of the asset account a payment is received into / paid out of.

    An explicit account_code wins over the method mapping, but must be an
    active ASSET account in the active chart.
    """
    code = (account_code or "").strip()
    if code:
        account = get_account_by_code(code)
        if not account.accepts_payments:
            raise AccountResolutionError(
                f"Account {code} is a {account.account_type} account; "
                "payments can only move through ASSET accounts."
            )
        return account.code

    method = (payment_method or "cash").strip().lower()
    semantic_key = PAYMENT_METHOD_ACCOUNTS.get(method)
    if semantic_key is None:
        raise AccountResolutionError(
            f"Invalid payment_method '{payment_method}'. "
            f"Use one of: {', '.join(sorted(PAYMENT_METHOD_ACCOUNTS))}."
        )
    return resolve_semantic_code(semantic_key)


def accounts_receivable_code() -> str:
    return resolve_semantic_code("AR")


def accounts_payable_code() -> str:
    return resolve_semantic_code("ACCOUNTS_PAYABLE")


def inventory_code() -> str:
    return resolve_semantic_code("INVENTORY")


def sales_revenue_code() -> str:
    return resolve_semantic_code("SALES_REVENUE")
