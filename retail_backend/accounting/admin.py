# accounting/admin.py

from django.contrib import admin

from accounting.models.account import Account
from accounting.models.chart import ChartOfAccounts
from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# CHART + ACCOUNTS
# ============================================================


class AccountInline(admin.TabularInline):
    model = Account
    fields = ("code", "name", "account_type", "is_active")
    extra = 0
    show_change_link = True


@admin.register(ChartOfAccounts)
class ChartOfAccountsAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "business_type", "is_active", "updated_at")
    list_filter = ("business_type", "is_active")
    search_fields = ("name", "code")
    readonly_fields = ("created_at", "updated_at")
    inlines = [AccountInline]


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "account_type", "chart", "is_active")
    list_filter = ("chart", "account_type", "is_active")
    search_fields = ("code", "name")
    ordering = ("chart", "code")
    readonly_fields = ("created_at", "updated_at")


# ============================================================
# JOURNAL (IMMUTABLE)
# ============================================================


class LedgerEntryInline(admin.TabularInline):
    model = LedgerEntry
    fields = ("account", "entry_type", "amount")
    readonly_fields = fields
    extra = 0
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyAdmin):
    list_display = ("id", "reference_type", "reference_id", "description", "posted_at")
    list_filter = ("posted_at",)
    search_fields = ("reference", "description")
    inlines = [LedgerEntryInline]

    @admin.display(description="Source")
    def reference_type(self, obj):
        return obj.reference_type

    @admin.display(description="Source ID")
    def reference_id(self, obj):
        return obj.reference_id


@admin.register(LedgerEntry)
class LedgerEntryAdmin(ReadOnlyAdmin):
    list_display = ("journal_entry", "account", "entry_type", "amount", "created_at")
    list_filter = ("entry_type", "account")
    search_fields = ("journal_entry__reference", "account__code")
