# billing/admin.py
"""
Billing — Django Admin registrations

========= CHANGE LOG =========
2026-09-06 • Register Subscription, PaymentHistory, PaymentOrder, CustomerProfile.  # CHANGED:
           • PaymentHistory is read-only in admin (rows are immutable).            # CHANGED:
2026-10-19 • CustomerProfile "Mark email verified" action (retried write).        # CHANGED:
"""

from __future__ import annotations

from django.contrib import admin

from .accounts import mark_email_verified
from .models import CustomerProfile, PaymentHistory, PaymentOrder, Subscription


# EMAIL VERIFIED ACTION
def mark_selected_email_verified(modeladmin, request, queryset):
    count = 0
    for profile in queryset:
        mark_email_verified(profile.user_id)
        count += 1
    modeladmin.message_user(request, f"Marked {count} profile(s) as email verified.")

mark_selected_email_verified.short_description = "Mark email verified"


@admin.register(Subscription)
class SubscriptionAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "plan_type", "billing_cycle", "status", "end_date", "download_enabled", "has_used_free_trial")
    list_filter = ("plan_type", "billing_cycle", "status")
    search_fields = ("user__email", "user__username", "last_payment_id")
    ordering = ("-updated_at",)
    readonly_fields = ("download_enabled", "created_at", "updated_at")


@admin.register(PaymentHistory)
class PaymentHistoryAdmin(admin.ModelAdmin):
    list_display = ("invoice_number", "user", "plan_type", "billing_cycle", "amount", "currency", "status", "payment_date")
    list_filter = ("status", "plan_type", "currency")
    search_fields = ("invoice_number", "transaction_id", "user__email")
    ordering = ("-payment_date",)

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentOrder)
class PaymentOrderAdmin(admin.ModelAdmin):
    list_display = ("order_id", "user", "plan_type", "billing_cycle", "amount_minor", "currency", "status", "created_at")
    list_filter = ("status", "currency")
    search_fields = ("order_id", "payment_id", "receipt", "user__email")
    ordering = ("-created_at",)
    readonly_fields = ("raw_order", "created_at", "updated_at")


@admin.register(CustomerProfile)
class CustomerProfileAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "name", "company", "email_verified", "verified_at")
    list_filter = ("email_verified",)
    search_fields = ("name", "company", "user__email")
    readonly_fields = ("verified_at", "created_at", "updated_at")
    actions = [mark_selected_email_verified]
