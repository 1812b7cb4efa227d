import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Subscription",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plan_type", models.CharField(choices=[("free", "Free trial"), ("simple", "Simple"), ("premium", "Premium"), ("enterprise", "Enterprise")], default="free", max_length=20)),
                ("billing_cycle", models.CharField(choices=[("monthly", "Monthly"), ("yearly", "Yearly"), ("trial", "Trial")], default="trial", max_length=20)),
                ("status", models.CharField(choices=[("active", "Active"), ("expired", "Expired"), ("none", "None")], db_index=True, default="none", max_length=20)),
                ("start_date", models.DateTimeField(blank=True, null=True)),
                ("end_date", models.DateTimeField(blank=True, db_index=True, null=True)),
                ("last_payment_id", models.CharField(blank=True, default="", max_length=255)),
                ("download_enabled", models.BooleanField(default=False)),
                ("has_used_free_trial", models.BooleanField(default=False)),
                ("cancellation_reason", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="subscription", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-updated_at"],
                "indexes": [models.Index(fields=["status", "end_date"], name="billing_sub_status_end_idx")],
            },
        ),
        migrations.CreateModel(
            name="PaymentHistory",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("plan_type", models.CharField(max_length=20)),
                ("billing_cycle", models.CharField(max_length=20)),
                ("amount", models.DecimalField(decimal_places=2, help_text="Amount in major currency units (e.g. 19.99).", max_digits=12)),
                ("currency", models.CharField(default="USD", max_length=12)),
                ("payment_method", models.CharField(default="Razorpay", max_length=50)),
                ("transaction_id", models.CharField(db_index=True, max_length=255)),
                ("status", models.CharField(choices=[("completed", "Completed"), ("failed", "Failed"), ("pending", "Pending")], default="completed", max_length=20)),
                ("payment_date", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                ("invoice_number", models.CharField(editable=False, max_length=32, unique=True)),
                ("user", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="payment_history", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "verbose_name_plural": "payment history",
                "ordering": ("-payment_date", "-id"),
            },
        ),
        migrations.CreateModel(
            name="PaymentOrder",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("order_id", models.CharField(help_text="Razorpay order id (order_...).", max_length=255, unique=True)),
                ("receipt", models.CharField(help_text="Receipt id sent with the order (receipt_<epoch-ms>_<hex>).", max_length=64)),
                ("payment_id", models.CharField(blank=True, db_index=True, default="", help_text="Razorpay payment id (pay_...) once verified.", max_length=255)),
                ("amount_minor", models.PositiveIntegerField(help_text="Charged amount in the smallest currency unit (paise).")),
                ("currency", models.CharField(default="INR", max_length=12)),
                ("display_amount", models.DecimalField(blank=True, decimal_places=2, help_text="Catalog price shown to the customer (major units).", max_digits=12, null=True)),
                ("display_currency", models.CharField(blank=True, default="", max_length=12)),
                ("plan_type", models.CharField(max_length=20)),
                ("billing_cycle", models.CharField(max_length=20)),
                ("status", models.CharField(choices=[("created", "Created"), ("paid", "Paid"), ("rejected", "Rejected")], db_index=True, default="created", max_length=20)),
                ("raw_order", models.JSONField(blank=True, help_text="Snapshot of the Razorpay order payload at creation.", null=True)),
                ("notes", models.TextField(blank=True, default="", help_text="Internal notes (never shown to users).")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="payment_orders", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ("-created_at",),
            },
        ),
        migrations.CreateModel(
            name="CustomerProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(blank=True, default="", max_length=160)),
                ("company", models.CharField(blank=True, default="", max_length=160)),
                ("email_verified", models.BooleanField(default=False)),
                ("verified_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now, editable=False)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="customer_profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
