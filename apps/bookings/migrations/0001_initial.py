import django.core.validators
import django.db.models.deletion
from decimal import Decimal

from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Demand",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("booking_code", models.CharField(editable=False, max_length=12, unique=True)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField()),
                (
                    "slot_time",
                    models.TimeField(blank=True, help_text="Start time, individual tours only.", null=True),
                ),
                (
                    "party_size",
                    models.PositiveSmallIntegerField(
                        default=1,
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("total_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("currency", models.CharField(default="RUB", max_length=3)),
                ("contact_email", models.EmailField(blank=True, max_length=254)),
                ("contact_name", models.CharField(blank=True, max_length=255)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "guest",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="demands",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="demands",
                        to="inventory.resource",
                    ),
                ),
            ],
            options={
                "verbose_name": "Demand",
                "verbose_name_plural": "Demands",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["resource", "start_date", "end_date"], name="demand_resource_dates_idx"),
                    models.Index(fields=["status"], name="demand_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))),
                        name="demand_valid_dates",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("party_size__gte", 1)),
                        name="demand_party_size_positive",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="CancellationRecord",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("cancelled_at", models.DateTimeField()),
                ("event_date", models.DateField()),
                ("lead_days", models.IntegerField()),
                ("fraction_applied", models.DecimalField(decimal_places=4, max_digits=5)),
                ("refund_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("currency", models.CharField(default="RUB", max_length=3)),
                ("reason", models.CharField(blank=True, max_length=255)),
                (
                    "demand",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="cancellation",
                        to="bookings.demand",
                    ),
                ),
            ],
            options={
                "verbose_name": "Cancellation record",
                "verbose_name_plural": "Cancellation records",
                "ordering": ["-cancelled_at"],
            },
        ),
        migrations.CreateModel(
            name="CapacityLock",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("slot_key", models.CharField(blank=True, default="", max_length=5)),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="capacity_locks",
                        to="inventory.resource",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(fields=("resource", "date", "slot_key"), name="capacity_lock_unique_pool"),
                ],
            },
        ),
    ]
