import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models

import apps.inventory.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Resource",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                (
                    "kind",
                    models.CharField(
                        choices=[
                            ("accommodation", "Accommodation"),
                            ("group_tour", "Group tour"),
                            ("individual_tour", "Individual tour"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "capacity_total",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Rooms for accommodation, max group size for tours. Empty falls back to the default.",
                        null=True,
                    ),
                ),
                (
                    "min_group_size",
                    models.PositiveSmallIntegerField(
                        default=1,
                        help_text="Smallest party accepted for a group tour departure.",
                        validators=[django.core.validators.MinValueValidator(1)],
                    ),
                ),
                (
                    "timezone",
                    models.CharField(
                        default=apps.inventory.models.default_timezone,
                        max_length=64,
                        validators=[apps.inventory.models.validate_timezone],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "operator",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="resources",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "verbose_name": "Resource",
                "verbose_name_plural": "Resources",
                "ordering": ["name", "id"],
                "indexes": [
                    models.Index(fields=["operator", "is_active"], name="resource_operator_active_idx"),
                    models.Index(fields=["kind"], name="resource_kind_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TimeSlot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_time", models.TimeField()),
                (
                    "capacity",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Overrides the resource max group size for this slot.",
                        null=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="time_slots",
                        to="inventory.resource",
                    ),
                ),
            ],
            options={
                "verbose_name": "Time slot",
                "verbose_name_plural": "Time slots",
                "ordering": ["start_time"],
                "constraints": [
                    models.UniqueConstraint(fields=("resource", "start_time"), name="timeslot_unique_start"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BlockedDate",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("date", models.DateField()),
                ("reason", models.CharField(blank=True, max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "resource",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blocked_dates",
                        to="inventory.resource",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blocked date",
                "verbose_name_plural": "Blocked dates",
                "ordering": ["date"],
                "constraints": [
                    models.UniqueConstraint(fields=("resource", "date"), name="blocked_date_unique_per_resource"),
                ],
            },
        ),
    ]
