import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NotificationRequest",
            fields=[
                (
                    "notification_id",
                    models.CharField(
                        help_text="Idempotency key of the request",
                        max_length=255,
                        primary_key=True,
                        serialize=False,
                    ),
                ),
                (
                    "recipient_user_id",
                    models.CharField(
                        db_index=True,
                        help_text="User the notification is addressed to",
                        max_length=255,
                    ),
                ),
                (
                    "notification_type",
                    models.CharField(
                        choices=[
                            ("connection_request", "connection_request"),
                            ("connection_accepted", "connection_accepted"),
                            ("pattern_achievement", "pattern_achievement"),
                            ("session_reminder", "session_reminder"),
                            ("new_match", "new_match"),
                            ("urgent_announcement", "urgent_announcement"),
                            ("test_notification", "test_notification"),
                        ],
                        help_text="Notification type determining priority and retry policy",
                        max_length=50,
                    ),
                ),
                ("title", models.TextField(blank=True, default="")),
                ("body", models.TextField(blank=True, default="")),
                ("data", models.JSONField(blank=True, default=dict)),
                (
                    "priority",
                    models.CharField(
                        choices=[
                            ("low", "low"),
                            ("normal", "normal"),
                            ("high", "high"),
                            ("critical", "critical"),
                        ],
                        help_text="Resolved delivery priority",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                "db_table": "notification_requests",
                "ordering": ["-created_at"],
            },
        ),
        migrations.CreateModel(
            name="DeviceToken",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "user_id",
                    models.CharField(help_text="Owner of the device", max_length=255),
                ),
                (
                    "device_id",
                    models.CharField(
                        help_text="Client-generated stable device identifier",
                        max_length=255,
                    ),
                ),
                (
                    "token",
                    models.CharField(help_text="Push gateway token", max_length=512),
                ),
                (
                    "platform",
                    models.CharField(
                        choices=[("ios", "ios"), ("android", "android"), ("web", "web")],
                        max_length=10,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("deactivated_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "device_tokens",
                "ordering": ["-updated_at"],
                "unique_together": {("user_id", "device_id")},
                "indexes": [
                    models.Index(
                        fields=["user_id", "is_active"],
                        name="device_toke_user_id_6c1a2e_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="DeliveryAttempt",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("recipient_user_id", models.CharField(max_length=255)),
                (
                    "channel",
                    models.CharField(
                        choices=[
                            ("push", "push"),
                            ("webhook", "webhook"),
                            ("in_app", "in_app"),
                        ],
                        max_length=20,
                    ),
                ),
                ("lineage_key", models.CharField(max_length=300)),
                ("device_id", models.CharField(blank=True, max_length=255, null=True)),
                (
                    "device_token",
                    models.CharField(blank=True, max_length=512, null=True),
                ),
                ("platform", models.CharField(blank=True, max_length=10, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "pending"),
                            ("sent", "sent"),
                            ("delivered", "delivered"),
                            ("failed", "failed"),
                            ("expired", "expired"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("attempt_number", models.PositiveIntegerField(default=1)),
                ("timestamp", models.DateTimeField(default=django.utils.timezone.now)),
                ("error_code", models.CharField(blank=True, max_length=50, null=True)),
                ("error_message", models.TextField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                (
                    "notification",
                    models.ForeignKey(
                        db_column="notification_id",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="attempts",
                        to="delivery.notificationrequest",
                    ),
                ),
            ],
            options={
                "db_table": "delivery_attempts",
                "ordering": ["created_at", "id"],
                "unique_together": {("notification", "lineage_key", "attempt_number")},
                "indexes": [
                    models.Index(
                        fields=["status", "timestamp"],
                        name="delivery_at_status_4f0d1b_idx",
                    ),
                    models.Index(
                        fields=["recipient_user_id", "status"],
                        name="delivery_at_recipie_9b7e3c_idx",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="RetryEntry",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("next_attempt_number", models.PositiveIntegerField()),
                ("due_at", models.DateTimeField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "scheduled"),
                            ("claimed", "claimed"),
                            ("done", "done"),
                            ("cancelled", "cancelled"),
                        ],
                        default="scheduled",
                        max_length=20,
                    ),
                ),
                ("claimed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "attempt",
                    models.OneToOneField(
                        help_text="The failed attempt this retry follows",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="retry_entry",
                        to="delivery.deliveryattempt",
                    ),
                ),
            ],
            options={
                "db_table": "delivery_retry_queue",
                "ordering": ["due_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["status", "due_at"],
                        name="delivery_re_status_2a8c5d_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="CriticalNotification",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                ("user_id", models.CharField(max_length=255)),
                ("notification_id", models.CharField(max_length=255)),
                (
                    "notification_data",
                    models.JSONField(help_text="Serialized NotificationRequest payload"),
                ),
                ("delivered", models.BooleanField(default=False)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
            ],
            options={
                "db_table": "critical_notifications",
                "ordering": ["created_at", "id"],
                "unique_together": {("user_id", "notification_id")},
                "indexes": [
                    models.Index(
                        fields=["user_id", "delivered"],
                        name="critical_no_user_id_7e21f4_idx",
                    )
                ],
            },
        ),
        migrations.CreateModel(
            name="AnalyticsSample",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "user_id",
                    models.CharField(
                        blank=True, db_index=True, max_length=255, null=True
                    ),
                ),
                (
                    "notification_id",
                    models.CharField(blank=True, max_length=255, null=True),
                ),
                ("notification_type", models.CharField(max_length=50)),
                (
                    "delivery_method",
                    models.CharField(
                        help_text="push, webhook, in_app or fallback", max_length=20
                    ),
                ),
                ("elapsed_ms", models.PositiveIntegerField(default=0)),
                ("success", models.BooleanField()),
                ("error_message", models.TextField(blank=True, null=True)),
                (
                    "created_at",
                    models.DateTimeField(
                        db_index=True, default=django.utils.timezone.now
                    ),
                ),
            ],
            options={
                "db_table": "notification_analytics",
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["notification_type"],
                        name="notificatio_notific_5d9a0b_idx",
                    )
                ],
            },
        ),
    ]
