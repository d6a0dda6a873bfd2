from django.apps import AppConfig  # type: ignore


class NotificationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.notifications"
    verbose_name = "Notifications"

    def ready(self) -> None:
        from apps.bookings.domain.events import DemandCancelled
        from shared.application.message_bus import message_bus

        from .handlers import on_demand_cancelled

        message_bus.register_event_handler(DemandCancelled, on_demand_cancelled)
