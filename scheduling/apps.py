from django.apps import AppConfig


class SchedulingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "scheduling"
    verbose_name = "Event scheduling"

    def ready(self) -> None:
        from scheduling import signals  # noqa: F401
