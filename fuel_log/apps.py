from django.apps import AppConfig


class FuelLogConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "fuel_log"
    verbose_name = "Fuel tanker daily log"
