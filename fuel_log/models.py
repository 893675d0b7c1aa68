from django.db import models


class StateSnapshot(models.Model):
    """The single storage slot holding the whole app state as JSON text."""

    key = models.CharField(max_length=100, unique=True)
    blob = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self) -> str:
        return f"{self.key} ({len(self.blob)} bytes)"
