from django.contrib import admin

from .models import StateSnapshot


@admin.register(StateSnapshot)
class StateSnapshotAdmin(admin.ModelAdmin):
    list_display = ["key", "updated_at"]
    readonly_fields = ["updated_at"]
