from datetime import date


class IsoDateConverter:
    """``YYYY-MM-DD`` path segment, kept as the ISO string work logs are keyed by."""

    regex = r"\d{4}-\d{2}-\d{2}"

    def to_python(self, value: str) -> str:
        return date.fromisoformat(value).isoformat()

    def to_url(self, value) -> str:
        return value.isoformat() if isinstance(value, date) else value
