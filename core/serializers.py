import json

from rest_framework import serializers

from .exceptions import ValidationError


class JSONListField(serializers.Field):
    """
    A list that may arrive either as a real JSON array or, in multipart
    forms, as a JSON-encoded string (e.g. skills='["python", "django"]').
    """

    default_error_messages = {
        "invalid": "Expected a JSON list.",
    }

    def __init__(self, child=None, **kwargs):
        self.child = child
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.strip()
            if not data:
                return []
            try:
                data = json.loads(data)
            except ValueError:
                self.fail("invalid")
        if not isinstance(data, list):
            self.fail("invalid")
        if self.child is not None:
            return [self.child.run_validation(item) for item in data]
        return data

    def to_representation(self, value):
        return value


def parse_input(serializer_class, data, partial=False, context=None) -> dict:
    """Run an input serializer; every field error becomes one ValidationError."""
    serializer = serializer_class(data=data, partial=partial, context=context or {})
    if not serializer.is_valid():
        raise ValidationError(serializer.errors)
    return dict(serializer.validated_data)
