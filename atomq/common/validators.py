"""
Request body validation.

Routes read JSON bodies through FieldValidator, which collects one message
per bad field so the client gets every problem in a single 400 response:

    {"error": "Validation error", "details": [{"field": ..., "message": ...}]}
"""
import json
import math
import re
from datetime import datetime, timezone
from typing import Any, Iterable

from flask import jsonify, request


def get_json_body() -> dict | None:
    """Parsed JSON object body, or None when the body is missing or not an object."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else None


def invalid_body_response():
    return jsonify({'error': 'Request body must be a JSON object'}), 400


def _label(field: str) -> str:
    words = re.sub(r'(?<!^)([A-Z])', r' \1', field).lower()
    return words[:1].upper() + words[1:]


def parse_iso_datetime(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a naive UTC datetime."""
    parsed = datetime.fromisoformat(value.strip().replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return isinstance(value, int) or math.isfinite(value)


class FieldValidator:
    """Collects field-level errors while extracting typed values from a dict."""

    def __init__(self, data: dict):
        self.data = data
        self.errors: list[dict] = []

    @property
    def valid(self) -> bool:
        return not self.errors

    def has(self, field: str) -> bool:
        return field in self.data and self.data[field] is not None

    def add_error(self, field: str, message: str):
        self.errors.append({'field': field, 'message': message})

    def error_response(self):
        return jsonify({'error': 'Validation error', 'details': self.errors}), 400

    def string(self, field: str, required: bool = False, allow_empty: bool = False,
               max_length: int | None = None) -> str | None:
        if not self.has(field):
            if required:
                self.add_error(field, f"{_label(field)} is required")
            return None
        value = self.data[field]
        if not isinstance(value, str):
            self.add_error(field, f"{_label(field)} must be a string")
            return None
        value = value.strip()
        if not value and not allow_empty:
            self.add_error(field, f"{_label(field)} is required")
            return None
        if max_length and len(value) > max_length:
            self.add_error(field, f"{_label(field)} must be at most {max_length} characters")
            return None
        return value

    def choice(self, field: str, choices: Iterable[str], required: bool = False) -> str | None:
        choices = tuple(choices)
        if not self.has(field):
            if required:
                self.add_error(field, f"{_label(field)} is required")
            return None
        value = self.data[field]
        if not isinstance(value, str) or value.upper() not in choices:
            self.add_error(field, f"{_label(field)} must be one of: {', '.join(choices)}")
            return None
        return value.upper()

    def integer(self, field: str, minimum: int | None = None, required: bool = False,
                message: str | None = None) -> int | None:
        if not self.has(field):
            if required:
                self.add_error(field, f"{_label(field)} is required")
            return None
        value = self.data[field]
        if not _is_number(value) or (isinstance(value, float) and not value.is_integer()):
            self.add_error(field, message or f"{_label(field)} must be an integer")
            return None
        value = int(value)
        if minimum is not None and value < minimum:
            self.add_error(field, message or f"{_label(field)} must be at least {minimum}")
            return None
        return value

    def number(self, field: str, minimum: float | None = None, required: bool = False,
               message: str | None = None) -> float | None:
        if not self.has(field):
            if required:
                self.add_error(field, f"{_label(field)} is required")
            return None
        value = self.data[field]
        if not _is_number(value):
            self.add_error(field, message or f"{_label(field)} must be a number")
            return None
        if minimum is not None and value < minimum:
            self.add_error(field, message or f"{_label(field)} must be at least {minimum}")
            return None
        return float(value)

    def boolean(self, field: str) -> bool | None:
        if not self.has(field):
            return None
        value = self.data[field]
        if not isinstance(value, bool):
            self.add_error(field, f"{_label(field)} must be true or false")
            return None
        return value

    def timestamp(self, field: str) -> datetime | None:
        value = self.string(field)
        if value is None:
            return None
        try:
            return parse_iso_datetime(value)
        except ValueError:
            self.add_error(field, f"{_label(field)} must be an ISO-8601 date")
            return None

    def string_list(self, field: str, required: bool = False) -> list[str] | None:
        """A list of non-empty strings, also accepted as a JSON-encoded list."""
        if not self.has(field):
            if required:
                self.add_error(field, f"{_label(field)} are required")
            return None
        value = self.data[field]
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                value = None
        if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
            self.add_error(field, f"{_label(field)} must be a list of non-empty strings")
            return None
        if required and not value:
            self.add_error(field, f"{_label(field)} are required")
            return None
        return [v.strip() for v in value]

    def id_list(self, field: str) -> list[int] | None:
        value = self.data.get(field)
        if not isinstance(value, list) or not value:
            self.add_error(field, f"{_label(field)} must be a non-empty list of ids")
            return None
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in value):
            self.add_error(field, f"{_label(field)} must contain integer ids")
            return None
        return list(dict.fromkeys(value))
