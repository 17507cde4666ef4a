"""Convert typed watch payloads into canonical JSON records."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any

from kubewatch.errors import EncodingError
from kubewatch.models.events import CanonicalRecord, WatchEvent

Serializer = Callable[[Any], Any]


class EventNormalizer:
    """Renders a WatchEvent payload as a canonical record.

    Args:
        serialize: Turns a typed client model into JSON-shaped Python values.
                   In production this is ``ApiClient.sanitize_for_serialization``,
                   which emits the API's camelCase field names and drops unset
                   fields.
    """

    def __init__(self, serialize: Serializer) -> None:
        self._serialize = serialize

    def normalize(self, event: WatchEvent) -> CanonicalRecord:
        """Return the JSON form of ``event.payload``.

        The record is round-tripped through JSON so callers always receive
        plain dicts, lists, strings, numbers, booleans and None.

        Raises:
            EncodingError: the payload cannot be serialized, holds non-finite
                numbers, or is not a JSON object.
        """
        try:
            body = json.dumps(self._serialize(event.payload), allow_nan=False)
        except (TypeError, ValueError, AttributeError, RecursionError) as exc:
            raise EncodingError(event.resource_name, str(exc)) from exc

        record = json.loads(body)
        if not isinstance(record, dict):
            raise EncodingError(event.resource_name, f"expected an object, got {type(record).__name__}")
        return record
