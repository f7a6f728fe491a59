"""
Form binding collaborators.

A binding owns the live field values and validation errors of one form and
notifies subscribers when values change. The rule controller reads values
from it, writes values back for set_value / clear_value actions, and
re-evaluates on every change notification.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

# Called with (field_name, new_value); field_name is None for "several fields changed"
ChangeCallback = Callable[[Optional[str], Any], None]
Unsubscribe = Callable[[], None]


class FormBinding(ABC):
    """Abstract live-form handle."""

    @abstractmethod
    def get_values(self) -> Dict[str, Any]:
        """Snapshot of current field values."""
        pass

    @abstractmethod
    def set_value(self, field_name: str, value: Any) -> None:
        """Set a field value, notifying subscribers if it changed."""
        pass

    @abstractmethod
    def clear_error(self, field_name: str) -> None:
        pass

    @abstractmethod
    def set_errors(self, field_name: str, messages: List[str]) -> None:
        pass

    @abstractmethod
    def get_errors(self) -> Dict[str, List[str]]:
        pass

    @abstractmethod
    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        """Register a change callback; returns a function that removes it."""
        pass

    def get_value(self, field_name: str) -> Any:
        return self.get_values().get(field_name)


class InMemoryFormBinding(FormBinding):
    """Dictionary-backed binding, used by the CLI and in tests."""

    def __init__(self, initial_values: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial_values or {})
        self._errors: Dict[str, List[str]] = {}
        self._subscribers: List[ChangeCallback] = []

    def get_values(self) -> Dict[str, Any]:
        return dict(self._values)

    def get_value(self, field_name: str) -> Any:
        return self._values.get(field_name)

    def set_value(self, field_name: str, value: Any) -> None:
        if field_name in self._values and self._values[field_name] == value:
            return
        self._values[field_name] = value
        self._notify(field_name, value)

    def set_values(self, values: Mapping[str, Any]) -> None:
        """Update several fields at once with a single notification."""
        changed = {
            name: value
            for name, value in values.items()
            if name not in self._values or self._values[name] != value
        }
        if not changed:
            return
        self._values.update(changed)
        self._notify(None, None)

    def clear_error(self, field_name: str) -> None:
        self._errors.pop(field_name, None)

    def set_errors(self, field_name: str, messages: List[str]) -> None:
        if messages:
            self._errors[field_name] = list(messages)
        else:
            self._errors.pop(field_name, None)

    def get_errors(self) -> Dict[str, List[str]]:
        return {name: list(messages) for name, messages in self._errors.items()}

    def subscribe(self, callback: ChangeCallback) -> Unsubscribe:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _notify(self, field_name: Optional[str], value: Any) -> None:
        for callback in list(self._subscribers):
            callback(field_name, value)
