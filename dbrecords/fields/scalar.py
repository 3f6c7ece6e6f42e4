"""
Text and number fields.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, Optional, Tuple

from dbrecords.fields.base import UNSET, Diagnostic, Field, is_empty, make_method
from dbrecords.quantities import is_numeric, parse_number, parse_readable_number, readable_number
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)


class StringField(Field):
    """
    Text column. Non-text input is stored in its text form with a warning.

    Validation rejects empty values for required fields and values longer
    than ``length``; both attributes are detected from the table when left
    unspecified.
    """

    field_type = "string"
    column_type = "text"
    autodetect: ClassVar[Tuple[Tuple[str, Any], ...]] = (("required", False), ("length", 0))

    def set(self, record: "Record", value: Any) -> None:
        if value is not None and not isinstance(value, str):
            log.warning(
                "Setting %s.%s to non-text value %r",
                self.owner_name(record),
                self.name,
                value,
            )
            value = str(value)
        self.set_raw(record, value)

    def invalid(self, record: "Record") -> Optional[Diagnostic]:
        self.detect_column_attributes(record)
        value = self.get_raw(record)
        if self.attr("required") and is_empty(value):
            return self.name, "This field can not be left empty."
        length = self.attr("length")
        if length and value is not None and len(str(value)) > length:
            return self.name, f"This field can not hold more than {length} characters."
        return None


class NumberField(Field):
    """
    Numeric column. Numeric text is converted on the way in; anything else is
    kept as entered (with a warning) so that validation can report it.
    """

    field_type = "number"
    column_type = "int"
    autodetect: ClassVar[Tuple[Tuple[str, Any], ...]] = (("required", False),)

    def coerce(self, record: "Record", value: Any) -> Any:
        if is_empty(value):
            return value
        if is_numeric(value):
            return parse_number(value)
        log.warning(
            "Setting %s.%s to non-numeric value %r",
            self.owner_name(record),
            self.name,
            value,
        )
        return value

    def get(self, record: "Record") -> Any:
        value = self.get_raw(record)
        if isinstance(value, str) and is_numeric(value):
            return parse_number(value)
        return value

    def set(self, record: "Record", value: Any) -> None:
        self.set_raw(record, self.coerce(record, value))

    def invalid(self, record: "Record") -> Optional[Diagnostic]:
        self.detect_column_attributes(record)
        value = self.get_raw(record)
        if not is_empty(value) and not is_numeric(value):
            return self.name, "This field can only contain numeric values."
        if self.attr("required") and is_empty(value):
            return self.name, "This field is required."
        return None

    def readable(self, record: "Record", value: Any = UNSET) -> Any:
        """Grouped-digit display, or set the value from grouped text when given one."""
        if value is not UNSET:
            try:
                value = parse_readable_number(value)
            except ValueError:
                pass
            self.set(record, value)
            return None
        current = self.get_raw(record)
        if not is_empty(current) and not is_numeric(current):
            return str(current)
        return readable_number(current)

    def operations(self) -> Dict[str, Any]:
        ops = super().operations()
        field = self
        ops[f"{self.name}_readable"] = make_method(
            f"{self.name}_readable",
            lambda record, value=UNSET: field.readable(record, value),
            f"Display {self.name} with thousands separators, or set it from such text.",
        )
        return ops


__all__ = ["StringField", "NumberField"]
