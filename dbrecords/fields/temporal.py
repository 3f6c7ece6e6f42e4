"""
Absolute-time fields: ``timestamp`` (Unix seconds) and ``julian_day`` (Julian
Day Number). Both store an int column and accept human-entered strings.

The ``created`` interface stamps the field when a record is constructed (if it
was not given a value); ``modified`` stamps it before every insert and update.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Mapping, Optional, Tuple, Type, Union

from dbrecords.fields.base import make_method
from dbrecords.fields.scalar import NumberField
from dbrecords.hooks import POST_NEW, HookCallback
from dbrecords.quantities import JulianDay, Timestamp
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)

Quantity = Union[Timestamp, JulianDay]


class TimeAbsoluteField(NumberField):
    """Shared behavior of the absolute-time field kinds."""

    quantity: ClassVar[Type[Quantity]]
    interfaces: ClassVar[Tuple[str, ...]] = ("default", "created", "modified")
    interface_hooks: ClassVar[Mapping[str, Mapping[str, str]]] = {
        "modified": {"pre_insert": "touch_*", "pre_update": "touch_*"},
    }

    def set(self, record: "Record", value: Any) -> None:
        try:
            self.set_raw(record, self.quantity.parse(value).value)
        except ValueError:
            log.warning(
                "Setting %s.%s to unrecognized %s value %r",
                self.owner_name(record),
                self.name,
                self.field_type,
                value,
            )
            self.set_raw(record, value)

    def touch(self, record: "Record") -> None:
        self.set_raw(record, self.quantity.current().value)

    def obj(self, record: "Record") -> Quantity:
        return self.quantity.parse(self.get_raw(record))

    def readable(self, record: "Record", fmt: Optional[str] = None) -> str:  # type: ignore[override]
        return self.obj(record).readable(fmt or self.spec.default_readable_format)

    def operations(self) -> Dict[str, Any]:
        ops = super().operations()
        field = self
        ops[f"touch_{self.name}"] = make_method(
            f"touch_{self.name}",
            lambda record: field.touch(record),
            f"Set {self.name} to the current {self.field_type}.",
        )
        ops[f"{self.name}_obj"] = make_method(
            f"{self.name}_obj",
            lambda record: field.obj(record),
            f"Return {self.name} as a {self.quantity.__name__} value object.",
        )
        ops[f"{self.name}_readable"] = make_method(
            f"{self.name}_readable",
            lambda record, fmt=None: field.readable(record, fmt),
            f"Format {self.name} for display, optionally with a strftime format.",
        )
        return ops

    def hook_bindings(self) -> List[Tuple[str, HookCallback]]:
        bindings = super().hook_bindings()
        if self.interface == "created":
            field = self

            def touch_if_unset(record: "Record") -> None:
                if field.is_empty(record):
                    field.touch(record)

            bindings.insert(0, (POST_NEW, touch_if_unset))
        return bindings


class TimestampField(TimeAbsoluteField):
    field_type = "timestamp"
    quantity = Timestamp


class JulianDayField(TimeAbsoluteField):
    field_type = "julian_day"
    quantity = JulianDay


__all__ = ["TimeAbsoluteField", "TimestampField", "JulianDayField"]
