"""
Money and stored-total fields.

``currency_uspennies`` keeps integer pennies. ``saved_total`` and
``saved_total_uspennies`` keep a value that is normally computed by an
``init_*`` method on the record and only recalculated while a reset checker
(``status_is_cart`` unless configured otherwise) says the record is still
changing.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict

from dbrecords.errors import ConfigurationError
from dbrecords.fields.base import UNSET, make_method
from dbrecords.fields.scalar import NumberField
from dbrecords.quantities import Currency, parse_number
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)


class CurrencyPenniesField(NumberField):
    """
    US currency in integer pennies.

    Setting the field takes raw pennies, or a currency string when it starts
    with the currency symbol. ``x_readable(text)`` always reads dollars.
    """

    field_type = "currency_uspennies"
    interfaces = ("default",)

    def set(self, record: "Record", value: Any) -> None:
        try:
            self.set_raw(record, Currency.parse(value))
        except ValueError:
            log.warning(
                "Setting %s.%s to non-currency value %r",
                self.owner_name(record),
                self.name,
                value,
            )
            self.set_raw(record, value)

    def readable(self, record: "Record", value: Any = UNSET) -> Any:
        if value is UNSET:
            return Currency.readable(self.get_raw(record))
        if value is None or (isinstance(value, str) and not value.strip()):
            self.set_raw(record, None)
            return None
        try:
            self.set_raw(record, Currency.parse_dollars(value))
        except ValueError:
            log.warning(
                "Setting %s.%s to non-currency value %r",
                self.owner_name(record),
                self.name,
                value,
            )
            self.set_raw(record, value)
        return None


class SavedTotalField(NumberField):
    """
    Cached total. Reading it recomputes and stores the value while the record's
    reset checker returns true; otherwise the stored value is returned.
    """

    field_type = "saved_total"
    interfaces = ("default",)

    def _companion(self, record: "Record", attribute: str, default: str) -> Callable[[], Any]:
        method_name = self.expand(getattr(self.spec, attribute) or default)
        method = getattr(record, method_name, None)
        if method is None or not callable(method):
            raise ConfigurationError(
                f"{self.owner_name(record)} must define {method_name}() for {self.field_type} "
                f"field '{self.name}'"
            )
        return method

    def needs_reset(self, record: "Record") -> bool:
        return bool(self._companion(record, "reset_checker", "status_is_cart")())

    def compute(self, record: "Record") -> Any:
        return self._companion(record, "init_method", "init_*")()

    def reset(self, record: "Record") -> Any:
        value = self.compute(record)
        self.set_raw(record, value)
        return value

    def get(self, record: "Record") -> Any:
        if self.needs_reset(record):
            return self.reset(record)
        return super().get(record)

    def difference(self, record: "Record") -> Any:
        stored = self.get_raw(record)
        return self.compute(record) - (parse_number(stored) if stored not in (None, "") else 0)

    def accessor(self) -> property:
        field = self
        return property(lambda record: field.get(record), doc=f"saved total '{self.name}'")

    def operations(self) -> Dict[str, Any]:
        field = self
        return {
            self.name: self.accessor(),
            f"reset_{self.name}": make_method(
                f"reset_{self.name}",
                lambda record: field.reset(record),
                f"Recalculate {self.name} and store the result.",
            ),
            f"{self.name}_difference": make_method(
                f"{self.name}_difference",
                lambda record: field.difference(record),
                f"Recalculated {self.name} minus the stored value.",
            ),
        }


class SavedTotalPenniesField(SavedTotalField):
    """
    Cached total in US pennies. Also recalculated whenever no value is stored,
    can be assigned directly, and has a currency ``x_readable()``.
    """

    field_type = "saved_total_uspennies"

    def get(self, record: "Record") -> Any:
        if self.needs_reset(record) or not self.get_raw(record):
            return self.reset(record)
        return self.get_raw(record)

    def reset(self, record: "Record") -> Any:
        value = int(self.compute(record))
        self.set_raw(record, value)
        return value

    def accessor(self) -> property:
        field = self
        return property(
            lambda record: field.get(record),
            lambda record, value: field.set_raw(record, value),
            doc=f"saved total '{self.name}' in pennies",
        )

    def readable(self, record: "Record", value: Any = UNSET) -> str:
        return Currency.readable(self.get(record))

    def operations(self) -> Dict[str, Any]:
        ops = super().operations()
        field = self
        ops[f"set_{self.name}"] = make_method(
            f"set_{self.name}",
            lambda record, value: field.set_raw(record, value),
            f"Store {self.name} without recalculating it.",
        )
        ops[f"{self.name}_readable"] = make_method(
            f"{self.name}_readable",
            lambda record: field.readable(record),
            f"Format {self.name} as US currency.",
        )
        return ops


__all__ = ["CurrencyPenniesField", "SavedTotalField", "SavedTotalPenniesField"]
