"""
Generated codes and class discriminators.

``unique_code`` fields hold a short random public identifier (``QX3P6N``)
assigned just before insert and checked against the table for collisions.
``subclass_name`` fields store which record subclass a row belongs to, so that
fetching through a base class builds instances of the right subclass.
"""

from __future__ import annotations

import random
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from dbrecords.config import get_settings
from dbrecords.errors import UniqueCodeExhaustedError
from dbrecords.fields.base import Diagnostic, make_method, record_class
from dbrecords.fields.scalar import StringField
from dbrecords.fields.spec import FieldSpec
from dbrecords.hooks import POST_NEW, PRE_INSERT, PRE_UPDATE, HookCallback
from dbrecords.quantities import JulianDay
from dbrecords.schema import Column
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)

# Upper case consonants: no 0/O or 1/I confusion and no accidental words.
DEFAULT_CODE_CHARS = "".join(c for c in "ABCDEFGHIJKLMNOPQRSTUVWXYZ" if c not in "AEIOU")
DEFAULT_CODE_LENGTH = 6
DATE_PREFIX_WIDTH = 3
DATE_DELIMITER = "-"

_random = random.SystemRandom()


class UniqueCodeField(StringField):
    """
    Random code assigned before insert.

    With 21 characters, a length of 4 gives 194,481 choices and 6 gives
    85,766,121. A ``dated`` Julian Day epoch prefixes every code with the
    number of days since that epoch, encoded in the same alphabet.
    """

    field_type = "unique_code"
    interfaces = ("default",)
    interface_hooks = {"default": {PRE_INSERT: "assign_*"}}

    @property
    def chars(self) -> str:
        return self.spec.chars or DEFAULT_CODE_CHARS

    @property
    def code_length(self) -> int:
        return self.spec.length or DEFAULT_CODE_LENGTH

    @property
    def max_attempts(self) -> int:
        return self.spec.max_attempts or get_settings().unique_code_max_attempts

    def date_prefix(self, today: Optional[int] = None) -> str:
        if not self.spec.dated:
            return ""
        if today is None:
            today = JulianDay.current().value
        days = today - self.spec.dated
        chars = self.chars
        prefix = ""
        while days > 0:
            days, digit = divmod(days, len(chars))
            prefix = chars[digit] + prefix
        if not prefix:
            return ""
        return prefix.rjust(DATE_PREFIX_WIDTH, chars[0]) + DATE_DELIMITER

    def generate(self, record: Any = None) -> str:
        chars = self.chars
        for _ in range(self.max_attempts):
            code = self.date_prefix() + "".join(_random.choice(chars) for _ in range(self.code_length))
            if not code.isdigit():
                return code
        raise UniqueCodeExhaustedError(
            f"Could not draw a non-numeric {self.name} for {self.owner_name(record)} "
            f"from '{chars}' in {self.max_attempts} attempts"
        )

    def assign(self, record: "Record") -> str:
        table = record_class(record).table()
        for attempt in range(1, self.max_attempts + 1):
            code = self.generate(record)
            if not table.count_rows({self.key: code}):
                self.set_raw(record, code)
                return code
            log.debug("Unique code collision for %s.%s on attempt %d", self.owner_name(record), self.name, attempt)
        raise UniqueCodeExhaustedError(
            f"Could not generate an unused {self.name} for {self.owner_name(record)} "
            f"in {self.max_attempts} attempts"
        )

    def fetch(self, cls: type, value: Any) -> Optional["Record"]:
        if not value:
            return None
        return cls.fetch_one({self.key: value})

    def column(self, record: Any) -> Optional[Column]:
        column = super().column(record)
        if column is None:
            return None
        # Dated codes grow with their prefix.
        length = None if self.spec.dated else self.code_length
        return column.model_copy(update={"length": length})

    def invalid(self, record: "Record") -> Optional[Diagnostic]:
        return None

    def operations(self) -> Dict[str, Any]:
        field = self
        name = self.name
        return {
            name: property(lambda record: field.get_raw(record), doc=f"unique code '{name}'"),
            f"assign_{name}": make_method(
                f"assign_{name}",
                lambda record: field.assign(record),
                f"Store a new {name} that no other row of the table uses.",
            ),
            f"generate_{name}": make_method(
                f"generate_{name}",
                lambda record: field.generate(record),
                f"Draw a candidate {name} without checking for collisions.",
            ),
            f"fetch_{name}": classmethod(
                make_method(
                    f"fetch_{name}",
                    lambda cls, value: field.fetch(cls, value),
                    f"Fetch the record whose {name} equals the given code, or None.",
                )
            ),
        }


class SubclassNameField(StringField):
    """
    Discriminator column naming the record subclass of each row.

    Every subclass of the declaring class registers itself under its
    ``discriminator_value`` (or its class name). Rows fetched through any class
    in the hierarchy are built as the registered subclass.
    """

    field_type = "subclass_name"
    interfaces = ("default",)

    def __init__(self, spec: FieldSpec) -> None:
        super().__init__(spec)
        self.factory: Dict[str, type] = {}

    @staticmethod
    def discriminator(cls: type) -> str:
        return cls.__dict__.get("discriminator_value") or cls.__name__

    def register_subclass(self, cls: type) -> None:
        value = self.discriminator(cls)
        existing = self.factory.get(value)
        if existing is not None and existing is not cls:
            log.warning(
                "Discriminator %r of %s replaces %s",
                value,
                cls.__qualname__,
                existing.__qualname__,
            )
        self.factory[value] = cls

    def class_for(self, value: Any, base: type) -> type:
        if not value:
            return base
        found = self.factory.get(value)
        if found is None:
            log.warning("Unknown %s %r for %s; using the base class", self.name, value, base.__name__)
            return base
        return found

    def get(self, record: "Record") -> str:
        value = self.get_raw(record)
        return "" if value is None else value

    def pack(self, record: "Record") -> None:
        if not self.get_raw(record):
            self.set_raw(record, self.discriminator(record_class(record)))

    def hook_bindings(self) -> List[Tuple[str, HookCallback]]:
        field = self
        bindings = super().hook_bindings()

        def pack(record: "Record") -> None:
            field.pack(record)

        bindings[:0] = [(POST_NEW, pack), (PRE_INSERT, pack), (PRE_UPDATE, pack)]
        return bindings

    def operations(self) -> Dict[str, Any]:
        ops = super().operations()
        field = self
        name = self.name
        ops[f"{name}_pack"] = make_method(
            f"{name}_pack",
            lambda record: field.pack(record),
            f"Store this record's class discriminator in {name} if it is empty.",
        )
        ops[f"{name}_class"] = make_method(
            f"{name}_class",
            lambda record: field.class_for(field.get_raw(record), record_class(record)),
            f"The record class registered for the current {name}.",
        )
        return ops


__all__ = ["UniqueCodeField", "SubclassNameField", "DEFAULT_CODE_CHARS"]
