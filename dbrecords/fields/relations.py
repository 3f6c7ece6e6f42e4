"""
Relationship fields.

``foreign_key`` stores the id of a related record (in ``x_id``) and resolves it
on demand. ``line_items`` is the other side of such a relationship: it stores
nothing and fetches, counts, creates or deletes the records whose foreign key
points back at the owner.
"""

from __future__ import annotations

import importlib
import sys
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from dbrecords.criteria import Equals, combine
from dbrecords.errors import ConfigurationError, RecordNotFoundError
from dbrecords.fields.base import Diagnostic, Field, is_empty, make_method, record_class
from dbrecords.hooks import PRE_DELETE, HookCallback
from dbrecords.recordset import RecordSet
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)


class RelatedClassMixin:
    """Resolves the ``related_class`` attribute to a record class, once."""

    spec: Any
    owner: Optional[type]
    name: str
    field_type: str
    _related: Optional[type] = None

    def related_class(self) -> type:
        if self._related is not None:
            return self._related
        target = self.spec.related_class
        if target is None:
            raise ConfigurationError(
                f"No related_class configured for {self.field_type} field '{self.name}' "
                f"on {self.owner.__name__ if self.owner else '<unbound>'}"
            )
        if isinstance(target, str):
            target = self._resolve_name(target)
        self._related = target
        return target

    def _resolve_name(self, name: str) -> type:
        # Bare names are looked up in the declaring class's module; dotted
        # names are imported.
        if "." not in name and self.owner is not None:
            module = sys.modules.get(self.owner.__module__)
            found = getattr(module, name, None)
            if isinstance(found, type):
                return found
        module_name, _, class_name = name.rpartition(".")
        if module_name:
            try:
                found = getattr(importlib.import_module(module_name), class_name, None)
            except ImportError as exc:
                raise ConfigurationError(
                    f"Cannot import related class '{name}' for field '{self.name}'"
                ) from exc
            if isinstance(found, type):
                return found
        raise ConfigurationError(f"Cannot find related class '{name}' for field '{self.name}'")


class ForeignKeyField(RelatedClassMixin, Field):
    """
    Reference to another record by its id (or by ``related_id_method``).

    Generates ``x_id`` (raw value), ``x`` (related record), ``required_x()``,
    ``x_invalid()``, one forwarding method per name in ``delegate`` and one
    ``x_<name>()`` reader per name in ``accessors``.
    """

    field_type = "foreign_key"
    column_type = "int"
    default_hash_key = "*_id"
    autodetect = (("required", False),)
    interfaces = ("default",)

    @property
    def id_method(self) -> str:
        return self.spec.related_id_method or "id"

    def lookup(self, value: Any) -> Optional["Record"]:
        related = self.related_class()
        if self.id_method == "id":
            return related.fetch_id(value)
        return related.fetch_one({self.id_method: value})

    def get_related(self, record: "Record") -> Optional["Record"]:
        value = self.get_raw(record)
        if is_empty(value):
            return None
        return self.lookup(value)

    def set_related(self, record: "Record", related: Optional["Record"]) -> None:
        if related is None:
            self.set_raw(record, None)
            return
        expected = self.related_class()
        if not isinstance(related, expected):
            raise TypeError(
                f"Inappropriate object type for {self.name}: expected {expected.__name__}, "
                f"got {type(related).__name__}"
            )
        value = _call_or_get(related, self.id_method, (), {})
        if is_empty(value):
            raise ValueError(f"Can't store reference to unsaved {expected.__name__} record in {self.name}")
        self.set_raw(record, value)

    def require(self, record: "Record") -> "Record":
        value = self.get_raw(record)
        if is_empty(value):
            raise RecordNotFoundError(
                f"No {self.name} foreign key ID for {record_class(record).__name__} "
                f"ID '{record.get_value('id')}'"
            )
        related = self.lookup(value)
        if related is None:
            raise RecordNotFoundError(
                f"Couldn't find related {self.name} record for {record_class(record).__name__} "
                f"ID '{record.get_value('id')}' based on {self.id_method} '{value}'"
            )
        return related

    def invalid(self, record: "Record") -> Optional[Diagnostic]:
        self.detect_column_attributes(record)
        value = self.get_raw(record)
        if self.attr("required") and is_empty(value):
            return self.name, "This field is required."
        if not is_empty(value) and self.lookup(value) is None:
            return self.name, f"This field is invalid: no {self.related_class().__name__} matches '{value}'."
        return None

    def accessor(self) -> property:
        field = self
        return property(
            lambda record: field.get_related(record),
            lambda record, value: field.set_related(record, value),
            doc=f"Related record referenced by {self.key}",
        )

    def operations(self) -> Dict[str, Any]:
        field = self
        name = self.name
        ops: Dict[str, Any] = {
            f"{name}_id": property(
                lambda record: field.get_raw(record),
                lambda record, value: field.set_raw(record, value),
                doc=f"Raw foreign key value of {name}",
            ),
            name: self.accessor(),
            f"required_{name}": make_method(
                f"required_{name}",
                lambda record: field.require(record),
                f"Return the related {name} record or raise RecordNotFoundError.",
            ),
            f"{name}_invalid": make_method(
                f"{name}_invalid",
                lambda record: field.invalid(record),
                f"Validate {name}; returns (field_name, message) or None.",
            ),
        }
        for method in self.spec.delegate:
            ops[method] = self._forwarder(method)
        for method in self.spec.accessors:
            ops[f"{name}_{method}"] = self._reader(method)
        return ops

    def _forwarder(self, method: str) -> Any:
        field = self

        def forward(record: "Record", *args: Any, **kwargs: Any) -> Any:
            related = field.get_related(record)
            if related is None:
                raise RecordNotFoundError(f"Can't forward {method} because {field.name} is empty")
            return _call_or_get(related, method, args, kwargs)

        return make_method(method, forward, f"Forwarded to the related {self.name} record.")

    def _reader(self, method: str) -> Any:
        field = self

        def read(record: "Record", *args: Any, **kwargs: Any) -> Any:
            related = field.get_related(record)
            if related is None:
                return None
            return _call_or_get(related, method, args, kwargs)

        return make_method(
            f"{self.name}_{method}", read, f"{method} of the related {self.name} record, or None."
        )


def _call_or_get(target: Any, name: str, args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> Any:
    value = getattr(target, name)
    if callable(value):
        return value(*args, **kwargs)
    if args or kwargs:
        raise TypeError(f"{name} on {type(target).__name__} is not callable")
    return value


class LineItemsField(RelatedClassMixin, Field):
    """
    The records of ``related_class`` whose ``related_field`` holds this record's id.

    Generates ``x(criteria=None, **extra)``, ``count_x()``, ``new_x(**values)`` and
    ``delete_x()``. ``default_criteria`` (a mapping or Criteria) narrows every
    lookup, and mapping defaults are also applied to records built by ``new_x``.
    ``on_delete`` adds a pre-delete policy: ``restrict`` vetoes deleting the
    owner while items exist, ``cascade`` deletes the items first.
    """

    field_type = "line_items"
    interfaces = ("default",)

    def _required(self, attribute: str) -> str:
        value = getattr(self.spec, attribute)
        if not value:
            raise ConfigurationError(f"line_items field '{self.name}' needs a {attribute}")
        return value

    def owner_id(self, record: "Record") -> Any:
        return _call_or_get(record, self.spec.id_method or "id", (), {})

    def criteria(self, record: "Record", criteria: Any = None, extra: Optional[Dict[str, Any]] = None) -> Any:
        related_field = self._required("related_field")
        owner_id = self.owner_id(record)
        if is_empty(owner_id):
            return None
        defaults = self.spec.default_criteria
        extra = extra or {}
        if all(item is None or isinstance(item, Mapping) for item in (defaults, criteria)):
            return {related_field: owner_id, **(defaults or {}), **(criteria or {}), **extra}
        return combine(Equals(related_field, owner_id), defaults, criteria, extra)

    def fetch(self, record: "Record", criteria: Any = None, **extra: Any) -> RecordSet:
        where = self.criteria(record, criteria, extra)
        if where is None:
            return RecordSet()
        return self.related_class().fetch_records(criteria=where)

    def count(self, record: "Record", criteria: Any = None, **extra: Any) -> int:
        where = self.criteria(record, criteria, extra)
        if where is None:
            return 0
        return int(self.related_class().count_rows(where) or 0)

    def new(self, record: "Record", **values: Any) -> "Record":
        related_field = self._required("related_field")
        defaults = self.spec.default_criteria
        initial: Dict[str, Any] = {related_field: self.owner_id(record)}
        if isinstance(defaults, Mapping):
            initial.update(defaults)
        initial.update(values)
        return self.related_class()(**initial)

    def delete(self, record: "Record", criteria: Any = None, **extra: Any) -> int:
        deleted = 0
        for item in self.fetch(record, criteria, **extra):
            if item.delete_record():
                deleted += 1
        log.debug(
            "Deleted %d %s items of %s %s",
            deleted,
            self.name,
            record_class(record).__name__,
            self.owner_id(record),
        )
        return deleted

    def accessor(self) -> Any:
        field = self
        return make_method(
            self.name,
            lambda record, criteria=None, **extra: field.fetch(record, criteria, **extra),
            f"Fetch the related {self.name} records as a RecordSet.",
        )

    def operations(self) -> Dict[str, Any]:
        field = self
        name = self.name
        return {
            name: self.accessor(),
            f"count_{name}": make_method(
                f"count_{name}",
                lambda record, criteria=None, **extra: field.count(record, criteria, **extra),
                f"Count the related {name} records.",
            ),
            f"new_{name}": make_method(
                f"new_{name}",
                lambda record, **values: field.new(record, **values),
                f"Build (but do not save) a {name} record linked to this one.",
            ),
            f"delete_{name}": make_method(
                f"delete_{name}",
                lambda record, criteria=None, **extra: field.delete(record, criteria, **extra),
                f"Delete all related {name} records; returns how many were deleted.",
            ),
        }

    def hook_bindings(self) -> List[Tuple[str, HookCallback]]:
        bindings = super().hook_bindings()
        field = self
        if self.spec.on_delete == "restrict":

            def restrict(record: "Record") -> Optional[bool]:
                remaining = field.count(record)
                if remaining:
                    log.warning(
                        "Refusing to delete %s %s: %d %s still refer to it",
                        record_class(record).__name__,
                        field.owner_id(record),
                        remaining,
                        field.name,
                    )
                    return False
                return None

            bindings.append((PRE_DELETE, restrict))
        elif self.spec.on_delete == "cascade":

            def cascade(record: "Record") -> Optional[bool]:
                field.delete(record)
                if field.count(record):
                    return False
                return None

            bindings.append((PRE_DELETE, cascade))
        return bindings


__all__ = ["ForeignKeyField", "LineItemsField"]
