"""
Field behaviors and the per-class field registry.

Each field kind is a ``Field`` subclass. A Field wraps one ``FieldSpec`` and
knows how to read and write its value on a record, how to validate it, which
column (if any) it needs, and which named operations to install on the record
class that declares it. ``FieldRegistry`` holds the fields a class declares
directly and computes the inheritance-merged view on demand.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, ClassVar, Dict, List, Mapping, Optional, Sequence, Tuple

from dbrecords.errors import ConfigurationError
from dbrecords.fields.spec import FieldSpec
from dbrecords.hooks import HookCallback, check_event, method_caller
from dbrecords.schema import Column
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.record import Record

log = get_logger(__name__)

Diagnostic = Tuple[str, str]

# Sentinel for "no argument given" on combined get/set methods.
UNSET: Any = object()


def is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def record_class(record_or_class: Any) -> type:
    return record_or_class if isinstance(record_or_class, type) else type(record_or_class)


def make_method(name: str, func: Callable[..., Any], doc: Optional[str] = None) -> Callable[..., Any]:
    """Name a generated function so it reads well in tracebacks and help()."""
    func.__name__ = name
    func.__qualname__ = name
    if doc:
        func.__doc__ = doc
    return func


class Field:
    """
    Base field kind: raw get/set against the field's storage key.

    Subclasses override ``get``/``set``/``invalid`` and extend ``operations``.
    Class attributes describe the kind:

    - ``field_type``: the name used in declarations.
    - ``column_type``: type tag of the physical column, None for fields without one.
    - ``autodetect``: ``(attribute, default)`` pairs filled from table metadata when unset.
    - ``default_hash_key``: storage key pattern, ``*`` standing for the field name.
    - ``interfaces``: accepted values of the ``interface`` attribute.
    - ``interface_hooks``: lifecycle bindings contributed by each interface.
    """

    field_type: ClassVar[str] = "generic"
    column_type: ClassVar[Optional[str]] = None
    autodetect: ClassVar[Tuple[Tuple[str, Any], ...]] = ()
    default_hash_key: ClassVar[str] = "*"
    interfaces: ClassVar[Tuple[str, ...]] = ("default", "read_only", "init_and_get")
    interface_hooks: ClassVar[Mapping[str, Mapping[str, str]]] = {}

    def __init__(self, spec: FieldSpec) -> None:
        self.spec = spec
        self.owner: Optional[type] = None
        self._detected: Optional[Dict[str, Any]] = None
        if self.interface not in self.interfaces:
            raise ConfigurationError(
                f"{self.field_type} field '{spec.name}' does not support interface "
                f"'{self.interface}'. Available: {', '.join(self.interfaces)}"
            )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"

    # ------------------------------------------------------------------
    # Identity and attributes

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def key(self) -> str:
        """Storage key of the value in the record mapping (and its column name)."""
        return (self.spec.hash_key or self.default_hash_key).replace("*", self.name)

    @property
    def interface(self) -> str:
        return self.spec.interface or "default"

    def attr(self, name: str, default: Any = None) -> Any:
        """Attribute value: detected from the table first, then declared, then ``default``."""
        if self._detected and name in self._detected:
            return self._detected[name]
        value = getattr(self.spec, name, None)
        return default if value is None else value

    def expand(self, pattern: str) -> str:
        return pattern.replace("*", self.name)

    def bind(self, owner: type) -> None:
        self.owner = owner

    def owner_name(self, record: Any = None) -> str:
        if record is not None:
            return record_class(record).__name__
        return self.owner.__name__ if self.owner else "<unbound>"

    # ------------------------------------------------------------------
    # Column auto-detection

    def detect_column_attributes(self, record: Any) -> None:
        """
        Fill attributes left unspecified from the owning table's column of the
        same name, or from the kind's defaults. Runs once per field.
        """
        if self._detected is not None or not self.autodetect:
            return
        detected: Dict[str, Any] = {}
        column: Optional[Column] = None
        looked = False
        for attribute, default in self.autodetect:
            if getattr(self.spec, attribute, None) is not None:
                continue
            if not looked:
                column = self._look_for_column(record)
                looked = True
            found = getattr(column, attribute, None) if column is not None else None
            detected[attribute] = found if found is not None else default
        if detected:
            log.debug(
                "Detected column attributes for %s.%s: %s",
                self.owner_name(record),
                self.name,
                detected,
            )
        self._detected = detected

    def _look_for_column(self, record: Any) -> Optional[Column]:
        cls = record_class(record)
        table = getattr(cls, "_table", None)
        if table is None or table.datasource is None:
            return None
        return table.get_column_set().find(self.key)

    def column(self, record: Any) -> Optional[Column]:
        """Column definition for schema creation, or None for fields without storage."""
        column_type = self.spec.column_type or self.column_type
        if not column_type:
            return None
        self.detect_column_attributes(record)
        length = self.attr("length")
        return Column(
            name=self.key,
            type=column_type,
            length=length or None,
            required=bool(self.attr("required")),
        )

    # ------------------------------------------------------------------
    # Value access

    def get_raw(self, record: "Record") -> Any:
        return record.get_value(self.key)

    def set_raw(self, record: "Record", value: Any) -> None:
        record.set_value(self.key, value)

    def is_empty(self, record: "Record") -> bool:
        return is_empty(self.get_raw(record))

    def get(self, record: "Record") -> Any:
        return self.get_raw(record)

    def set(self, record: "Record", value: Any) -> None:
        self.set_raw(record, value)

    def get_init(self, record: "Record") -> Any:
        """Return the value, first computing and storing it with the init method if unset."""
        if self.get_raw(record) is None:
            method_name = self.expand(self.spec.init_method or "init_*")
            init = getattr(record, method_name, None)
            if init is None:
                raise ConfigurationError(
                    f"{self.owner_name(record)} must define {method_name}() for field '{self.name}'"
                )
            self.set(record, init())
        return self.get(record)

    def invalid(self, record: "Record") -> Optional[Diagnostic]:
        """Return a ``(field_name, message)`` diagnostic, or None when the value is acceptable."""
        return None

    # ------------------------------------------------------------------
    # Code generation

    def accessor(self) -> property:
        """The property installed under the field's own name."""
        field = self

        def fget(record: "Record") -> Any:
            return field.get(record)

        def fset(record: "Record", value: Any) -> None:
            field.set(record, value)

        def finit(record: "Record") -> Any:
            return field.get_init(record)

        doc = f"{self.field_type} field '{self.name}'"
        if self.interface == "read_only":
            return property(fget, doc=doc)
        if self.interface == "init_and_get":
            return property(finit, fset, doc=doc)
        return property(fget, fset, doc=doc)

    def operations(self) -> Dict[str, Any]:
        """Named operations to install on the declaring record class."""
        field = self
        ops: Dict[str, Any] = {self.name: self.accessor()}
        if self.interface != "read_only":
            ops[f"{self.name}_invalid"] = make_method(
                f"{self.name}_invalid",
                lambda record: field.invalid(record),
                f"Validate {self.name}; returns (field_name, message) or None.",
            )
        return ops

    def hook_bindings(self) -> List[Tuple[str, HookCallback]]:
        """Lifecycle callbacks contributed by the interface and the ``hooks`` attribute."""
        bindings: List[Tuple[str, HookCallback]] = []
        declared = dict(self.interface_hooks.get(self.interface, {}))
        declared.update(self.spec.hooks)
        for event, target in declared.items():
            check_event(event)
            if callable(target):
                bindings.append((event, target))
            elif isinstance(target, str):
                bindings.append((event, method_caller(self.expand(target))))
            else:
                raise ConfigurationError(
                    f"Unsupported hook binding {event} => {target!r} on field '{self.name}'"
                )
        return bindings


class FieldRegistry:
    """
    Fields declared directly on one record class, plus the inheritance-merged view.

    Written once when the class is created and only read afterwards.
    """

    def __init__(self, owner: type, class_fields: Sequence[Field] = ()) -> None:
        self.owner = owner
        seen: Dict[str, Field] = {}
        for field in class_fields:
            if field.name in seen:
                raise ConfigurationError(f"Field '{field.name}' is declared twice on {owner.__name__}")
            seen[field.name] = field
            field.bind(owner)
        self._class_fields: Tuple[Field, ...] = tuple(class_fields)

    @property
    def class_fields(self) -> Tuple[Field, ...]:
        return self._class_fields

    def class_field(self, name: str) -> Optional[Field]:
        for field in self._class_fields:
            if field.name == name:
                return field
        return None

    def fields(self) -> Dict[str, Field]:
        """
        Merge the fields of the owner and all its ancestors.

        Ancestry is walked breadth-first from the owner; each ancestor's fields
        are placed before those already collected, so the collected list runs
        from the most distant ancestor to the owner. Names keep the position of
        their first occurrence; the last (most derived) declaration wins.
        """
        collected: List[Field] = []
        pending: List[type] = [self.owner]
        visited: set[type] = set()
        while pending:
            klass = pending.pop(0)
            if klass in visited:
                continue
            visited.add(klass)
            pending.extend(klass.__bases__)
            registry = klass.__dict__.get("_field_registry")
            if registry is not None:
                collected[:0] = registry.class_fields

        winners: Dict[str, Field] = {}
        for field in collected:
            winners[field.name] = field
        ordered: Dict[str, Field] = {}
        for field in collected:
            if field.name not in ordered:
                ordered[field.name] = winners[field.name]
        return ordered


__all__ = [
    "Diagnostic",
    "Field",
    "FieldRegistry",
    "UNSET",
    "is_empty",
    "make_method",
    "record_class",
]
