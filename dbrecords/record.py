"""
Record: base class for objects persisted as rows of a Table.

Subclasses declare their fields in ``field_specs``. When the subclass is
created, each declaration is turned into a Field, the class's FieldRegistry
and HookChain are built, and the operations every field generates (``x``,
``x_invalid``, ``count_x`` ...) are installed on the class. Attributes the
class body defines itself always take precedence over generated ones.

Example
-------
    class Artist(Record):
        field_specs = [
            {"name": "id", "field_type": "number", "required": True},
            {"name": "name", "field_type": "string", "length": 64, "required": True},
            {"name": "discs", "field_type": "line_items",
             "related_class": "Disc", "related_field": "artist_id"},
        ]

    Artist.bind_table(Table("artist", datasource))
    artist = Artist.new_and_save(name="Miles Davis")
    artist.count_discs()
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterator, List, Mapping, Optional, Sequence, Union

from dbrecords.criteria import CriteriaLike, OrderLike
from dbrecords.errors import ConfigurationError, RecordNotFoundError
from dbrecords.fields import Diagnostic, Field, FieldDeclaration, FieldRegistry, SubclassNameField, build_field
from dbrecords.fields.alias import is_settable
from dbrecords.fields.base import is_empty
from dbrecords.hooks import (
    POST_DELETE,
    POST_FETCH,
    POST_INSERT,
    POST_NEW,
    POST_UPDATE,
    PRE_DELETE,
    PRE_INSERT,
    PRE_UPDATE,
    HookCallback,
    HookChain,
    inherited_callbacks,
    method_caller,
)
from dbrecords.recordset import RecordSet
from dbrecords.schema import PRIMARY_KEY, Column
from dbrecords.utils.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover
    from dbrecords.datasource.abstract import DataSource
    from dbrecords.table import Table

log = get_logger(__name__)

# Placeholder id used by forms for "not saved yet".
NEW_ID = "new"


class Record:
    """
    A row of a table, as a mapping from column name to value plus generated accessors.

    The primary key lives under ``id``; a record is persisted once that value
    is set. Values are always stored under their column names, so
    ``record["artist_id"]`` and ``record.artist_id`` read the same slot.
    """

    field_specs: ClassVar[Sequence[FieldDeclaration]] = ()
    discriminator_value: ClassVar[Optional[str]] = None
    _table: ClassVar[Optional["Table"]] = None
    _deleted = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        own_names = set(cls.__dict__)
        declared = [build_field(declaration) for declaration in cls.__dict__.get("field_specs", ())]
        cls._field_registry = FieldRegistry(cls, declared)

        chain = HookChain()
        for field in declared:
            for name, operation in field.operations().items():
                if name in own_names:
                    log.debug("%s defines %s itself; skipping generated %s", cls.__name__, name, field)
                    continue
                setattr(cls, name, operation)
            for event, callback in field.hook_bindings():
                chain.add(event, callback)
        chain.collect_decorated({name: cls.__dict__[name] for name in own_names})
        cls._hook_chain = chain

        for field in cls.fields().values():
            if isinstance(field, SubclassNameField):
                field.register_subclass(cls)

    def __init__(self, **values: Any) -> None:
        self._values: Dict[str, Any] = {}
        self._assign(values)
        self.run_hooks(POST_NEW)

    def _assign(self, values: Mapping[str, Any]) -> None:
        cls = type(self)
        for key, value in values.items():
            if is_settable(cls, key):
                setattr(self, key, value)
            else:
                self._values[key] = value

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self._values.get(PRIMARY_KEY)!r}>"

    # ------------------------------------------------------------------
    # Mapping access to the stored values

    def __getitem__(self, key: str) -> Any:
        return self._values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self._values[key] = value

    def __delitem__(self, key: str) -> None:
        del self._values[key]

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __bool__(self) -> bool:
        return True

    def get_value(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set_value(self, key: str, value: Any) -> None:
        self._values[key] = value

    def as_dict(self) -> Dict[str, Any]:
        return dict(self._values)

    @property
    def id(self) -> Any:
        return self._values.get(PRIMARY_KEY)

    @id.setter
    def id(self, value: Any) -> None:
        self._values[PRIMARY_KEY] = value

    @property
    def is_persisted(self) -> bool:
        value = self._values.get(PRIMARY_KEY)
        return not is_empty(value) and value != NEW_ID

    @property
    def is_deleted(self) -> bool:
        return self._deleted

    # ------------------------------------------------------------------
    # Fields and hooks

    @classmethod
    def _registry(cls) -> FieldRegistry:
        return cls.__dict__.get("_field_registry") or FieldRegistry(cls)

    @classmethod
    def fields(cls) -> Dict[str, Field]:
        """Fields of this class and its ancestors, merged by name."""
        return cls._registry().fields()

    @classmethod
    def class_fields(cls) -> tuple:
        """Fields declared directly on this class."""
        return cls._registry().class_fields

    @classmethod
    def field(cls, name: str) -> Optional[Field]:
        return cls.fields().get(name)

    @classmethod
    def field_columns(cls) -> List[Column]:
        """Column definitions for the class's table, primary key first."""
        columns = [column for column in (f.column(cls) for f in cls.fields().values()) if column is not None]
        if not any(column.name == PRIMARY_KEY for column in columns):
            columns.insert(0, Column(name=PRIMARY_KEY, type="int", required=True))
        return columns

    @classmethod
    def add_hook(cls, event: str, callback: Union[HookCallback, str]) -> None:
        """Register a callback (or a method name) for a lifecycle event of this class."""
        chain = cls.__dict__.get("_hook_chain")
        if chain is None:
            chain = HookChain()
            cls._hook_chain = chain
        chain.add(event, method_caller(callback) if isinstance(callback, str) else callback)

    def run_hooks(self, event: str) -> bool:
        """
        Run the callbacks for ``event``, ancestors first.

        For ``pre_delete`` a callback returning exactly False vetoes the delete:
        the remaining callbacks are skipped and False is returned.
        """
        for callback in inherited_callbacks(type(self), event):
            result = callback(self)
            if event == PRE_DELETE and result is False:
                return False
        return True

    def invalid_fields(self) -> List[Diagnostic]:
        """``(field_name, message)`` for every field whose value is not acceptable."""
        problems: List[Diagnostic] = []
        for name, field in type(self).fields().items():
            checker = getattr(self, f"{name}_invalid", None)
            problem = checker() if callable(checker) else field.invalid(self)
            if problem:
                problems.append(problem)
        return problems

    def call_methods(self, **values: Any) -> "Record":
        """Assign each value through its property, or pass it to the method of that name."""
        cls = type(self)
        for name, value in values.items():
            if is_settable(cls, name):
                setattr(self, name, value)
                continue
            method = getattr(self, name, None)
            if not callable(method):
                raise AttributeError(f"{cls.__name__} has no method or settable field '{name}'")
            method(value)
        return self

    # ------------------------------------------------------------------
    # Table binding

    @classmethod
    def table(cls) -> "Table":
        if cls._table is None:
            raise ConfigurationError(f"No table set for {cls.__name__}")
        return cls._table

    @classmethod
    def bind_table(cls, table: Optional["Table"]) -> None:
        cls._table = table

    @classmethod
    def datasource(cls) -> "DataSource":
        return cls.table().require_datasource()

    # ------------------------------------------------------------------
    # Fetching

    @classmethod
    def _discriminator(cls) -> Optional[SubclassNameField]:
        for field in cls.fields().values():
            if isinstance(field, SubclassNameField):
                return field
        return None

    @classmethod
    def from_row(cls, row: Mapping[str, Any], discriminator: Optional[SubclassNameField] = None) -> "Record":
        """
        Build a record from a stored row and run its ``post_fetch`` hooks.

        When the class has a ``subclass_name`` field, the record is built as
        the subclass registered for the row's discriminator value.
        """
        klass = cls
        if discriminator is not None:
            found = discriminator.class_for(row.get(discriminator.key), cls)
            if issubclass(found, cls):
                klass = found
        record = klass.__new__(klass)
        record._values = dict(row)
        record.run_hooks(POST_FETCH)
        return record

    @classmethod
    def fetch_records(
        cls,
        criteria: CriteriaLike = None,
        order: OrderLike = None,
        limit: Optional[int] = None,
    ) -> RecordSet:
        rows = cls.table().fetch_select(criteria, order=order, limit=limit)
        discriminator = cls._discriminator()
        return RecordSet(cls.from_row(row, discriminator) for row in rows)

    @classmethod
    def fetch_all(cls) -> RecordSet:
        return cls.fetch_records()

    @classmethod
    def fetch_one(cls, criteria: CriteriaLike = None, order: OrderLike = None) -> Optional["Record"]:
        """First matching record, or None. Several matches are logged as a warning."""
        rows = cls.table().fetch_select(criteria, order=order, limit=2)
        if not rows:
            return None
        if len(rows) > 1:
            log.warning("fetch_one found multiple %s matches for %r", cls.__name__, criteria)
        return cls.from_row(rows[0], cls._discriminator())

    @classmethod
    def fetch_id(cls, id: Any) -> Optional["Record"]:
        if is_empty(id):
            return None
        row = cls.table().fetch_id(id)
        if row is None:
            return None
        return cls.from_row(row, cls._discriminator())

    @classmethod
    def get_record(cls, id: Any = None) -> Optional["Record"]:
        """A new record when ``id`` is empty or ``"-new"``, otherwise the stored one (or None)."""
        if not id or id == "-new":
            return cls()
        return cls.fetch_id(id)

    @classmethod
    def count_rows(cls, criteria: CriteriaLike = None) -> int:
        return cls.table().count_rows(criteria)

    @classmethod
    def new_and_save(cls, **values: Any) -> "Record":
        record = cls(**values)
        record.save_record()
        return record

    def refetch_record(self) -> "Record":
        """Replace the in-memory values with the stored row."""
        cls = type(self)
        id = self._values.get(PRIMARY_KEY)
        row = cls.table().fetch_id(id)
        if row is None:
            raise RecordNotFoundError(f"Can't refetch {cls.__name__} ID '{id}': no such row")
        self._values = dict(row)
        self.run_hooks(POST_FETCH)
        return self

    # ------------------------------------------------------------------
    # Writing

    def insert_record(self) -> "Record":
        table = type(self).table()
        self.run_hooks(PRE_INSERT)
        table.insert_row(self._values)
        log.debug("Inserted %s %s", type(self).__name__, self._values.get(PRIMARY_KEY))
        self.run_hooks(POST_INSERT)
        return self

    def update_record(self) -> "Record":
        cls = type(self)
        if self._deleted:
            raise RecordNotFoundError(f"Can't update {cls.__name__} {self.id}: it has been deleted")
        if not self.is_persisted:
            raise RecordNotFoundError(f"Can't update {cls.__name__} that has not been saved")
        table = cls.table()
        self.run_hooks(PRE_UPDATE)
        changed = table.update_row(self._values)
        if not changed:
            log.warning("Update of %s %s matched no rows", cls.__name__, self._values.get(PRIMARY_KEY))
        self.run_hooks(POST_UPDATE)
        return self

    def save_record(self) -> "Record":
        """Insert the record when it has no id, otherwise update it."""
        if self._deleted:
            raise RecordNotFoundError(f"Can't save {type(self).__name__} {self.id}: it has been deleted")
        if self._values.get(PRIMARY_KEY) == NEW_ID:
            self._values[PRIMARY_KEY] = None
        if self.is_persisted:
            return self.update_record()
        return self.insert_record()

    def change_and_save(self, **values: Any) -> "Record":
        self.call_methods(**values)
        return self.save_record()

    def delete_record(self) -> bool:
        """Delete the stored row unless a ``pre_delete`` callback vetoes it."""
        cls = type(self)
        if not self.run_hooks(PRE_DELETE):
            log.warning("Delete of %s %s was vetoed", cls.__name__, self._values.get(PRIMARY_KEY))
            return False
        cls.table().delete_row(self._values)
        self._deleted = True
        self.run_hooks(POST_DELETE)
        return True

    def clone(self, **overrides: Any) -> "Record":
        """An unsaved copy of this record, with ``overrides`` applied."""
        cls = type(self)
        copy = cls.__new__(cls)
        copy._values = {**self._values, PRIMARY_KEY: None}
        copy._assign(overrides)
        copy.run_hooks(POST_NEW)
        return copy


__all__ = ["Record", "NEW_ID"]
