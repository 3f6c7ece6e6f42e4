"""
TableSet: a group of record classes bound to tables of one shared datasource.

Example
-------
    tables = TableSet({"dbrecords.catalog.Artist": "artist", Disc: "disc"})
    tables.connect_datasource()      # PostgreSQL, from settings
    tables.require_packages()
    tables.declare_tables()
    tables.ensure_tables_exist()
"""

from __future__ import annotations

import importlib
from typing import Dict, List, Mapping, Optional, Tuple, Union

from dbrecords.datasource import create_datasource
from dbrecords.datasource.abstract import DataSource
from dbrecords.errors import ConfigurationError
from dbrecords.table import Table
from dbrecords.utils.logging import get_logger

log = get_logger(__name__)

ClassRef = Union[type, str]


def import_class(path: str) -> type:
    """Import ``package.module.ClassName`` and return the class."""
    module_name, _, class_name = path.rpartition(".")
    if not module_name:
        raise ConfigurationError(f"Record class path '{path}' must include its module")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Cannot import module '{module_name}' for '{path}'") from exc
    found = getattr(module, class_name, None)
    if not isinstance(found, type):
        raise ConfigurationError(f"Module '{module_name}' has no class '{class_name}'")
    return found


class TableSet:
    """
    Record class to table name bindings sharing one datasource.

    Parameters
    ----------
    packages : Mapping[type | str, str], optional
        Record classes (or dotted class paths) and their table names.
    datasource : DataSource, optional
        Shared datasource; see ``connect_datasource``.
    """

    def __init__(
        self,
        packages: Optional[Mapping[ClassRef, str]] = None,
        datasource: Optional[DataSource] = None,
    ) -> None:
        self.packages: Dict[ClassRef, str] = dict(packages or {})
        self.datasource = datasource

    def __repr__(self) -> str:
        return f"<TableSet {', '.join(self.packages.values())}>"

    def connect_datasource(self, dsn: Optional[str] = None, kind: str = "postgres") -> DataSource:
        """Create the shared datasource (PostgreSQL from settings unless told otherwise)."""
        self.datasource = create_datasource(kind, dsn=dsn)
        log.info("Connected %s datasource", kind, extra={"datasource": kind})
        return self.datasource

    def require_packages(self) -> List[type]:
        """Import every record class given as a dotted path and key the bindings by class."""
        resolved: Dict[ClassRef, str] = {}
        for ref, table_name in self.packages.items():
            resolved[import_class(ref) if isinstance(ref, str) else ref] = table_name
        self.packages = resolved
        return list(resolved)

    def bindings(self) -> List[Tuple[type, str]]:
        pairs = []
        for ref, table_name in self.packages.items():
            if isinstance(ref, str):
                raise ConfigurationError(f"Record class '{ref}' is not loaded; call require_packages() first")
            pairs.append((ref, table_name))
        return pairs

    def _require_datasource(self) -> DataSource:
        if self.datasource is None:
            raise ConfigurationError("No datasource set for TableSet; call connect_datasource() first")
        return self.datasource

    # ------------------------------------------------------------------

    def declare_tables(self) -> None:
        """Bind a Table on the shared datasource to each record class."""
        datasource = self._require_datasource()
        for cls, table_name in self.bindings():
            cls.bind_table(Table(table_name, datasource))
            log.debug("Declared table %s for %s", table_name, cls.__name__)

    def create_tables(self) -> None:
        for cls, _ in self.bindings():
            cls.table().table_create(cls.field_columns())

    def ensure_tables_exist(self) -> List[str]:
        """Create the tables that do not exist yet; returns their names."""
        created = []
        for cls, table_name in self.bindings():
            if cls.table().table_ensure_exists(cls.field_columns()):
                created.append(table_name)
        return created

    def refresh_tables_schema(self) -> None:
        """
        Bring every table in line with its record class's fields.

        Existing tables are recreated with their rows; missing ones are created.
        """
        for cls, _ in self.bindings():
            table = cls.table()
            columns = cls.field_columns()
            if table.table_exists():
                table.table_recreate_with_rows(columns)
            else:
                table.table_create(columns)

    def drop_tables(self) -> List[str]:
        """Drop the tables that exist; returns their names."""
        dropped = []
        for cls, table_name in self.bindings():
            table = cls._table
            if table is None or not table.table_exists():
                continue
            table.table_drop()
            dropped.append(table_name)
        return dropped


__all__ = ["TableSet", "import_class"]
