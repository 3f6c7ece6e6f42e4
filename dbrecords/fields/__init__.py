"""
Field kinds and the registry that maps declared field types to them.
"""

from typing import Dict, Type

from dbrecords.errors import ConfigurationError
from dbrecords.fields.alias import AliasField
from dbrecords.fields.base import UNSET, Diagnostic, Field, FieldRegistry, is_empty
from dbrecords.fields.codes import SubclassNameField, UniqueCodeField
from dbrecords.fields.currency import CurrencyPenniesField, SavedTotalField, SavedTotalPenniesField
from dbrecords.fields.relations import ForeignKeyField, LineItemsField
from dbrecords.fields.scalar import NumberField, StringField
from dbrecords.fields.spec import FieldDeclaration, FieldSpec, as_spec
from dbrecords.fields.temporal import JulianDayField, TimestampField

FIELD_TYPES: Dict[str, Type[Field]] = {
    kind.field_type: kind
    for kind in (
        Field,
        StringField,
        NumberField,
        TimestampField,
        JulianDayField,
        CurrencyPenniesField,
        SavedTotalField,
        SavedTotalPenniesField,
        UniqueCodeField,
        SubclassNameField,
        ForeignKeyField,
        LineItemsField,
        AliasField,
    )
}


def build_field(declaration: FieldDeclaration) -> Field:
    """Validate a declaration and instantiate the Field kind it names."""
    spec = as_spec(declaration)
    kind = FIELD_TYPES.get(spec.field_type)
    if kind is None:
        raise ConfigurationError(
            f"Unknown field type '{spec.field_type}' for field '{spec.name}'. "
            f"Available: {', '.join(sorted(FIELD_TYPES))}"
        )
    return kind(spec)


__all__ = [
    "FIELD_TYPES",
    "UNSET",
    "AliasField",
    "CurrencyPenniesField",
    "Diagnostic",
    "Field",
    "FieldDeclaration",
    "FieldRegistry",
    "FieldSpec",
    "ForeignKeyField",
    "JulianDayField",
    "LineItemsField",
    "NumberField",
    "SavedTotalField",
    "SavedTotalPenniesField",
    "StringField",
    "SubclassNameField",
    "TimestampField",
    "UniqueCodeField",
    "as_spec",
    "build_field",
    "is_empty",
]
