"""
Declarative field specifications.

A record class lists its fields as ``FieldSpec`` objects or plain dicts; both
are validated here before any accessor is generated, so a misspelled
attribute fails at class-definition time rather than on first use.
"""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Tuple, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator


class FieldSpec(BaseModel):
    """
    Declarative description of one record attribute and the behavior it generates.
    """

    name: str = Field(..., min_length=1, description="Field name, unique within the declaring class.")
    field_type: str = Field(
        "generic",
        validation_alias=AliasChoices("field_type", "type"),
        description="Semantic field type, one of the registered field kinds.",
    )

    # Column attributes; None means "detect from the table, or use the default".
    required: Optional[bool] = None
    length: Optional[int] = Field(None, ge=0)
    column_type: Optional[str] = None
    hash_key: Optional[str] = Field(None, description="Storage key; '*' is replaced by the name.")

    # Accessor flavour and companion methods
    interface: Optional[str] = None
    init_method: Optional[str] = None
    reset_checker: Optional[str] = None
    default_readable_format: Optional[str] = None

    # Relationships
    related_class: Optional[Any] = Field(None, description="Record class, or its (dotted) name.")
    related_field: Optional[str] = None
    related_id_method: Optional[str] = None
    id_method: Optional[str] = None
    default_criteria: Optional[Any] = None
    delegate: Tuple[str, ...] = ()
    accessors: Tuple[str, ...] = ()
    on_delete: Optional[Literal["restrict", "cascade"]] = None

    # Unique codes
    chars: Optional[str] = None
    dated: Optional[int] = None
    max_attempts: Optional[int] = Field(None, ge=1)

    # Aliases
    target: Optional[str] = None

    # Extra lifecycle bindings: event -> method name ('*' replaced by the name) or callable
    hooks: Dict[str, Any] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
        "extra": "forbid",
        "populate_by_name": True,
        "arbitrary_types_allowed": True,
    }

    @field_validator("delegate", "accessors", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, str):
            return tuple(value.split())
        return value

    @field_validator("chars", mode="before")
    @classmethod
    def _join_chars(cls, value: Any) -> Any:
        if isinstance(value, (list, tuple)):
            return "".join(value)
        return value

    @classmethod
    def of(cls, field_type: str, name: str, **attributes: Any) -> "FieldSpec":
        """Shorthand constructor: ``FieldSpec.of("string", "name", length=64)``."""
        return cls(field_type=field_type, name=name, **attributes)


FieldDeclaration = Union[FieldSpec, Dict[str, Any]]


def as_spec(declaration: FieldDeclaration) -> FieldSpec:
    if isinstance(declaration, FieldSpec):
        return declaration
    return FieldSpec.model_validate(declaration)


__all__ = ["FieldSpec", "FieldDeclaration", "as_spec"]
