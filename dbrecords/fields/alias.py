"""
Alias fields: a second name for an existing attribute or method.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from dbrecords.errors import ConfigurationError
from dbrecords.fields.base import Field
from dbrecords.fields.spec import FieldSpec


def is_settable(cls: type, name: str) -> bool:
    """Whether assigning ``name`` on an instance of ``cls`` goes through a setter."""
    seen = set()
    while name not in seen:
        seen.add(name)
        for klass in cls.__mro__:
            if name in klass.__dict__:
                attr = klass.__dict__[name]
                break
        else:
            return False
        if isinstance(attr, AliasDescriptor):
            name = attr.target
            continue
        if isinstance(attr, property):
            return attr.fset is not None
        return hasattr(attr, "__set__")
    return False


class AliasDescriptor:
    """
    Forwards to ``target`` on the instance's class, looked up at access time so
    the target may be defined after the alias.

    Reading returns the target's value (for a property) or its bound method;
    assigning is forwarded to the target when it has a setter.
    """

    def __init__(self, name: str, target: str) -> None:
        self.name = name
        self.target = target

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _check(self, owner: type) -> None:
        if not hasattr(owner, self.target):
            raise ConfigurationError(
                f"Alias '{self.name}' on {owner.__name__} points at missing attribute '{self.target}'"
            )

    def __get__(self, instance: Any, owner: Optional[type] = None) -> Any:
        if instance is None:
            if owner is not None:
                self._check(owner)
                return getattr(owner, self.target)
            return self
        self._check(type(instance))
        return getattr(instance, self.target)

    def __set__(self, instance: Any, value: Any) -> None:
        owner = type(instance)
        self._check(owner)
        if not is_settable(owner, self.target):
            raise AttributeError(
                f"Alias '{self.name}' on {owner.__name__} can't be assigned: '{self.target}' has no setter"
            )
        setattr(instance, self.target, value)


class AliasField(Field):
    field_type = "alias"
    interfaces = ("default",)

    def __init__(self, spec: FieldSpec) -> None:
        super().__init__(spec)
        if not spec.target:
            raise ConfigurationError(f"alias field '{spec.name}' needs a target")

    def operations(self) -> Dict[str, Any]:
        return {self.name: AliasDescriptor(self.name, self.spec.target)}


__all__ = ["AliasField", "AliasDescriptor", "is_settable"]
