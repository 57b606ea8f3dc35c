"""Patches that fix up and extend the property information from an API dump."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

import yaml

from .reflection import (
    AliasKind,
    CanonicalKind,
    DataType,
    EnumType,
    PropertyDescriptor,
    PropertyKind,
    PropertySerialization,
    ReflectionDatabase,
    Scriptability,
    SerializationKind,
    VariantType,
)

log = logging.getLogger(__name__)


class PatchError(Exception):
    """A patch file was malformed or did not fit the database."""


def _require_mapping(value: Any, what: str) -> dict:
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise PatchError(f"{what} must be a mapping")
    return value


def _check_fields(mapping: dict, allowed: set[str], what: str) -> None:
    unknown = set(mapping) - allowed
    if unknown:
        raise PatchError(f"unknown field(s) in {what}: {', '.join(sorted(map(str, unknown)))}")


def _parse_scriptability(value: Any, what: str) -> Scriptability:
    try:
        return Scriptability(value)
    except ValueError as error:
        raise PatchError(f"invalid Scriptability {value!r} in {what}") from error


def _parse_data_type(value: Any, what: str) -> DataType:
    if not isinstance(value, dict) or len(value) != 1:
        raise PatchError(f"DataType in {what} must be a mapping with one key")
    ((tag, name),) = value.items()
    if tag == "Value":
        try:
            return VariantType(name)
        except ValueError as error:
            raise PatchError(f"unknown value type {name!r} in {what}") from error
    if tag == "Enum":
        if not isinstance(name, str):
            raise PatchError(f"enum name in {what} must be a string")
        return EnumType(name)
    raise PatchError(f"unknown DataType variant {tag!r} in {what}")


@dataclass(frozen=True)
class PatchSerialization:
    """A serialization setting as written in a patch file."""

    kind: SerializationKind
    serializes_as: str | None = None

    @classmethod
    def _from_mapping(cls, value: Any, what: str) -> PatchSerialization:
        if not isinstance(value, dict):
            raise PatchError(f"Serialization in {what} must be a mapping")
        try:
            kind = SerializationKind(value.get("Type"))
        except ValueError as error:
            raise PatchError(f"invalid serialization Type in {what}") from error
        if kind is SerializationKind.SERIALIZES_AS:
            _check_fields(value, {"Type", "As"}, what)
            name = value.get("As")
            if not isinstance(name, str):
                raise PatchError(f"SerializesAs in {what} needs a string As field")
            return cls(kind, name)
        _check_fields(value, {"Type"}, what)
        return cls(kind)

    def to_property_serialization(self) -> PropertySerialization:
        return PropertySerialization(self.kind, self.serializes_as)


@dataclass(frozen=True)
class PropertyChange:
    """Changes to an existing property."""

    alias_for: str | None = None
    serialization: PatchSerialization | None = None
    scriptability: Scriptability | None = None

    @classmethod
    def _from_mapping(cls, value: Any, what: str) -> PropertyChange:
        value = _require_mapping(value, what)
        _check_fields(value, {"AliasFor", "Serialization", "Scriptability"}, what)
        serialization = value.get("Serialization")
        scriptability = value.get("Scriptability")
        return cls(
            alias_for=value.get("AliasFor"),
            serialization=None
            if serialization is None
            else PatchSerialization._from_mapping(serialization, what),
            scriptability=None
            if scriptability is None
            else _parse_scriptability(scriptability, what),
        )

    def kind(self) -> PropertyKind | None:
        """The new kind this change gives the property, if any."""
        if self.alias_for is not None and self.serialization is not None:
            raise PatchError("property changes cannot specify AliasFor and Serialization")
        if self.alias_for is not None:
            return AliasKind(self.alias_for)
        if self.serialization is not None:
            return CanonicalKind(self.serialization.to_property_serialization())
        return None


@dataclass(frozen=True)
class PropertyAdd:
    """A property to add to a class."""

    data_type: DataType
    scriptability: Scriptability
    alias_for: str | None = None
    serialization: PatchSerialization | None = None

    @classmethod
    def _from_mapping(cls, value: Any, what: str) -> PropertyAdd:
        value = _require_mapping(value, what)
        _check_fields(value, {"DataType", "AliasFor", "Serialization", "Scriptability"}, what)
        for required in ("DataType", "Scriptability"):
            if required not in value:
                raise PatchError(f"missing field {required} in {what}")
        serialization = value.get("Serialization")
        return cls(
            data_type=_parse_data_type(value["DataType"], what),
            scriptability=_parse_scriptability(value["Scriptability"], what),
            alias_for=value.get("AliasFor"),
            serialization=None
            if serialization is None
            else PatchSerialization._from_mapping(serialization, what),
        )

    def kind(self) -> PropertyKind:
        """The kind of the added property."""
        if (self.alias_for is None) == (self.serialization is None):
            raise PatchError("property additions must specify AliasFor xor Serialization")
        if self.alias_for is not None:
            return AliasKind(self.alias_for)
        return CanonicalKind(self.serialization.to_property_serialization())


def _parse_section(value: Any, section: str, parse) -> dict[str, dict]:
    result: dict[str, dict] = {}
    for class_name, members in _require_mapping(value, section).items():
        members = _require_mapping(members, f"{section}.{class_name}")
        result[class_name] = {
            prop_name: parse(prop, f"{section}.{class_name}.{prop_name}")
            for prop_name, prop in members.items()
        }
    return result


@dataclass
class PropertyPatches:
    """Property changes and additions keyed by class name, then property name."""

    change: dict[str, dict[str, PropertyChange]] = field(default_factory=dict)
    add: dict[str, dict[str, PropertyAdd]] = field(default_factory=dict)

    @classmethod
    def parse(cls, source: str) -> PropertyPatches:
        """Parse one YAML patch document."""
        try:
            document = yaml.safe_load(source)
        except yaml.YAMLError as error:
            raise PatchError(f"invalid YAML: {error}") from error
        document = _require_mapping(document, "patch file")
        _check_fields(document, {"Change", "Add"}, "patch file")
        return cls(
            change=_parse_section(document.get("Change"), "Change", PropertyChange._from_mapping),
            add=_parse_section(document.get("Add"), "Add", PropertyAdd._from_mapping),
        )

    @classmethod
    def load(cls, sources: Iterable[str]) -> PropertyPatches:
        """Parse and merge several patch documents; later classes replace earlier ones."""
        patches = cls()
        for source in sources:
            try:
                parsed = cls.parse(source)
            except PatchError as error:
                raise PatchError(f"Couldn't parse property patch file: {error}") from error
            patches.change.update(parsed.change)
            patches.add.update(parsed.add)
        return patches

    def apply(self, database: ReflectionDatabase) -> None:
        """Apply all changes, then all additions, to ``database``."""
        for class_name, changes in self.change.items():
            cls = database.classes.get(class_name)
            if cls is None:
                raise PatchError(
                    f"Class {class_name} modified in patch file did not exist in database"
                )
            for property_name, change in changes.items():
                existing = cls.properties.get(property_name)
                if existing is None:
                    raise PatchError(
                        f"Property {class_name}.{property_name} modified in patch file "
                        "did not exist in database"
                    )
                log.debug("Property %s.%s changed", class_name, property_name)

                kind = change.kind()
                if kind is not None:
                    existing.kind = kind
                if change.scriptability is not None:
                    existing.scriptability = change.scriptability

        for class_name, additions in self.add.items():
            cls = database.classes.get(class_name)
            if cls is None:
                raise PatchError(f"Class {class_name} modified in patch file wasn't present")
            for property_name, addition in additions.items():
                if property_name in cls.properties:
                    raise PatchError(
                        f"Property {class_name}.{property_name} added in patch file "
                        "was already present"
                    )
                log.debug("Property %s.%s added", class_name, property_name)

                cls.properties[property_name] = PropertyDescriptor(
                    property_name,
                    addition.data_type,
                    scriptability=addition.scriptability,
                    kind=addition.kind(),
                )