"""Reading the JSON API dump produced by Roblox Studio into a reflection database."""

from __future__ import annotations

import enum
import json
import subprocess
import tempfile
from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import Any

from .reflection import (
    CanonicalKind,
    ClassDescriptor,
    DataType,
    EnumDescriptor,
    EnumType,
    PropertyDescriptor,
    PropertySerialization,
    ReflectionDatabase,
    Scriptability,
    VariantType,
)

_ROOT_SUPERCLASS = "<<<ROOT>>>"
_READ_ONLY = "ReadOnly"
_NOT_SCRIPTABLE = "NotScriptable"


class UnknownValueTypeError(ValueError):
    """The API dump named a value type with no known counterpart."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Unknown type {type_name}")


class ValueCategory(enum.Enum):
    """The broad category of a property's value type."""

    PRIMITIVE = "Primitive"
    DATA_TYPE = "DataType"
    ENUM = "Enum"
    CLASS = "Class"


class Security(enum.Enum):
    """The security level guarding reads or writes of a member."""

    NONE = "None"
    LOCAL_USER_SECURITY = "LocalUserSecurity"
    PLUGIN_SECURITY = "PluginSecurity"
    ROBLOX_SCRIPT_SECURITY = "RobloxScriptSecurity"
    NOT_ACCESSIBLE_SECURITY = "NotAccessibleSecurity"
    ROBLOX_SECURITY = "RobloxSecurity"


_SCRIPT_ACCESSIBLE = {Security.NONE, Security.PLUGIN_SECURITY}


def _field(obj: Any, key: str, what: str) -> Any:
    if not isinstance(obj, dict):
        raise ValueError(f"{what} must be a JSON object")
    try:
        return obj[key]
    except KeyError:
        raise ValueError(f"missing field {key} in {what}") from None


def _string(obj: Any, key: str, what: str) -> str:
    value = _field(obj, key, what)
    if not isinstance(value, str):
        raise ValueError(f"field {key} in {what} must be a string")
    return value


def _bool(obj: Any, key: str, what: str) -> bool:
    value = _field(obj, key, what)
    if not isinstance(value, bool):
        raise ValueError(f"field {key} in {what} must be a boolean")
    return value


def _list(obj: Any, key: str, what: str) -> list:
    value = _field(obj, key, what)
    if not isinstance(value, list):
        raise ValueError(f"field {key} in {what} must be an array")
    return value


def _tags(obj: dict, what: str) -> frozenset[str]:
    tags = obj.get("Tags") or []
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise ValueError(f"Tags in {what} must be an array of strings")
    return frozenset(tags)


def _enum_value(enum_type: type[enum.Enum], value: Any, what: str):
    try:
        return enum_type(value)
    except ValueError:
        raise ValueError(f"invalid {enum_type.__name__} {value!r} in {what}") from None


@dataclass(frozen=True)
class DumpClassProperty:
    """A property member of a class in the API dump."""

    name: str
    value_type_name: str
    value_category: ValueCategory
    can_save: bool
    can_load: bool
    read_security: Security
    write_security: Security
    tags: frozenset[str] = frozenset()

    @classmethod
    def _from_json(cls, obj: dict, what: str) -> DumpClassProperty:
        name = _string(obj, "Name", what)
        what = f"{what}.{name}"
        value_type = _field(obj, "ValueType", what)
        serialization = _field(obj, "Serialization", what)
        security = _field(obj, "Security", what)
        return cls(
            name=name,
            value_type_name=_string(value_type, "Name", f"ValueType of {what}"),
            value_category=_enum_value(
                ValueCategory, _field(value_type, "Category", what), what
            ),
            can_save=_bool(serialization, "CanSave", f"Serialization of {what}"),
            can_load=_bool(serialization, "CanLoad", f"Serialization of {what}"),
            read_security=_enum_value(Security, _field(security, "Read", what), what),
            write_security=_enum_value(Security, _field(security, "Write", what), what),
            tags=_tags(obj, what),
        )

    def scriptability(self) -> Scriptability:
        """How scripts may access this property, derived from security and tags."""
        if _NOT_SCRIPTABLE in self.tags:
            return Scriptability.NONE
        readable = self.read_security in _SCRIPT_ACCESSIBLE
        writable = _READ_ONLY not in self.tags and self.write_security in _SCRIPT_ACCESSIBLE
        if readable and writable:
            return Scriptability.READ_WRITE
        if readable:
            return Scriptability.READ
        if writable:
            return Scriptability.WRITE
        return Scriptability.NONE

    def serialization(self) -> PropertySerialization:
        """Whether the property serializes, before any patches are applied."""
        if _READ_ONLY not in self.tags and self.can_save:
            return PropertySerialization.serializes()
        return PropertySerialization.does_not_serialize()

    def data_type(self) -> DataType | None:
        """The reflection data type of this property, or None if unsupported."""
        if self.value_category is ValueCategory.ENUM:
            return EnumType(self.value_type_name)
        if self.value_category is ValueCategory.CLASS:
            return VariantType.REF
        return variant_type_from_str(self.value_type_name)


@dataclass(frozen=True)
class DumpClass:
    """A class in the API dump with its property members."""

    name: str
    superclass: str
    tags: frozenset[str] = frozenset()
    properties: tuple[DumpClassProperty, ...] = ()

    @classmethod
    def _from_json(cls, obj: dict) -> DumpClass:
        name = _string(obj, "Name", "class")
        what = f"class {name}"
        properties = []
        for member in _list(obj, "Members", what):
            if not isinstance(member, dict):
                raise ValueError(f"members of {what} must be JSON objects")
            if member.get("MemberType") == "Property":
                properties.append(DumpClassProperty._from_json(member, what))
        return cls(
            name=name,
            superclass=_string(obj, "Superclass", what),
            tags=_tags(obj, what),
            properties=tuple(properties),
        )


@dataclass(frozen=True)
class DumpEnumItem:
    name: str
    value: int


@dataclass(frozen=True)
class DumpEnum:
    """An enum in the API dump."""

    name: str
    items: tuple[DumpEnumItem, ...] = ()

    @classmethod
    def _from_json(cls, obj: dict) -> DumpEnum:
        name = _string(obj, "Name", "enum")
        what = f"enum {name}"
        items = []
        for item in _list(obj, "Items", what):
            value = _field(item, "Value", what)
            if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < 2**32:
                raise ValueError(f"item values of {what} must be unsigned 32-bit integers")
            items.append(DumpEnumItem(_string(item, "Name", what), value))
        return cls(name, tuple(items))


@dataclass(frozen=True)
class Dump:
    """The classes and enums described by an API dump."""

    classes: tuple[DumpClass, ...] = field(default_factory=tuple)
    enums: tuple[DumpEnum, ...] = field(default_factory=tuple)

    @classmethod
    def from_json(cls, text: str) -> Dump:
        """Parse the JSON text of an API dump."""
        try:
            document = json.loads(text)
            return cls(
                classes=tuple(DumpClass._from_json(c) for c in _list(document, "Classes", "dump")),
                enums=tuple(DumpEnum._from_json(e) for e in _list(document, "Enums", "dump")),
            )
        except ValueError as error:
            raise ValueError(f"Roblox Studio produced an invalid dump: {error}") from error

    @classmethod
    def read(cls, studio_path: str | PathLike[str]) -> Dump:
        """Have the Studio executable at ``studio_path`` write an API dump and parse it."""
        with tempfile.TemporaryDirectory() as directory:
            dump_path = Path(directory) / "api-dump.json"
            subprocess.run([str(studio_path), "-API", str(dump_path)], check=False)
            contents = dump_path.read_text(encoding="utf-8")
        return cls.from_json(contents)

    def apply(self, database: ReflectionDatabase) -> None:
        """Add every class and enum of this dump to ``database``."""
        for dump_class in self.classes:
            superclass = None if dump_class.superclass == _ROOT_SUPERCLASS else dump_class.superclass

            properties: dict[str, PropertyDescriptor] = {}
            for prop in dump_class.properties:
                data_type = prop.data_type()
                if data_type is None:
                    continue
                # Every property starts out canonical; patches adjust this later.
                properties[prop.name] = PropertyDescriptor(
                    prop.name,
                    data_type,
                    scriptability=prop.scriptability(),
                    tags=set(prop.tags),
                    kind=CanonicalKind(prop.serialization()),
                )

            database.classes[dump_class.name] = ClassDescriptor(
                dump_class.name,
                superclass=superclass,
                tags=set(dump_class.tags),
                properties=properties,
            )

        for dump_enum in self.enums:
            database.enums[dump_enum.name] = EnumDescriptor(
                dump_enum.name, {item.name: item.value for item in dump_enum.items}
            )


_VARIANT_TYPES = {
    "Axes": VariantType.AXES,
    "BinaryString": VariantType.BINARY_STRING,
    "BrickColor": VariantType.BRICK_COLOR,
    "CFrame": VariantType.CFRAME,
    "Color3": VariantType.COLOR3,
    "ColorSequence": VariantType.COLOR_SEQUENCE,
    "Content": VariantType.CONTENT,
    "Faces": VariantType.FACES,
    "Instance": VariantType.REF,
    "NumberRange": VariantType.NUMBER_RANGE,
    "NumberSequence": VariantType.NUMBER_SEQUENCE,
    "PhysicalProperties": VariantType.PHYSICAL_PROPERTIES,
    "Ray": VariantType.RAY,
    "Rect": VariantType.RECT,
    "Region3": VariantType.REGION3,
    "Region3int16": VariantType.REGION3_INT16,
    "UDim": VariantType.UDIM,
    "UDim2": VariantType.UDIM2,
    "Vector2": VariantType.VECTOR2,
    "Vector2int16": VariantType.VECTOR2_INT16,
    "Vector3": VariantType.VECTOR3,
    "Vector3int16": VariantType.VECTOR3_INT16,
    "bool": VariantType.BOOL,
    "double": VariantType.FLOAT64,
    "float": VariantType.FLOAT32,
    "int": VariantType.INT32,
    "int64": VariantType.INT64,
    "string": VariantType.STRING,
    "ProtectedString": VariantType.STRING,
}

_UNSUPPORTED_TYPES = frozenset({"TweenInfo", "QDir", "QFont"})


def variant_type_from_str(value: str) -> VariantType | None:
    """Map an API dump type name to a variant type; None for unsupported ones."""
    if value in _UNSUPPORTED_TYPES:
        return None
    try:
        return _VARIANT_TYPES[value]
    except KeyError:
        raise UnknownValueTypeError(value) from None