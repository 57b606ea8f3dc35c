"""Reflection database types and property descriptor lookup."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Union

log = logging.getLogger(__name__)


class VariantType(enum.Enum):
    """The kinds of value a property can hold."""

    AXES = "Axes"
    BINARY_STRING = "BinaryString"
    BOOL = "Bool"
    BRICK_COLOR = "BrickColor"
    CFRAME = "CFrame"
    COLOR3 = "Color3"
    COLOR3_UINT8 = "Color3uint8"
    COLOR_SEQUENCE = "ColorSequence"
    CONTENT = "Content"
    ENUM = "Enum"
    FACES = "Faces"
    FLOAT32 = "Float32"
    FLOAT64 = "Float64"
    INT32 = "Int32"
    INT64 = "Int64"
    NUMBER_RANGE = "NumberRange"
    NUMBER_SEQUENCE = "NumberSequence"
    OPTIONAL_CFRAME = "OptionalCFrame"
    PHYSICAL_PROPERTIES = "PhysicalProperties"
    RAY = "Ray"
    RECT = "Rect"
    REF = "Ref"
    REGION3 = "Region3"
    REGION3_INT16 = "Region3int16"
    SHARED_STRING = "SharedString"
    STRING = "String"
    TAGS = "Tags"
    UDIM = "UDim"
    UDIM2 = "UDim2"
    VECTOR2 = "Vector2"
    VECTOR2_INT16 = "Vector2int16"
    VECTOR3 = "Vector3"
    VECTOR3_INT16 = "Vector3int16"


class Scriptability(enum.Enum):
    """How scripts may access a property."""

    NONE = "None"
    READ = "Read"
    WRITE = "Write"
    READ_WRITE = "ReadWrite"
    CUSTOM = "Custom"


class SerializationKind(enum.Enum):
    SERIALIZES = "Serializes"
    DOES_NOT_SERIALIZE = "DoesNotSerialize"
    SERIALIZES_AS = "SerializesAs"


@dataclass(frozen=True)
class PropertySerialization:
    """Whether and under which name a canonical property is serialized."""

    kind: SerializationKind
    serialized_name: str | None = None

    def __post_init__(self) -> None:
        if (self.kind is SerializationKind.SERIALIZES_AS) != (self.serialized_name is not None):
            raise ValueError("only SerializesAs carries a serialized name, and it must")

    @classmethod
    def serializes(cls) -> PropertySerialization:
        return cls(SerializationKind.SERIALIZES)

    @classmethod
    def does_not_serialize(cls) -> PropertySerialization:
        return cls(SerializationKind.DOES_NOT_SERIALIZE)

    @classmethod
    def serializes_as(cls, name: str) -> PropertySerialization:
        return cls(SerializationKind.SERIALIZES_AS, name)


@dataclass(frozen=True)
class CanonicalKind:
    """The property is the canonical form of a logical property."""

    serialization: PropertySerialization = field(
        default_factory=PropertySerialization.serializes
    )


@dataclass(frozen=True)
class AliasKind:
    """The property is another name for a canonical property in the same class."""

    alias_for: str


@dataclass(frozen=True)
class EnumType:
    """A property data type naming an enum."""

    name: str


DataType = Union[VariantType, EnumType]
PropertyKind = Union[CanonicalKind, AliasKind]


@dataclass
class PropertyDescriptor:
    name: str
    data_type: DataType
    scriptability: Scriptability = Scriptability.READ_WRITE
    tags: set[str] = field(default_factory=set)
    kind: PropertyKind = field(default_factory=CanonicalKind)


@dataclass
class ClassDescriptor:
    name: str
    superclass: str | None = None
    tags: set[str] = field(default_factory=set)
    properties: dict[str, PropertyDescriptor] = field(default_factory=dict)
    default_properties: dict[str, object] = field(default_factory=dict)


@dataclass
class EnumDescriptor:
    name: str
    items: dict[str, int] = field(default_factory=dict)


@dataclass
class ReflectionDatabase:
    version: tuple[int, int, int, int] = (0, 0, 0, 0)
    classes: dict[str, ClassDescriptor] = field(default_factory=dict)
    enums: dict[str, EnumDescriptor] = field(default_factory=dict)


@dataclass(frozen=True)
class PropertyDescriptors:
    """The canonical descriptor of a property and, if it serializes, its serialized one."""

    canonical: PropertyDescriptor
    serialized: PropertyDescriptor | None


def _find_serialized(
    cls: ClassDescriptor, canonical: PropertyDescriptor, serialization: PropertySerialization
) -> PropertyDescriptor | None:
    if serialization.kind is SerializationKind.SERIALIZES:
        return canonical
    if serialization.kind is SerializationKind.SERIALIZES_AS:
        return cls.properties[serialization.serialized_name]
    return None


def find_property_descriptors(
    database: ReflectionDatabase, class_name: str, property_name: str
) -> PropertyDescriptors | None:
    """Find the canonical and serialized descriptors for a property.

    The class and its superclasses are searched in turn. Returns None when no
    class knows the property.
    """
    cls = database.classes.get(class_name)
    if cls is None:
        return None

    while True:
        descriptor = cls.properties.get(property_name)
        if descriptor is not None:
            kind = descriptor.kind
            if isinstance(kind, CanonicalKind):
                return PropertyDescriptors(
                    descriptor, _find_serialized(cls, descriptor, kind.serialization)
                )
            if isinstance(kind, AliasKind):
                canonical = cls.properties[kind.alias_for]
                if isinstance(canonical.kind, CanonicalKind):
                    return PropertyDescriptors(
                        canonical,
                        _find_serialized(cls, canonical, canonical.kind.serialization),
                    )
                log.error(
                    "Property %s.%s is marked as an alias for %s.%s, "
                    "but the latter is not canonical.",
                    cls.name,
                    descriptor.name,
                    cls.name,
                    kind.alias_for,
                )
                return None
            return None

        if cls.superclass is None:
            return None

        superclass = database.classes.get(cls.superclass)
        if superclass is None:
            raise KeyError(
                f"Superclass {cls.superclass} in reflection database didn't exist"
            )
        cls = superclass