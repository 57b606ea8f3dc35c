"""Default property values gathered from a place file that holds every class.

A fixture place with one instance of each class and no properties is saved
again by Roblox Studio. The saved copy then carries every property's default
value, and those values are copied into the reflection database.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable
from dataclasses import dataclass, field

from .reflection import (
    AliasKind,
    CanonicalKind,
    PropertyDescriptor,
    ReflectionDatabase,
    SerializationKind,
    VariantType,
)

log = logging.getLogger(__name__)

# Classes that cannot be put into a place file at all.
_UNPLACEABLE = frozenset(
    {
        "DebuggerWatch",
        "DebuggerBreakpoint",
        "AdvancedDragger",
        "Dragger",
        "ScriptDebugger",
        "PackageLink",
    }
)

# Classes with parenting restrictions; they are added under their parents.
_PARENTED_ELSEWHERE = frozenset(
    {
        "Terrain",
        "Attachment",
        "Animator",
        "StarterPlayerScripts",
        "StarterCharacterScripts",
        "Bone",
        "BaseWrap",
        "WrapLayer",
        "WrapTarget",
    }
)

# Classes that are not enabled yet.
_DISABLED = frozenset({"WorldModel"})

_SKIPPED = _UNPLACEABLE | _PARENTED_ELSEWHERE | _DISABLED

_REQUIRED_CHILDREN = {
    "StarterPlayer": ("StarterPlayerScripts", "StarterCharacterScripts"),
    "Workspace": ("Terrain",),
    "Part": ("Attachment", "Bone"),
    "Humanoid": ("Animator",),
    # Without these, Studio fails to open the file, complaining about BaseWrap.
    "MeshPart": ("BaseWrap", "WrapLayer", "WrapTarget"),
}

# Value types that cannot usefully be stored as defaults yet.
_UNSTORABLE_TYPES = frozenset({VariantType.REF, VariantType.SHARED_STRING})


@dataclass(frozen=True)
class PropertyValue:
    """A property value read from a place, tagged with its variant type."""

    type: VariantType
    value: object


@dataclass
class TreeInstance:
    """An instance read back from a saved place."""

    class_name: str
    properties: dict[str, PropertyValue] = field(default_factory=dict)
    children: list[TreeInstance] = field(default_factory=list)


@dataclass
class FixtureInstance:
    """An instance to be written into the fixture place."""

    name: str
    children: list[FixtureInstance] = field(default_factory=list)

    def add_child(self, child: FixtureInstance) -> None:
        self.children.append(child)

    def __str__(self) -> str:
        inner = "".join(str(child) for child in self.children)
        return (
            f'<Item class="{self.name}" reference="{self.name}">\n'
            f"{inner}"
            "</Item>\n"
        )


@dataclass(frozen=True)
class Descriptors:
    """The descriptor a property name was found under, and its canonical one."""

    input: PropertyDescriptor
    canonical: PropertyDescriptor


def generate_fixture_place(database: ReflectionDatabase) -> str:
    """Create place XML holding one instance of every class and no properties."""
    log.info("Generating place with every instance...")

    parts = ['<roblox version="4">\n']
    for descriptor in database.classes.values():
        if descriptor.name in _SKIPPED:
            continue
        instance = FixtureInstance(descriptor.name)
        for child_name in _REQUIRED_CHILDREN.get(descriptor.name, ()):
            instance.add_child(FixtureInstance(child_name))
        parts.append(str(instance))
    parts.append("</roblox>\n")
    return "".join(parts)


def find_descriptors(
    database: ReflectionDatabase, class_name: str, prop_name: str
) -> Descriptors | None:
    """Find the descriptor for ``prop_name`` on a class or its ancestors.

    Raises KeyError if a class on the way is missing from the database.
    """
    input_descriptor: PropertyDescriptor | None = None
    current: str | None = class_name

    while current is not None:
        cls = database.classes.get(current)
        if cls is None:
            raise KeyError(f"Class {current} is not in the reflection database")

        prop = cls.properties.get(prop_name)
        if prop is not None:
            if input_descriptor is None:
                input_descriptor = prop

            kind = prop.kind
            if isinstance(kind, CanonicalKind):
                return Descriptors(input_descriptor, prop)
            if isinstance(kind, AliasKind):
                aliased = cls.properties.get(kind.alias_for)
                if aliased is None:
                    raise KeyError(
                        f"Property {cls.name}.{prop_name} is an alias for "
                        f"{kind.alias_for}, which does not exist"
                    )
                return Descriptors(input_descriptor, aliased)
            log.warning("Unknown property kind %r", kind)
            return None

        current = cls.superclass

    return None


def _check_serialization(class_name: str, prop_name: str, canonical: PropertyDescriptor) -> None:
    kind = canonical.kind
    if not isinstance(kind, CanonicalKind):
        raise ValueError(
            "find_descriptors must not return a non-canonical descriptor as canonical"
        )

    serialization = kind.serialization
    if serialization.kind is SerializationKind.SERIALIZES:
        if canonical.name != prop_name:
            log.error(
                "Property %s.%s is supposed to serialize as %s, "
                "but was actually serialized as %s",
                class_name,
                canonical.name,
                canonical.name,
                prop_name,
            )
    elif serialization.kind is SerializationKind.DOES_NOT_SERIALIZE:
        log.error(
            "Property %s.%s (canonical name %s) found in default place "
            "but should not serialize",
            class_name,
            prop_name,
            canonical.name,
        )
    elif serialization.kind is SerializationKind.SERIALIZES_AS:
        if serialization.serialized_name != prop_name:
            log.error(
                "Property %s.%s is supposed to serialize as %s, "
                "but was actually serialized as %s",
                class_name,
                canonical.name,
                serialization.serialized_name,
                prop_name,
            )
    else:
        log.error(
            "Unknown property serialization %r on property %s.%s",
            serialization,
            class_name,
            canonical.name,
        )


def apply_defaults_from_fixture_place(
    database: ReflectionDatabase, roots: Iterable[TreeInstance]
) -> None:
    """Record default property values from a saved fixture place.

    For each class, only the shallowest instance found by a breadth-first
    walk over ``roots`` is used.
    """
    found_classes: set[str] = set()
    to_visit: deque[TreeInstance] = deque(roots)

    while to_visit:
        instance = to_visit.popleft()
        to_visit.extend(instance.children)

        if instance.class_name in found_classes:
            continue
        found_classes.add(instance.class_name)

        for prop_name, prop_value in instance.properties.items():
            descriptors = find_descriptors(database, instance.class_name, prop_name)
            if descriptors is None:
                log.warning(
                    "Found unknown property %s.%s, which is of type %s",
                    instance.class_name,
                    prop_name,
                    prop_value.type.value,
                )
                continue

            _check_serialization(instance.class_name, prop_name, descriptors.canonical)

            if prop_value.type in _UNSTORABLE_TYPES:
                continue

            class_descriptor = database.classes.get(instance.class_name)
            if class_descriptor is None:
                log.warning(
                    "Class %s found in default place but not API dump",
                    instance.class_name,
                )
                continue

            class_descriptor.default_properties[descriptors.canonical.name] = prop_value