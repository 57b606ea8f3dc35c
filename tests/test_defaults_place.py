import logging

import pytest

from rbxdom.defaults_place import (
    Descriptors,
    FixtureInstance,
    PropertyValue,
    TreeInstance,
    apply_defaults_from_fixture_place,
    find_descriptors,
    generate_fixture_place,
)
from rbxdom.reflection import (
    AliasKind,
    CanonicalKind,
    ClassDescriptor,
    PropertyDescriptor,
    PropertySerialization,
    ReflectionDatabase,
    VariantType,
)


def _database(*classes):
    return ReflectionDatabase(classes={cls.name: cls for cls in classes})


def _sample_database():
    instance = ClassDescriptor(
        "Instance",
        properties={
            "Name": PropertyDescriptor("Name", VariantType.STRING),
            "Archivable": PropertyDescriptor("Archivable", VariantType.BOOL),
        },
    )
    part = ClassDescriptor(
        "Part",
        superclass="Instance",
        properties={
            "size": PropertyDescriptor(
                "size",
                VariantType.VECTOR3,
                kind=CanonicalKind(PropertySerialization.serializes()),
            ),
            "Size": PropertyDescriptor("Size", VariantType.VECTOR3, kind=AliasKind("size")),
            "Parent": PropertyDescriptor("Parent", VariantType.REF),
            "Hidden": PropertyDescriptor(
                "Hidden",
                VariantType.BOOL,
                kind=CanonicalKind(PropertySerialization.does_not_serialize()),
            ),
        },
    )
    folder = ClassDescriptor("Folder", superclass="Instance")
    return _database(instance, part, folder)


def test_fixture_place_single_class_exact_output():
    place = generate_fixture_place(_database(ClassDescriptor("Folder")))
    assert place == (
        '<roblox version="4">\n'
        '<Item class="Folder" reference="Folder">\n'
        "</Item>\n"
        "</roblox>\n"
    )


def test_fixture_place_skips_restricted_classes():
    db = _database(
        ClassDescriptor("Folder"),
        ClassDescriptor("DebuggerWatch"),
        ClassDescriptor("Terrain"),
        ClassDescriptor("WorldModel"),
    )
    place = generate_fixture_place(db)
    assert 'class="DebuggerWatch"' not in place
    assert 'class="Terrain"' not in place
    assert 'class="WorldModel"' not in place
    assert 'class="Folder"' in place


def test_fixture_place_nests_required_children():
    db = _database(ClassDescriptor("Workspace"), ClassDescriptor("Terrain"))
    place = generate_fixture_place(db)
    assert (
        '<Item class="Workspace" reference="Workspace">\n'
        '<Item class="Terrain" reference="Terrain">\n'
        "</Item>\n"
        "</Item>\n"
    ) in place
    assert place.count('class="Terrain"') == 1


def test_fixture_place_mesh_part_children_in_order():
    place = generate_fixture_place(_database(ClassDescriptor("MeshPart")))
    positions = [place.index(f'class="{name}"') for name in ("BaseWrap", "WrapLayer", "WrapTarget")]
    assert positions == sorted(positions)
    assert place.index('class="MeshPart"') < positions[0]


def test_fixture_instance_str_with_children():
    parent = FixtureInstance("Humanoid")
    parent.add_child(FixtureInstance("Animator"))
    assert parent.children == [FixtureInstance("Animator")]
    assert str(parent).startswith('<Item class="Humanoid" reference="Humanoid">\n')
    assert str(parent).endswith("</Item>\n</Item>\n")


def test_find_descriptors_walks_superclass():
    db = _sample_database()
    found = find_descriptors(db, "Part", "Name")
    assert found == Descriptors(
        db.classes["Instance"].properties["Name"], db.classes["Instance"].properties["Name"]
    )


def test_find_descriptors_resolves_alias():
    db = _sample_database()
    found = find_descriptors(db, "Part", "Size")
    assert found.input.name == "Size"
    assert found.canonical.name == "size"


def test_find_descriptors_unknown_property():
    assert find_descriptors(_sample_database(), "Folder", "Missing") is None


def test_find_descriptors_unknown_class_raises():
    with pytest.raises(KeyError):
        find_descriptors(_sample_database(), "Nope", "Name")


def test_apply_defaults_stores_canonical_names():
    db = _sample_database()
    part = TreeInstance(
        "Part",
        properties={
            "Size": PropertyValue(VariantType.VECTOR3, (4.0, 1.0, 2.0)),
            "Name": PropertyValue(VariantType.STRING, "Part"),
        },
    )
    apply_defaults_from_fixture_place(db, [part])
    defaults = db.classes["Part"].default_properties
    assert defaults["size"] == PropertyValue(VariantType.VECTOR3, (4.0, 1.0, 2.0))
    assert defaults["Name"] == PropertyValue(VariantType.STRING, "Part")
    assert "Size" not in defaults


def test_apply_defaults_skips_refs_and_unknown_properties():
    db = _sample_database()
    part = TreeInstance(
        "Part",
        properties={
            "Parent": PropertyValue(VariantType.REF, None),
            "Bogus": PropertyValue(VariantType.INT32, 3),
        },
    )
    apply_defaults_from_fixture_place(db, [part])
    assert db.classes["Part"].default_properties == {}


def test_apply_defaults_uses_shallowest_instance():
    db = _sample_database()
    deep = TreeInstance("Folder", properties={"Name": PropertyValue(VariantType.STRING, "deep")})
    shallow = TreeInstance(
        "Folder", properties={"Name": PropertyValue(VariantType.STRING, "shallow")}
    )
    holder = TreeInstance("Part", children=[deep])
    apply_defaults_from_fixture_place(db, [holder, shallow])
    assert db.classes["Folder"].default_properties["Name"].value == "shallow"


def test_apply_defaults_logs_non_serializing_property(caplog):
    db = _sample_database()
    part = TreeInstance("Part", properties={"Hidden": PropertyValue(VariantType.BOOL, True)})
    with caplog.at_level(logging.ERROR):
        apply_defaults_from_fixture_place(db, [part])
    assert any("should not serialize" in record.getMessage() for record in caplog.records)
    assert db.classes["Part"].default_properties["Hidden"].value is True


def test_apply_defaults_rejects_alias_to_alias():
    db = _database(
        ClassDescriptor(
            "Thing",
            properties={
                "A": PropertyDescriptor("A", VariantType.BOOL, kind=AliasKind("B")),
                "B": PropertyDescriptor("B", VariantType.BOOL, kind=AliasKind("A")),
            },
        )
    )
    thing = TreeInstance("Thing", properties={"A": PropertyValue(VariantType.BOOL, False)})
    with pytest.raises(ValueError):
        apply_defaults_from_fixture_place(db, [thing])