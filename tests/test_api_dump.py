import json
from unittest import mock

import pytest

from rbxdom.api_dump import (
    Dump,
    DumpClass,
    DumpClassProperty,
    Security,
    UnknownValueTypeError,
    ValueCategory,
    variant_type_from_str,
)
from rbxdom.reflection import (
    CanonicalKind,
    EnumType,
    PropertySerialization,
    ReflectionDatabase,
    Scriptability,
    VariantType,
)


def _prop(name, type_name="bool", category="Primitive", read="None", write="None",
          can_save=True, tags=None):
    member = {
        "MemberType": "Property",
        "Name": name,
        "ValueType": {"Name": type_name, "Category": category},
        "Serialization": {"CanSave": can_save, "CanLoad": True},
        "Security": {"Read": read, "Write": write},
    }
    if tags is not None:
        member["Tags"] = tags
    return member


def _document(members, enums=None):
    return {
        "Classes": [
            {"Name": "Instance", "Superclass": "<<<ROOT>>>", "Tags": ["NotCreatable"],
             "Members": [_prop("Archivable")]},
            {"Name": "Part", "Superclass": "Instance", "Members": members},
        ],
        "Enums": enums or [],
    }


def _database(members, enums=None):
    database = ReflectionDatabase()
    Dump.from_json(json.dumps(_document(members, enums))).apply(database)
    return database


def test_from_json_keeps_only_properties():
    members = [
        _prop("Anchored"),
        {"MemberType": "Function", "Name": "Destroy"},
        {"MemberType": "Event", "Name": "Touched"},
        {"MemberType": "Callback", "Name": "Whatever"},
    ]
    dump = Dump.from_json(json.dumps(_document(members)))
    part = dump.classes[1]
    assert isinstance(part, DumpClass)
    assert [p.name for p in part.properties] == ["Anchored"]
    prop = part.properties[0]
    assert prop.value_category is ValueCategory.PRIMITIVE
    assert prop.read_security is Security.NONE
    assert dump.classes[0].tags == frozenset({"NotCreatable"})


def test_apply_classes_and_superclass():
    database = _database([_prop("Anchored")])
    assert database.classes["Instance"].superclass is None
    assert database.classes["Part"].superclass == "Instance"
    assert database.classes["Instance"].tags == {"NotCreatable"}
    anchored = database.classes["Part"].properties["Anchored"]
    assert anchored.data_type is VariantType.BOOL
    assert anchored.scriptability is Scriptability.READ_WRITE
    assert anchored.kind == CanonicalKind(PropertySerialization.serializes())


def test_read_only_property():
    database = _database([_prop("Mass", type_name="float", tags=["ReadOnly"])])
    mass = database.classes["Part"].properties["Mass"]
    assert mass.scriptability is Scriptability.READ
    assert mass.kind == CanonicalKind(PropertySerialization.does_not_serialize())
    assert mass.tags == {"ReadOnly"}


def test_not_scriptable_property():
    database = _database([_prop("Hidden", tags=["NotScriptable"])])
    prop = database.classes["Part"].properties["Hidden"]
    assert prop.scriptability is Scriptability.NONE
    assert prop.kind == CanonicalKind(PropertySerialization.serializes())


@pytest.mark.parametrize(
    "read, write, expected",
    [
        ("RobloxScriptSecurity", "None", Scriptability.WRITE),
        ("PluginSecurity", "RobloxSecurity", Scriptability.READ),
        ("LocalUserSecurity", "NotAccessibleSecurity", Scriptability.NONE),
        ("PluginSecurity", "PluginSecurity", Scriptability.READ_WRITE),
    ],
)
def test_scriptability_from_security(read, write, expected):
    database = _database([_prop("Value", read=read, write=write)])
    assert database.classes["Part"].properties["Value"].scriptability is expected


def test_cannot_save_does_not_serialize():
    database = _database([_prop("Transient", can_save=False)])
    prop = database.classes["Part"].properties["Transient"]
    assert prop.kind == CanonicalKind(PropertySerialization.does_not_serialize())


def test_enum_and_class_categories():
    database = _database([
        _prop("Material", type_name="Material", category="Enum"),
        _prop("Target", type_name="BasePart", category="Class"),
        _prop("Size", type_name="Vector3", category="DataType"),
    ])
    props = database.classes["Part"].properties
    assert props["Material"].data_type == EnumType("Material")
    assert props["Target"].data_type is VariantType.REF
    assert props["Size"].data_type is VariantType.VECTOR3


def test_unsupported_types_are_skipped():
    database = _database([
        _prop("Info", type_name="TweenInfo", category="DataType"),
        _prop("Dir", type_name="QDir", category="DataType"),
        _prop("Name", type_name="string"),
    ])
    assert set(database.classes["Part"].properties) == {"Name"}


def test_unknown_type_raises():
    dump = Dump.from_json(json.dumps(_document([_prop("Odd", type_name="Mystery")])))
    with pytest.raises(UnknownValueTypeError) as info:
        dump.apply(ReflectionDatabase())
    assert info.value.type_name == "Mystery"


def test_enums_applied():
    enums = [{"Name": "Material", "Items": [
        {"Name": "Plastic", "Value": 256}, {"Name": "Wood", "Value": 512}]}]
    database = _database([], enums)
    assert database.enums["Material"].items == {"Plastic": 256, "Wood": 512}


@pytest.mark.parametrize(
    "name, expected",
    [
        ("double", VariantType.FLOAT64),
        ("float", VariantType.FLOAT32),
        ("int", VariantType.INT32),
        ("int64", VariantType.INT64),
        ("Instance", VariantType.REF),
        ("ProtectedString", VariantType.STRING),
        ("string", VariantType.STRING),
        ("Region3int16", VariantType.REGION3_INT16),
        ("TweenInfo", None),
        ("QFont", None),
    ],
)
def test_variant_type_from_str(name, expected):
    assert variant_type_from_str(name) is expected


def test_variant_type_from_str_unknown():
    with pytest.raises(UnknownValueTypeError):
        variant_type_from_str("Nonsense")


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        json.dumps({"Classes": []}),
        json.dumps({"Classes": [{"Name": "X", "Members": []}], "Enums": []}),
        json.dumps(_document([_prop("Bad", read="Everyone")])),
    ],
)
def test_invalid_dump(text):
    with pytest.raises(ValueError, match="invalid dump"):
        Dump.from_json(text)


def test_dump_class_property_helpers():
    prop = DumpClassProperty(
        name="Locked", value_type_name="bool", value_category=ValueCategory.PRIMITIVE,
        can_save=True, can_load=True, read_security=Security.NONE,
        write_security=Security.ROBLOX_SECURITY,
    )
    assert prop.scriptability() is Scriptability.READ
    assert prop.serialization() == PropertySerialization.serializes()
    assert prop.data_type() is VariantType.BOOL


def test_read_runs_studio_and_parses_output():
    document = _document([_prop("Anchored")])
    calls = []

    def fake_run(args, check):
        calls.append(args)
        with open(args[2], "w", encoding="utf-8") as handle:
            json.dump(document, handle)

    with mock.patch("rbxdom.api_dump.subprocess.run", side_effect=fake_run):
        dump = Dump.read("/opt/studio/RobloxStudioBeta")

    assert calls[0][:2] == ["/opt/studio/RobloxStudioBeta", "-API"]
    assert calls[0][2].endswith("api-dump.json")
    assert [c.name for c in dump.classes] == ["Instance", "Part"]


def test_read_without_output_file_fails():
    with mock.patch("rbxdom.api_dump.subprocess.run"):
        with pytest.raises(FileNotFoundError):
            Dump.read("studio")