# rbxdom

Building blocks for the binary model and place format and for assembling the
reflection database that describes its classes, properties and enums.

## Installation

```
pip install rbxdom
```

For running the test suite:

```
pip install "rbxdom[test]"
pytest
```

## What is inside

- `rbxdom.binary_io`: `BinaryReader` and `BinaryWriter` for the little-endian
  primitives, length-prefixed strings and interleaved arrays used by the
  format. Integer arrays use the zig-zag transformation (`transform_i32`,
  `untransform_i32`, `transform_i64`, `untransform_i64`). Float arrays
  rotate the sign bit. Referent arrays are delta-encoded. The module also
  holds the constants `FILE_MAGIC_HEADER`, `FILE_SIGNATURE` and
  `FILE_VERSION`. A reader accepts bytes or a binary stream and raises
  `EOFError` on a short read.
- `rbxdom.cframe`: `Vector3`, `Matrix3`, `to_basic_rotation_id` and
  `from_basic_rotation_id`. These convert between axis-aligned rotation
  matrices and the compact one-byte rotation ids.
- `rbxdom.reflection`: `ReflectionDatabase`, `ClassDescriptor`,
  `PropertyDescriptor` and `EnumDescriptor`, with `VariantType`, `EnumType`,
  `Scriptability`, `PropertySerialization`, `CanonicalKind` and `AliasKind`.
  `find_property_descriptors` walks the class hierarchy and returns the
  canonical descriptor of a property and its serialized descriptor. It
  resolves aliases and "serializes as" names.
- `rbxdom.api_dump`: `Dump` parses the JSON API dump (`Dump.from_json`) and
  fills a `ReflectionDatabase` with its classes and enums (`Dump.apply`).
  - Scriptability comes from the read/write security levels and the
    `ReadOnly`/`NotScriptable` tags.
  - Types listed as unsupported are skipped. An unrecognised type name raises
    `UnknownValueTypeError`.
  - `Dump.read(studio_path)` runs the given Studio executable with `-API` to
    produce a dump, then parses it.
- `rbxdom.property_patches`: `PropertyPatches` parses YAML patch documents
  with `Change` and `Add` sections and applies them to a database. Malformed
  patches, and patches that do not fit the database, raise `PatchError`.
- `rbxdom.defaults_place`:
  - `generate_fixture_place` writes place XML with one instance of every
    class. It places the required children where they belong.
  - `find_descriptors` looks up a property through the superclass chain.
  - `apply_defaults_from_fixture_place` records default values from a tree
    of `TreeInstance` objects into each class's `default_properties`. It uses
    the shallowest instance of each class.

## Examples

Interleaved arrays:

```python
import io

from rbxdom.binary_io import BinaryReader, BinaryWriter

buffer = io.BytesIO()
BinaryWriter(buffer).write_referent_array([1, 2, 5])
assert BinaryReader(buffer.getvalue()).read_referent_array(3) == [1, 2, 5]
```

Rotation ids:

```python
from rbxdom.cframe import Matrix3, from_basic_rotation_id, to_basic_rotation_id

assert from_basic_rotation_id(0x02) == Matrix3.identity()
assert to_basic_rotation_id(Matrix3.identity()) == 0x02
```

Building a reflection database from an API dump and patch files:

```python
from rbxdom.api_dump import Dump
from rbxdom.property_patches import PropertyPatches
from rbxdom.reflection import ReflectionDatabase, find_property_descriptors

database = ReflectionDatabase()
with open("api-dump.json", encoding="utf-8") as handle:
    Dump.from_json(handle.read()).apply(database)

with open("parts.yml", encoding="utf-8") as handle:
    PropertyPatches.load([handle.read()]).apply(database)

descriptors = find_property_descriptors(database, "Part", "Size")
```

## What this package does not do

The package does not decode or encode whole model or place files. It has no
chunk reader or writer, no LZ4 handling, no file-header parsing and no
instance tree built from a file. `binary_io` supplies only the primitives
such a decoder would use.

It does not read place XML either. `apply_defaults_from_fixture_place`
expects the saved place already turned into `TreeInstance` objects.

It offers no command-line program. It also does not drive Studio to open or
re-save places.