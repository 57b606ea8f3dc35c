"""Vectors, rotation matrices and the compact "basic rotation" IDs used by CFrames."""

from __future__ import annotations

from dataclasses import dataclass

_F32_EPSILON = 1.1920929e-07

_NORMAL_IDS = {
    (1, 0, 0): 0,
    (0, 1, 0): 1,
    (0, 0, 1): 2,
    (-1, 0, 0): 3,
    (0, -1, 0): 4,
    (0, 0, -1): 5,
}


def _unit_or_zero(value: float) -> int | None:
    magnitude = abs(value)
    if magnitude <= _F32_EPSILON:
        return 0
    if abs(magnitude - 1.0) <= _F32_EPSILON:
        return 1 if value > 0 else -1
    return None


@dataclass(frozen=True)
class Vector3:
    """A three-component vector."""

    x: float
    y: float
    z: float

    def to_normal_id(self) -> int | None:
        """Return the face ID (0-5) this vector points along, if it is an axis."""
        components = tuple(_unit_or_zero(value) for value in (self.x, self.y, self.z))
        if None in components:
            return None
        return _NORMAL_IDS.get(components)


@dataclass(frozen=True)
class Matrix3:
    """A 3x3 matrix stored as three row vectors."""

    x: Vector3
    y: Vector3
    z: Vector3

    @classmethod
    def identity(cls) -> Matrix3:
        return cls(
            Vector3(1.0, 0.0, 0.0),
            Vector3(0.0, 1.0, 0.0),
            Vector3(0.0, 0.0, 1.0),
        )

    def transpose(self) -> Matrix3:
        return Matrix3(
            Vector3(self.x.x, self.y.x, self.z.x),
            Vector3(self.x.y, self.y.y, self.z.y),
            Vector3(self.x.z, self.y.z, self.z.z),
        )


_BASIC_ROTATIONS = {
    0x02: ((1, 0, 0), (0, 1, 0), (0, 0, 1)),
    0x03: ((1, 0, 0), (0, 0, -1), (0, 1, 0)),
    0x05: ((1, 0, 0), (0, -1, 0), (0, 0, -1)),
    0x06: ((1, 0, 0), (0, 0, 1), (0, -1, 0)),
    0x07: ((0, 1, 0), (1, 0, 0), (0, 0, -1)),
    0x09: ((0, 0, 1), (1, 0, 0), (0, 1, 0)),
    0x0A: ((0, -1, 0), (1, 0, 0), (0, 0, 1)),
    0x0C: ((0, 0, -1), (1, 0, 0), (0, -1, 0)),
    0x0D: ((0, 1, 0), (0, 0, 1), (1, 0, 0)),
    0x0E: ((0, 0, -1), (0, 1, 0), (1, 0, 0)),
    0x10: ((0, -1, 0), (0, 0, -1), (1, 0, 0)),
    0x11: ((0, 0, 1), (0, -1, 0), (1, 0, 0)),
    0x14: ((-1, 0, 0), (0, 1, 0), (0, 0, -1)),
    0x15: ((-1, 0, 0), (0, 0, 1), (0, 1, 0)),
    0x17: ((-1, 0, 0), (0, -1, 0), (0, 0, 1)),
    0x18: ((-1, 0, 0), (0, 0, -1), (0, -1, 0)),
    0x19: ((0, 1, 0), (-1, 0, 0), (0, 0, 1)),
    0x1B: ((0, 0, -1), (-1, 0, 0), (0, 1, 0)),
    0x1C: ((0, -1, 0), (-1, 0, 0), (0, 0, -1)),
    0x1E: ((0, 0, 1), (-1, 0, 0), (0, -1, 0)),
    0x1F: ((0, 1, 0), (0, 0, -1), (-1, 0, 0)),
    0x20: ((0, 0, 1), (0, 1, 0), (-1, 0, 0)),
    0x22: ((0, -1, 0), (0, 0, 1), (-1, 0, 0)),
    0x23: ((0, 0, -1), (0, -1, 0), (-1, 0, 0)),
}


def from_basic_rotation_id(rotation_id: int) -> Matrix3 | None:
    """Return the rotation matrix for a basic rotation ID, or None if unknown."""
    rows = _BASIC_ROTATIONS.get(rotation_id)
    if rows is None:
        return None
    return Matrix3(*(Vector3(*(float(value) for value in row)) for row in rows))


def to_basic_rotation_id(matrix: Matrix3) -> int | None:
    """Return the basic rotation ID matching ``matrix``, or None if there is none."""
    transpose = matrix.transpose()
    x_id = transpose.x.to_normal_id()
    y_id = transpose.y.to_normal_id()
    z_id = transpose.z.to_normal_id()
    if x_id is None or y_id is None or z_id is None:
        return None

    rotation_id = 6 * x_id + y_id + 1

    # The matrix need not be orthonormal, so the z row may still disagree
    # with the basic rotation; such a matrix must keep its full form.
    basic = from_basic_rotation_id(rotation_id)
    if basic is None:
        return None
    if basic.transpose().z.to_normal_id() != z_id:
        return None
    return rotation_id