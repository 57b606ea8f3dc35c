"""Binary model format primitives, rotation ids and reflection database tooling."""

__version__ = "0.1.0"

__all__ = [
    "api_dump",
    "binary_io",
    "cframe",
    "defaults_place",
    "property_patches",
    "reflection",
]