"""Example usage of ShapeDiff comparison engine."""

import json
from shapediff import ShapeDiffEngine, EngineConfig, analyze_shapes, resolve_keys

# Inventory export from the legacy system: users and groups in one array
before = [
    {"id": "u-1", "name": "Alice", "email": "alice@example.com"},
    {"id": "u-2", "name": "Bob", "email": "bob@example.com"},
    {"id": "u-3", "name": "Cara", "email": "cara@example.com"},
    {"slug": "admins", "title": "Administrators", "members": ["u-1"]},
    {"slug": "staff", "title": "Staff", "members": ["u-1", "u-2", "u-3"]},
    {"note": "exported by legacy tool"},
]

# Same inventory from the new system
after = [
    {"id": "u-1", "name": "Alice", "email": "alice@example.org"},  # Email changed
    {"id": "u-2", "name": "Bob", "email": "bob@example.com"},  # Unchanged
    {"id": "u-4", "name": "Dan", "email": "dan@example.com"},  # New user
    {"slug": "admins", "title": "Administrators", "members": ["u-1", "u-4"]},  # Member added
    {"slug": "staff", "title": "Staff", "members": ["u-1", "u-2", "u-4"]},
    {"id": "u-3", "name": "Cara", "email": "cara@example.com", "disabled": True},  # Shape changed
]

# Discover shapes and the fields that could identify their records
before_shapes = analyze_shapes(before, "before")
after_shapes = analyze_shapes(after, "after")

print("Before shapes:")
for shape in before_shapes:
    print(f"  {shape.signature}: {shape.count} records, key candidates {shape.potential_key_fields}")

# Users and groups each have several string fields, so their keys are chosen by
# hand; the single-candidate 'note' shape is filled in automatically
key_mapping = resolve_keys(
    before_shapes,
    after_shapes,
    {"email,id,name": "id", "members,slug,title": "slug"}
)
print(f"\nKey mapping: {json.dumps(key_mapping, indent=2)}")

engine = ShapeDiffEngine(EngineConfig())
result = engine.compare(before, after, key_mapping)

print(f"\nResult: {'MATCH' if result.is_match else 'CHANGED'}")
print(json.dumps(result.to_dict(), indent=2))
