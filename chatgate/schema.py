from typing import Any, Dict

# =============================================================================
# Tool Parameter Schema Simplification
# =============================================================================

# Keys a simplified property may carry besides "type", "items" and nested
# "properties"/"required". Everything else is dropped.
_COPIED_KEYS = ("description", "enum")


def simplify_schema(schema: Any) -> Dict[str, Any]:
    """
    Reduce a JSON-Schema-like description to the subset Gemini accepts.

    The Gemini function-calling API rejects schema metadata such as
    `$schema`, `additionalProperties` or numeric constraints, so only
    `type`, `description`, `enum`, `items` and nested `properties` survive.
    The function never raises: malformed input degrades to defaults.

    Args:
        schema (Any): Arbitrary JSON value, normally a mapping with
                      `properties` and `required`.

    Returns:
        Dict[str, Any]: A mapping with exactly the keys `type` ("object"),
                        `properties` and `required`.
    """
    simplified: Dict[str, Any] = {
        "type": "object",
        "properties": {},
        "required": [],
    }
    if not isinstance(schema, dict):
        return simplified

    if "required" in schema:
        simplified["required"] = schema["required"]

    properties = schema.get("properties")
    if isinstance(properties, dict):
        simplified["properties"] = {
            name: _simplify_property(prop)
            for name, prop in properties.items()
            if isinstance(prop, dict)
        }

    return simplified


def _resolve_type(type_value: Any) -> Any:
    """
    Pick a single type. A list of types keeps only its first element.
    """
    while isinstance(type_value, list):
        type_value = type_value[0] if type_value else None
    return "string" if type_value is None else type_value


def _simplify_property(prop: Dict[str, Any]) -> Dict[str, Any]:
    prop_type = _resolve_type(prop.get("type"))
    simplified: Dict[str, Any] = {"type": prop_type}
    for key in _COPIED_KEYS:
        if key in prop:
            simplified[key] = prop[key]

    if prop_type == "array":
        if "items" in prop:
            simplified["items"] = _simplify_items(prop["items"])
        else:
            simplified["items"] = {"type": "string"}

    if prop_type == "object" and "properties" in prop:
        nested = simplify_schema(prop)
        simplified["properties"] = nested["properties"]
        simplified["required"] = nested["required"]

    return simplified


def _simplify_items(items: Any) -> Dict[str, Any]:
    """
    Simplify an array item schema one level deep: type, description, enum.
    """
    if not isinstance(items, dict):
        return {"type": "string"}

    simplified: Dict[str, Any] = {"type": _resolve_type(items.get("type"))}
    for key in _COPIED_KEYS:
        if key in items:
            simplified[key] = items[key]
    return simplified
