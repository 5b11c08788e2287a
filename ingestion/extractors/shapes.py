"""
Decode collection payloads from the Senate open data API.

The API serialises XML to JSON, so a collection with a single element comes
back as an object instead of a one-element list, and an empty collection
drops the leaf key altogether. ``decode_collection`` names these cases
explicitly and rejects anything else instead of guessing.
"""

from enum import Enum
from typing import Any, Dict, List, NamedTuple, Sequence, Union

from core.exceptions import UnrecognizedShapeError


class CollectionShape(str, Enum):
    LIST = "list"      # leaf is a list of objects
    SINGLE = "single"  # leaf is one object
    EMPTY = "empty"    # container present, leaf missing or null


class DecodedCollection(NamedTuple):
    shape: CollectionShape
    items: List[Dict[str, Any]]


def _split_path(path: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(path, str):
        return [key for key in path.split("/") if key]
    return list(path)


def decode_collection(
    payload: Any,
    path: Union[str, Sequence[str]],
    label: str = "collection"
) -> DecodedCollection:
    """
    Walk ``path`` in ``payload`` and classify the leaf.

    Args:
        payload: Decoded JSON body
        path: Keys to follow, as "A/B/C" or a sequence
        label: Name used in error messages

    Returns:
        DecodedCollection with the shape and the items as a list

    Raises:
        UnrecognizedShapeError: If a container on the path is missing or is
            not an object, or the leaf is neither an object nor a list of
            objects
    """
    keys = _split_path(path)
    if not keys:
        raise ValueError("path must contain at least one key")

    *containers, leaf_key = keys
    node = payload

    for key in containers:
        if not isinstance(node, dict) or key not in node:
            raise UnrecognizedShapeError(
                f"Unrecognized {label} response: missing '{key}'",
                context={
                    "path": "/".join(keys),
                    "failed_at": key,
                    "found_type": type(node).__name__,
                }
            )
        node = node[key]

    if node is None:
        # An empty collection may also null out its container
        return DecodedCollection(CollectionShape.EMPTY, [])

    if not isinstance(node, dict):
        raise UnrecognizedShapeError(
            f"Unrecognized {label} response: container is not an object",
            context={
                "path": "/".join(keys),
                "failed_at": containers[-1] if containers else leaf_key,
                "found_type": type(node).__name__,
            }
        )

    leaf = node.get(leaf_key)

    if leaf is None:
        return DecodedCollection(CollectionShape.EMPTY, [])

    if isinstance(leaf, dict):
        return DecodedCollection(CollectionShape.SINGLE, [leaf])

    if isinstance(leaf, list) and all(isinstance(item, dict) for item in leaf):
        return DecodedCollection(CollectionShape.LIST, list(leaf))

    raise UnrecognizedShapeError(
        f"Unrecognized {label} response: unexpected '{leaf_key}' value",
        context={
            "path": "/".join(keys),
            "failed_at": leaf_key,
            "found_type": type(leaf).__name__,
        }
    )


def as_list(value: Any) -> List[Any]:
    """Nested repeated elements: None -> [], object -> [object], list -> list"""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
