"""
Cart line identity keys

A line is identified by its product plus the variant attributes the shopper
picked (color, size, ...). The key is independent of attribute order, so the
same selection always maps to the same line.
"""

from typing import Dict, Mapping, Optional, Tuple

from storefront.core.exceptions import InvalidArgumentException

KEY_SEPARATOR = "|"
PAIR_SEPARATOR = ":"

_ESCAPES = (("%", "%25"), ("|", "%7C"), (":", "%3A"))

def _escape(text: str) -> str:
    for raw, encoded in _ESCAPES:
        text = text.replace(raw, encoded)
    return text

def _unescape(text: str) -> str:
    for raw, encoded in reversed(_ESCAPES):
        text = text.replace(encoded, raw)
    return text

def normalize_variants(selection: Optional[Mapping[str, Optional[str]]]) -> Dict[str, str]:
    """
    Drop empty attributes and trim values.

    Attribute names are compared case-sensitively as given.
    """
    if not selection:
        return {}

    normalized = {}
    for name, value in selection.items():
        if value is None:
            continue
        value = str(value).strip()
        if value:
            normalized[name] = value
    return normalized

def generate_cart_item_key(product_id, variants: Optional[Mapping[str, str]] = None) -> str:
    """
    Build the canonical cart line key for a product and normalized selection.

    The product id, attribute names and values are all escaped. Returns the
    bare product id when there are no variants, otherwise
    ``<product_id>|name:value|name:value`` sorted by attribute name.

    Raises:
        InvalidArgumentException: If the product id is empty
    """
    product_id = str(product_id).strip() if product_id is not None else ""
    if not product_id:
        raise InvalidArgumentException("Product ID is required")

    parts = [
        f"{_escape(name)}{PAIR_SEPARATOR}{_escape(value)}"
        for name, value in sorted((variants or {}).items())
    ]
    if not parts:
        return _escape(product_id)
    return KEY_SEPARATOR.join([_escape(product_id), *parts])

def parse_cart_item_key(key: str) -> Tuple[str, Dict[str, str]]:
    """Split a cart line key back into product id and variants"""
    product_id, *parts = key.split(KEY_SEPARATOR)
    variants = {}
    for part in parts:
        name, _, value = part.partition(PAIR_SEPARATOR)
        variants[_unescape(name)] = _unescape(value)
    return _unescape(product_id), variants
