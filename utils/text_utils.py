"""
Text utilities for Vietnamese product names and SKU codes.

Used to derive merchandising categories from family-code names
and size suffixes from SKU codes.
"""

import re
import unicodedata
from typing import Optional


# Matched against the lowercased name with accents intact; "dạo" and
# "bảo" do not contain "ao". Plain spellings cover names typed
# without accents.
# Ordered: first match wins. Outerwear words veto the tops rule.
CATEGORY_RULES: list[tuple[str, re.Pattern]] = [
    ("Đầm/Dresses", re.compile(r"dress|dam|đầm")),
    ("Váy/Skirts", re.compile(r"skirt|vay|váy")),
    ("Quần/Bottoms", re.compile(r"pant|jean|quan|quần")),
    ("Set", re.compile(r"set")),
    ("Áo khoác", re.compile(r"jacket|coat|blazer|khoác")),
]
TOPS_PATTERN = re.compile(r"top|shirt|blouse|ao|áo")
OUTERWEAR_PATTERN = re.compile(r"khoác|jacket|coat|blazer")

CATEGORY_TOPS = "Áo/Tops"
CATEGORY_OTHER = "Khác"

SIZE_ORDER = ["XS", "S", "M", "L", "XL"]


def normalize_name(text: Optional[str]) -> str:
    """
    Lowercase NFC form of a product name.

    Accents are kept; decomposed input ("a" + combining acute) is
    recomposed so "áo" matches however it was typed.

    - "Đầm Maxi" → "đầm maxi"
    - "ÁO KHOÁC" → "áo khoác"

    Returns:
        Lowercase string ("" for empty input)
    """
    if not text:
        return ""
    return unicodedata.normalize("NFC", text).lower()


def classify_category(fc_name: Optional[str]) -> str:
    """
    Map a family-code name to a merchandising category.

    Tops are checked first unless the name also carries an outerwear
    keyword; then dresses, skirts, bottoms, sets, outerwear.
    Anything unmatched is "Khác".
    """
    name = normalize_name(fc_name)

    if TOPS_PATTERN.search(name) and not OUTERWEAR_PATTERN.search(name):
        return CATEGORY_TOPS

    for category, pattern in CATEGORY_RULES:
        if pattern.search(name):
            return category

    return CATEGORY_OTHER


def extract_size(sku: Optional[str]) -> Optional[str]:
    """
    Extract the size suffix from a SKU code.

    - "DRS001-XL" → "XL"
    - "TOP22S" → "S"
    - "TOP22XS" → "XS"
    - "BAG01" → None

    Returns:
        One of XS/S/M/L/XL, or None when the SKU has no size suffix
    """
    if not sku:
        return None

    code = sku.upper().strip()

    if code.endswith("XL"):
        return "XL"
    if code.endswith("XS"):
        return "XS"
    if code.endswith("L"):
        return "L"
    if code.endswith("M"):
        return "M"
    if code.endswith("S"):
        return "S"
    return None
