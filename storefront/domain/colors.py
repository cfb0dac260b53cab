# storefront/domain/colors.py
"""
Normalizacja koloru na granicy systemu.

Kolor przychodzi z roznych miejsc w roznych ksztaltach: sama nazwa ("Black"),
kod ("#1a1a1a"), slownik {"name", "code"}, lista takich wartosci albo nic.
Dalej w systemie krazy juz tylko {"name": str, "code": str}.
"""
import re
from typing import Any, Dict

DEFAULT_COLOR_NAME = "Default"
DEFAULT_COLOR_CODE = "#000000"

_HEX_RE = re.compile(r"^#(?:[0-9a-fA-F]{3}|[0-9a-fA-F]{6})$")


def default_color() -> Dict[str, str]:
    return {"name": DEFAULT_COLOR_NAME, "code": DEFAULT_COLOR_CODE}


def normalize_color(value: Any) -> Dict[str, str]:
    if value is None:
        return default_color()

    if isinstance(value, str):
        text = value.strip()
        if not text:
            return default_color()
        if _HEX_RE.match(text):
            return {"name": text.lower(), "code": text.lower()}
        return {"name": text, "code": DEFAULT_COLOR_CODE}

    if isinstance(value, dict):
        name = value.get("name") or value.get("colorName")
        code = value.get("code") or value.get("hex")
        name = name.strip() if isinstance(name, str) else None
        code = code.strip() if isinstance(code, str) else None
        if not name and not code:
            return default_color()
        if code and not _HEX_RE.match(code):
            raise ValueError(f"Niepoprawny kod koloru: {code!r}")
        return {
            "name": name or code.lower(),
            "code": code.lower() if code else DEFAULT_COLOR_CODE,
        }

    if isinstance(value, (list, tuple)):
        #starsze koszyki trzymaly liste kolorow - bierzemy pierwszy
        if not value:
            return default_color()
        return normalize_color(value[0])

    raise ValueError(f"Nieobslugiwany format koloru: {type(value).__name__}")
