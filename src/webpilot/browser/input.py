"""Normalization helpers for keyboard, navigation and scroll input."""

from __future__ import annotations

import logging

from ..models import ScrollParameters

LOGGER = logging.getLogger(__name__)

HISTORY_TARGETS = frozenset({"back", "forward"})
MAX_SCROLL_DELTA = 10_000
SCROLL_UNIT_PIXELS = 100
MAX_WAIT_SECONDS = 30.0

_KEY_ALIASES = {
    "return": "Enter",
    "enter": "Enter",
    "backspace": "Backspace",
    "delete": "Delete",
    "del": "Delete",
    "tab": "Tab",
    "escape": "Escape",
    "esc": "Escape",
    "space": "Space",
    "up": "ArrowUp",
    "down": "ArrowDown",
    "left": "ArrowLeft",
    "right": "ArrowRight",
    "pageup": "PageUp",
    "page_up": "PageUp",
    "pagedown": "PageDown",
    "page_down": "PageDown",
    "home": "Home",
    "end": "End",
}

_MODIFIER_ALIASES = {
    "cmd": "Meta",
    "command": "Meta",
    "meta": "Meta",
    "super": "Meta",
    "ctrl": "Control",
    "control": "Control",
    "alt": "Alt",
    "option": "Alt",
    "shift": "Shift",
}


def normalize_key(key: str) -> str:
    """Map a loosely written key name to the driver's key name."""

    name = key.strip()
    if not name:
        return key
    return _KEY_ALIASES.get(name.lower(), name)


def split_key_combo(key: str) -> tuple[list[str], str]:
    """Split ``ctrl+shift+a`` into ``(["Control", "Shift"], "a")``.

    Modifiers keep the order in which they were written. ``ctrl++`` presses
    the plus key itself. A combo that ends in ``+`` with nothing after it
    (``shift+``) presses its last modifier alone. Unknown modifier names are
    dropped.
    """

    if key == "+" or "+" not in key:
        return [], normalize_key(key)
    parts = key.split("+")
    if len(parts) >= 3 and parts[-1] == "" and parts[-2] == "":
        main = "+"
        parts = parts[:-2]
    else:
        main = parts[-1]
        parts = parts[:-1]
    modifiers: list[str] = []
    for part in parts:
        name = _MODIFIER_ALIASES.get(part.strip().lower())
        if name is None:
            LOGGER.warning("Ignoring unknown modifier %r in key combo %r", part, key)
            continue
        modifiers.append(name)
    if not main.strip() and modifiers:
        return modifiers[:-1], modifiers[-1]
    return modifiers, normalize_key(main)


def normalize_url(url: str) -> str:
    """Prefix ``https://`` when the target lacks an http(s) scheme."""

    target = url.strip()
    if target.startswith(("http://", "https://")):
        return target
    return f"https://{target}"


def scroll_delta(params: ScrollParameters) -> tuple[float, float]:
    """Translate scroll parameters into a ``(delta_x, delta_y)`` wheel delta."""

    if params.scroll_amount == "max":
        amount = float(MAX_SCROLL_DELTA)
    else:
        amount = float(params.scroll_amount) * SCROLL_UNIT_PIXELS
    return {
        "down": (0.0, amount),
        "up": (0.0, -amount),
        "right": (amount, 0.0),
        "left": (-amount, 0.0),
    }[params.scroll_direction]


def clamp_wait(seconds: float) -> float:
    return max(0.0, min(float(seconds), MAX_WAIT_SECONDS))
