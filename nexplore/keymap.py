from __future__ import annotations

from enum import Enum
from typing import Any, Dict, NamedTuple, Optional

from textual.binding import Binding


class Key(Enum):
    UP = "up"
    DOWN = "down"
    LEFT = "left"
    RIGHT = "right"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    HOME = "home"
    END = "end"
    ENTER = "enter"
    ESCAPE = "escape"
    BACKSPACE = "backspace"
    SEARCH = "search"
    HELP = "help"
    QUIT = "quit"
    FORCE_QUIT = "force_quit"
    NEXT_MATCH = "next_match"
    PREV_MATCH = "prev_match"
    EXPAND_ALL = "expand_all"
    TOGGLE_ATTRS = "toggle_attrs"
    TOGGLE_CASE = "toggle_case"
    CHAR = "char"


class KeyEvent(NamedTuple):
    key: Key
    char: str = ""

    @classmethod
    def of_char(cls, ch: str) -> "KeyEvent":
        return cls(Key.CHAR, ch)


# Terminal key names that mean the same thing in every mode.
NAMED_KEYS: Dict[str, Key] = {
    "up": Key.UP,
    "down": Key.DOWN,
    "left": Key.LEFT,
    "right": Key.RIGHT,
    "pageup": Key.PAGE_UP,
    "pagedown": Key.PAGE_DOWN,
    "home": Key.HOME,
    "end": Key.END,
    "enter": Key.ENTER,
    "return": Key.ENTER,
    "escape": Key.ESCAPE,
    "backspace": Key.BACKSPACE,
    "ctrl+h": Key.BACKSPACE,
    "\b": Key.BACKSPACE,
    "f1": Key.HELP,
    "ctrl+q": Key.FORCE_QUIT,
    "ctrl+c": Key.FORCE_QUIT,
}

# Printable characters that act as commands while browsing. In search input
# they are pattern text.
BROWSE_CHARS: Dict[str, Key] = {
    "q": Key.QUIT,
    "/": Key.SEARCH,
    "?": Key.HELP,
    "j": Key.DOWN,
    "k": Key.UP,
    "h": Key.LEFT,
    "l": Key.RIGHT,
    "n": Key.NEXT_MATCH,
    "N": Key.PREV_MATCH,
    "*": Key.EXPAND_ALL,
    "a": Key.TOGGLE_ATTRS,
    "i": Key.TOGGLE_CASE,
    " ": Key.PAGE_DOWN,
}

# Keys accepted while the help screen is up.
HELP_CHARS: Dict[str, Key] = {
    "q": Key.QUIT,
    "?": Key.HELP,
}


def translate_key(event: Any) -> Optional[KeyEvent]:
    """Turn a Textual key event into a logical :class:`KeyEvent`.

    Returns ``None`` for keys the explorer ignores (modifier combos, etc.).
    """
    k = getattr(event, "key", None)
    if isinstance(k, str) and k in NAMED_KEYS:
        return KeyEvent(NAMED_KEYS[k])
    ch = getattr(event, "character", None) or ""
    ctrl = getattr(event, "ctrl", False)
    alt = getattr(event, "alt", False)
    meta = getattr(event, "meta", False)
    if isinstance(ch, str) and len(ch) == 1 and ch.isprintable() and not (ctrl or alt or meta):
        return KeyEvent.of_char(ch)
    return None


def explorer_bindings() -> list[Binding]:
    """Footer bindings. Keys are consumed by the tree pane first; these only
    fire when it does not have focus."""
    return [
        Binding("q", "dispatch('quit')", "Quit"),
        Binding("ctrl+q", "dispatch('force_quit')", "", show=False),
        Binding("slash", "dispatch('search')", "Search"),
        Binding("question_mark", "dispatch('help')", "Help"),
        Binding("f1", "dispatch('help')", "", show=False),
        Binding("escape", "dispatch('escape')", "Back", show=False),
        Binding("right", "dispatch('right')", "Expand"),
        Binding("left", "dispatch('left')", "Collapse"),
        Binding("asterisk", "dispatch('expand_all')", "Expand all"),
        Binding("n", "dispatch('next_match')", "Next match"),
        Binding("home", "dispatch('home')", "First", show=False),
        Binding("end", "dispatch('end')", "Last", show=False),
    ]
