from typing import List


def browse_tips(filter_hint: str = "") -> str:
    """Format tips line for the tree browser."""
    base = "Tips: ↑/↓=move, →/←=expand/collapse, *=expand all, /=search, ?=help, q=quit"
    return base + (filter_hint or "")


def search_tips(pattern: str, counter: str = "", error: str = "") -> str:
    """Tips line while typing a pattern.

    The error, when present, replaces the match counter so the reason the
    pattern was not applied is visible next to the input.
    """
    if error:
        return f"Search: /{pattern}  ! {error}  (Esc=cancel)"
    if pattern:
        return f"Search: /{pattern}  {counter} (Enter=keep filter, ↓/↑=next/prev, Esc=cancel)"
    return "Search: /_ (type a regular expression, Esc=cancel)"


def filter_hint(pattern: str, counter: str, search_attributes: bool, ignore_case: bool) -> str:
    if not pattern:
        return ""
    flags = []
    if search_attributes:
        flags.append("attrs")
    if ignore_case:
        flags.append("icase")
    suffix = f" [{','.join(flags)}]" if flags else ""
    return f" | Filter: '{pattern}'{suffix} {counter} (n/N=next/prev, Esc=clear)"


def help_lines() -> List[str]:
    return [
        "Navigation",
        "  ↑/↓, j/k          move cursor",
        "  PgUp/PgDn, space  page",
        "  Home/End          first/last row",
        "  →, l              expand group / go to first child",
        "  ←, h              collapse group / go to parent",
        "  Enter             toggle group",
        "  *                 expand everything below the selected group",
        "",
        "Search",
        "  /                 start a search (regular expression on names)",
        "  Enter             keep the filter and return to browsing",
        "  Esc               cancel search / clear filter",
        "  n/N               next/previous match",
        "  a                 toggle matching attribute values already read",
        "  i                 toggle case-insensitive matching",
        "",
        "  Groups shown dimmed have not been read yet; expand them to search inside.",
        "  ! marks a link whose target cannot be found.",
        "",
        "General",
        "  ?, F1             toggle this help",
        "  q                 quit (Ctrl+Q from anywhere)",
    ]
