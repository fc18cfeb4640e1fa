"""Pure functions turning a :class:`~nexplore.engine.ViewModel` into Rich
renderables. They read the view model only and never touch the engine."""

from __future__ import annotations

from typing import List, Optional

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from .engine import Mode, RowView, SelectionView, ViewModel
from .formatting import format_attr_value, format_shape, format_size
from .provider import LinkKind, NodeKind
from .search import Visibility
from .tips import browse_tips, filter_hint, help_lines, search_tips
from .tree_store import ChildState

MATCH_STYLE = "black on yellow"
SELECTED_STYLE = "reverse"


def _marker(row: RowView) -> str:
    if row.kind is NodeKind.BROKEN:
        return "! "
    if row.kind is not NodeKind.GROUP:
        return "  "
    if row.child_state is ChildState.FETCH_FAILED:
        return "✗ "
    return "▾ " if row.expanded else "▸ "


def render_row(row: RowView) -> Text:
    line = Text("  " * row.depth)
    failed = row.child_state is ChildState.FETCH_FAILED or row.kind is NodeKind.BROKEN
    line.append(_marker(row), style="red" if failed else "steel_blue")
    name = Text(row.name, style="bold" if row.kind is NodeKind.GROUP else "")
    for start, end in row.spans:
        s = max(0, min(start, len(row.name)))
        e = max(s, min(end, len(row.name)))
        if e > s:
            name.stylize(MATCH_STYLE, s, e)
    line.append_text(name)
    if row.link is LinkKind.SOFT:
        line.append(" →", style="magenta")
    elif row.link is LinkKind.EXTERNAL:
        line.append(" ⇗", style="magenta")
    if row.nx_class:
        line.append(f" [{row.nx_class}]", style="cyan")
    if row.kind is NodeKind.BROKEN:
        line.append(" (broken link)", style="red")
    elif row.kind is NodeKind.DATATYPE:
        line.append(" (datatype)", style="dim")
    if row.error:
        line.append(" (read failed)", style="red")
    if row.visibility is Visibility.UNDECIDABLE:
        line.stylize("dim")
    if row.selected:
        line.stylize(SELECTED_STYLE)
    return line


def render_tree(vm: ViewModel) -> Text:
    if vm.mode is Mode.HELP:
        return Text("\n".join(help_lines()))
    if not vm.visible_rows:
        if vm.active_pattern:
            return Text(f"No loaded node matches '{vm.active_pattern}' (Esc clears the filter)", style="dim")
        return Text("(no entries)", style="dim")
    out = Text()
    for i, row in enumerate(vm.window):
        if i:
            out.append("\n")
        out.append_text(render_row(row))
    return out


_KIND_LABELS = {
    NodeKind.GROUP: "Group",
    NodeKind.DATASET: "Dataset",
    NodeKind.DATATYPE: "Named datatype",
    NodeKind.BROKEN: "Broken link",
}


def _kind_label(selection: SelectionView) -> str:
    return _KIND_LABELS[selection.kind]


def render_details(selection: Optional[SelectionView]) -> RenderableType:
    if selection is None:
        return Text("Nothing selected", style="dim")
    info = Table.grid(padding=(0, 2))
    info.add_column(style="bold")
    info.add_column()
    info.add_row("Path", selection.path)
    info.add_row("Kind", _kind_label(selection))
    if selection.link is not LinkKind.HARD:
        info.add_row("Link", f"{selection.link.value} → {selection.target or '?'}")
    if selection.kind is NodeKind.GROUP:
        if selection.child_count is not None:
            info.add_row("Children", str(selection.child_count))
        else:
            info.add_row("Children", "not read yet")
    meta = selection.metadata
    summary = meta.summary if meta else None
    if summary is not None:
        info.add_row("Shape", format_shape(summary.shape))
        info.add_row("Type", summary.type_name)
        info.add_row("Elements", f"{summary.element_count:,}")
        info.add_row("Size", format_size(summary.byte_size))
        info.add_row("Layout", summary.layout)
        if summary.chunk_shape:
            info.add_row("Chunks", format_shape(summary.chunk_shape))
        if summary.filters:
            info.add_row("Filters", ", ".join(summary.filters))

    parts: List[RenderableType] = [info]
    if selection.error:
        parts.append(Text(selection.error, style="bold red"))
    if meta is not None:
        if meta.attributes:
            attrs = Table(title="Attributes", title_justify="left", show_edge=False, expand=True)
            attrs.add_column("Name", style="cyan", no_wrap=True)
            attrs.add_column("Value")
            for name, value in meta.attributes.items():
                attrs.add_row(name, format_attr_value(value))
            parts.append(attrs)
        else:
            parts.append(Text("No attributes", style="dim"))
    return Group(*parts)


def render_status(vm: ViewModel) -> str:
    if vm.mode is Mode.SEARCH_INPUT:
        return search_tips(vm.pattern_text, vm.match_counter, vm.pattern_error or "")
    if vm.mode is Mode.HELP:
        return "Help: ?/Esc=close, q=quit"
    hint = filter_hint(vm.active_pattern, vm.match_counter, vm.search_attributes, vm.ignore_case)
    if vm.status_message:
        return vm.status_message + hint
    return browse_tips(hint)


def render_title(vm: ViewModel) -> str:
    return f"{vm.file_name} ({format_size(vm.file_size)})"
