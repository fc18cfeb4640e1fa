import os
import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from .config import ExplorerConfig
from .debug import get_logger
from .engine import InteractionEngine
from .errors import ExplorerError
from .h5provider import H5Provider
from .tree_store import TreeStore
from .tui import ExplorerApp

EXIT_OK = 0
EXIT_OPEN_FAILED = 1


@click.command()
@click.argument("file_path", type=click.Path(dir_okay=False))
@click.option(
    '--search-attrs',
    is_flag=True,
    default=False,
    help="Also match the pattern against attribute values that have been read.",
)
@click.option(
    '--ignore-case',
    is_flag=True,
    default=False,
    help="Match search patterns case-insensitively.",
)
@click.option(
    '--expand-limit',
    type=click.IntRange(min=1),
    default=None,
    help="Maximum number of groups a single expand-all may read.",
)
@click.option(
    '--debug',
    is_flag=True,
    default=False,
    help='Enable verbose debug logging to nexplore_debug.log',
    show_default=True,
)
def main(file_path: str, search_attrs: bool, ignore_case: bool, expand_limit: Optional[int], debug: bool) -> None:
    """
    Interactively explore the groups, datasets and attributes of an HDF5 / NeXus FILE.
    """
    console = Console(stderr=True)
    if debug:
        os.environ['NEXPLORE_DEBUG'] = '1'
        console.print('[dim]Debug logging enabled -> nexplore_debug.log[/dim]')
    log = get_logger("main")

    config = ExplorerConfig.from_env()
    config.search_attributes = config.search_attributes or search_attrs
    config.ignore_case = config.ignore_case or ignore_case
    if expand_limit is not None:
        config.expand_all_limit = expand_limit
    config.debug = config.debug or debug
    log.debug("start: file=%s config=%s", file_path, config)

    try:
        store = TreeStore.open(file_path, H5Provider())
    except ExplorerError as e:
        log.debug("open failed: kind=%s error=%s", e.kind.value, e)
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", highlight=False)
        sys.exit(EXIT_OPEN_FAILED)

    with store:
        engine = InteractionEngine(store, config)
        app = ExplorerApp(engine)
        app.run()
    log.debug("exit: return_code=%s", app.return_code)
    sys.exit(app.return_code or EXIT_OK)


if __name__ == "__main__":
    main()
