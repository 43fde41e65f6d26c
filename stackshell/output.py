# ABOUTME: Rendering of API responses for the terminal
# ABOUTME: JSON or table output with optional filter/exclude key selection

"""Response rendering."""

from typing import Any

from rich import box
from rich.console import Console
from rich.table import Table


def select_keys(value: Any, filter_keys: list[str] | None = None, exclude_keys: list[str] | None = None) -> Any:
    """Apply filter/exclude key selection to each record of a response.

    Records are the dictionaries found directly in the response or inside its
    lists; nested values of a record are kept as they are.
    """
    filter_keys = [k.lower() for k in filter_keys or []]
    exclude_keys = [k.lower() for k in exclude_keys or []]
    if not filter_keys and not exclude_keys:
        return value

    def pick(record: dict[str, Any]) -> dict[str, Any]:
        picked = {}
        for key, item in record.items():
            if filter_keys and key.lower() not in filter_keys:
                continue
            if key.lower() in exclude_keys:
                continue
            picked[key] = item
        return picked

    result = {}
    for key, item in value.items():
        if isinstance(item, list):
            result[key] = [pick(r) if isinstance(r, dict) else r for r in item]
        elif isinstance(item, dict):
            result[key] = pick(item)
        else:
            result[key] = item
    return result


def _render_table(console: Console, title: str, records: list[dict[str, Any]]) -> None:
    columns: list[str] = []
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)

    table = Table(title=title, box=box.ROUNDED, show_header=True, header_style="bold cyan")
    for column in columns:
        table.add_column(column)
    for record in records:
        table.add_row(*(str(record.get(column, "")) for column in columns))
    console.print(table)


def render_response(
    console: Console,
    response: dict[str, Any],
    filter_keys: list[str] | None = None,
    exclude_keys: list[str] | None = None,
    output: str = "json",
) -> None:
    """Print an API response in the profile's output format."""
    data = select_keys(response, filter_keys, exclude_keys)

    if output != "text":
        console.print_json(data=data)
        return

    for key, item in data.items():
        if isinstance(item, list) and item and all(isinstance(r, dict) for r in item):
            _render_table(console, key, item)
        elif isinstance(item, dict):
            for sub_key, sub_item in item.items():
                console.print(f"{sub_key} = {sub_item}", highlight=False, markup=False)
        else:
            console.print(f"{key} = {item}", highlight=False, markup=False)
