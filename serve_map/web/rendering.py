from __future__ import annotations

from datetime import datetime
from html import escape
from urllib.parse import quote

from serve_map.core.saves.models import Catalog, SaveGroup
from serve_map.i18n.i18n import get_i18n, tr


def build_map_url(base_url: str, base_name: str) -> str:
    return f"{base_url.rstrip('/')}/map/{quote(base_name, safe='')}"


def build_viewer_url(map_viewer_url: str, map_url: str) -> str:
    return f"{map_viewer_url}{quote(map_url, safe='')}"


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB"):
        if value < 1024:
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GiB"


def format_timestamp(value: datetime) -> str:
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def render_index(catalog: Catalog, base_url: str, map_viewer_url: str = "") -> str:
    title = escape(tr("index.title"))
    rows = [_render_row(group, base_url, map_viewer_url) for group in catalog.groups()]

    if rows:
        body = (
            "<table>\n"
            "<thead><tr>"
            f"<th>{escape(tr('index.column.name'))}</th>"
            f"<th>{escape(tr('index.column.file'))}</th>"
            f"<th>{escape(tr('index.column.modified'))}</th>"
            f"<th>{escape(tr('index.column.size'))}</th>"
            f"<th>{escape(tr('index.column.versions'))}</th>"
            "</tr></thead>\n"
            "<tbody>\n" + "\n".join(rows) + "\n</tbody>\n"
            "</table>"
        )
    else:
        body = f'<p class="empty">{escape(tr("index.empty"))}</p>'

    return (
        "<!DOCTYPE html>\n"
        f'<html lang="{escape(get_i18n().current_language)}">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        f"<title>{title}</title>\n"
        "</head>\n"
        "<body>\n"
        f"<h1>{title}</h1>\n"
        f"{body}\n"
        "</body>\n"
        "</html>\n"
    )


def _render_row(group: SaveGroup, base_url: str, map_viewer_url: str) -> str:
    map_url = build_map_url(base_url, group.base_name)
    name_cell = f'<a href="{escape(map_url)}">{escape(group.base_name)}</a>'
    if map_viewer_url:
        viewer_url = build_viewer_url(map_viewer_url, map_url)
        name_cell += f' (<a class="viewer" href="{escape(viewer_url)}">{escape(tr("index.open_in_map"))}</a>)'

    latest = group.latest
    return (
        "<tr>"
        f"<td>{name_cell}</td>"
        f"<td>{escape(latest.file_name)}</td>"
        f"<td>{escape(format_timestamp(latest.modified_at))}</td>"
        f"<td>{escape(format_size(latest.size))}</td>"
        f"<td>{group.candidate_count}</td>"
        "</tr>"
    )
