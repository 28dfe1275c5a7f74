"""
CoreGuard - Diff renderer.

Turns a DiffResult into display-ready output: a side-by-side HTML table
(Jinja2 template), unified-style plain text, or a Rich table for the
terminal. Pure data-in / output-out, no I/O besides template loading.
"""

import logging
from dataclasses import dataclass
from itertools import zip_longest
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound
from rich import box as rich_box
from rich.table import Table
from rich.text import Text

from coreguard.core.models import DiffOp, DiffResult

logger = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
DIFF_TEMPLATE = "diff_table.html"

_TEXT_PREFIX = {DiffOp.EQUAL: " ", DiffOp.INSERT: "+", DiffOp.DELETE: "-"}


@dataclass
class DiffRow:
    """One side-by-side row. A missing side has no line number and no text."""

    old_no: Optional[int]
    old_text: Optional[str]
    new_no: Optional[int]
    new_text: Optional[str]
    old_op: Optional[DiffOp]
    new_op: Optional[DiffOp]


def build_rows(result: DiffResult) -> list[DiffRow]:
    """
    Lay segments out side by side: equal lines on both sides, a deleted block
    followed by an inserted block share rows (deleted left, inserted right).
    """
    rows: list[DiffRow] = []
    old_no = new_no = 0
    segments = result.segments
    i = 0
    while i < len(segments):
        seg = segments[i]
        if seg.op is DiffOp.EQUAL:
            for line in seg.lines:
                old_no += 1
                new_no += 1
                rows.append(DiffRow(old_no, line, new_no, line, DiffOp.EQUAL, DiffOp.EQUAL))
            i += 1
            continue
        deleted: tuple[str, ...] = ()
        inserted: tuple[str, ...] = ()
        if seg.op is DiffOp.DELETE:
            deleted = seg.lines
            if i + 1 < len(segments) and segments[i + 1].op is DiffOp.INSERT:
                inserted = segments[i + 1].lines
                i += 1
        else:
            inserted = seg.lines
        for old_line, new_line in zip_longest(deleted, inserted):
            row = DiffRow(None, None, None, None, None, None)
            if old_line is not None:
                old_no += 1
                row.old_no, row.old_text, row.old_op = old_no, old_line, DiffOp.DELETE
            if new_line is not None:
                new_no += 1
                row.new_no, row.new_text, row.new_op = new_no, new_line, DiffOp.INSERT
            rows.append(row)
        i += 1
    return rows


class DiffRenderer:
    """Renders diffs; the HTML template is loaded from coreguard/templates/."""

    def __init__(self, templates_dir: Optional[Path] = None) -> None:
        tpl_dir = templates_dir or _TEMPLATES_DIR
        if not tpl_dir.is_dir():
            raise FileNotFoundError(f"Templates directory not found: {tpl_dir}")
        self._env = Environment(
            loader=FileSystemLoader(str(tpl_dir)),
            autoescape=True,
        )

    def render_html(self, result: DiffResult) -> str:
        """Side-by-side table; raises FileNotFoundError on a missing template."""
        try:
            template = self._env.get_template(DIFF_TEMPLATE)
        except TemplateNotFound as e:
            raise FileNotFoundError(f"Diff template not found: {e}") from e
        html = template.render(
            path=result.path,
            release_id=result.release_id,
            rows=build_rows(result),
            inserted=result.inserted_count,
            deleted=result.deleted_count,
            has_changes=result.has_changes,
        )
        logger.debug("Diff table rendered (%d chars)", len(html))
        return html

    def render_text(self, result: DiffResult) -> str:
        lines = [
            f"--- {result.path} (release {result.release_id})",
            f"+++ {result.path} (local)",
        ]
        for seg in result.segments:
            prefix = _TEXT_PREFIX[seg.op]
            lines.extend(prefix + line for line in seg.lines)
        return "\n".join(lines) + "\n"

    def render_rich(self, result: DiffResult) -> Table:
        table = Table(
            title=f"{result.path}  (release {result.release_id} vs local)",
            box=rich_box.SIMPLE,
            show_header=True,
            padding=(0, 1),
        )
        table.add_column("#", justify="right", style="dim")
        table.add_column(f"Release {result.release_id}", overflow="fold")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Local", overflow="fold")
        for row in build_rows(result):
            table.add_row(
                "" if row.old_no is None else str(row.old_no),
                _cell(row.old_text, row.old_op),
                "" if row.new_no is None else str(row.new_no),
                _cell(row.new_text, row.new_op),
            )
        return table


def _cell(text: Optional[str], op: Optional[DiffOp]) -> Text:
    if text is None:
        return Text("")
    if op is DiffOp.DELETE:
        return Text(text, style="red")
    if op is DiffOp.INSERT:
        return Text(text, style="green")
    return Text(text)
