"""Parcel table extraction and pagination."""

from __future__ import annotations

from typing import Any, Iterable, Sequence

import arba_lookup.selectors as selectors
from arba_lookup.errors import SelectorTimeoutError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import ParcelRecord

LOGGER = get_logger(__name__)

# Dump every table as header texts plus body cell texts; choosing the parcel
# table happens in Python so the rule is testable without a browser.
_DUMP_TABLES_JS = """
() => Array.from(document.querySelectorAll('table')).map((table) => ({
  headers: Array.from(table.querySelectorAll('th')).map((th) => th.textContent || ''),
  rows: Array.from(table.querySelectorAll('tbody tr')).map((row) =>
    Array.from(row.querySelectorAll('td')).map((td) => td.textContent || '')
  ),
}))
"""

_TOTAL_PAGES_JS = """
(selector) => {
  const el = document.querySelector(selector);
  return el ? el.textContent : null;
}
"""

# Returns "clicked", "disabled" or "missing".
_NEXT_PAGE_JS = """
(selector) => {
  const btn = document.querySelector(selector);
  if (!btn) {
    return 'missing';
  }
  if (btn.classList.contains('disabled')) {
    return 'disabled';
  }
  btn.click();
  return 'clicked';
}
"""


def find_parcel_table(
    tables: Iterable[dict[str, Any]],
    header_label: str = selectors.PARCEL_HEADER_LABEL,
) -> dict[str, Any] | None:
    """Return the first table whose header row mentions *header_label*."""

    for table in tables or []:
        headers = table.get("headers") or []
        if any(header_label in (header or "") for header in headers):
            return table
    return None


def _cell(cells: Sequence[str], index: int) -> str:
    if index >= len(cells):
        return ""
    return (cells[index] or "").strip()


def rows_to_records(rows: Iterable[Sequence[str]]) -> list[ParcelRecord]:
    """Map raw rows to records, skipping rows without a parcel id."""

    records: list[ParcelRecord] = []
    for cells in rows or []:
        parcel_id = _cell(cells, 0)
        if not parcel_id:
            continue
        records.append(
            ParcelRecord(
                parcel_id=parcel_id,
                land_area=_cell(cells, 1),
                sub_unit=_cell(cells, 2),
            )
        )
    return records


async def extract_parcel_rows(session: Any) -> list[ParcelRecord]:
    """Read the parcel table on the current page; empty when no table is shown."""

    tables = await session.evaluate(_DUMP_TABLES_JS)
    table = find_parcel_table(tables or [])
    if table is None:
        LOGGER.debug("No parcel table on page")
        return []
    return rows_to_records(table.get("rows") or [])


def parse_total_pages(raw: str | None) -> int:
    if raw is None:
        return 1
    try:
        value = int(str(raw).strip())
    except ValueError:
        return 1
    return value if value >= 1 else 1


async def read_total_pages(session: Any) -> int:
    """Return the pager's page count, or 1 when the pager never shows up."""

    try:
        await session.wait_visible(selectors.TABLE_PAGER, session.settings.pager_timeout_ms)
    except SelectorTimeoutError:
        LOGGER.debug("Pager not visible; assuming a single page")
    raw = await session.evaluate(_TOTAL_PAGES_JS, selectors.TOTAL_PAGES)
    return parse_total_pages(raw)


async def advance_page(session: Any) -> bool:
    state = await session.evaluate(_NEXT_PAGE_JS, selectors.NEXT_PAGE_BTN)
    if state == "missing":
        raise SelectorTimeoutError(
            "Next-page control missing before last page", selector=selectors.NEXT_PAGE_BTN
        )
    if state != "clicked":
        LOGGER.warning("Next-page control %s; stopping pagination", state)
        return False
    await session.settle("after_page")
    return True


async def collect_all_parcels(session: Any) -> list[ParcelRecord]:
    """Extract every page of the parcel table, in page then row order.

    Pages are read strictly one after another; the next page is requested
    only after the current one has been extracted.
    """

    total_pages = await read_total_pages(session)
    collected: list[ParcelRecord] = []

    for page_number in range(1, total_pages + 1):
        page_rows = await extract_parcel_rows(session)
        collected.extend(page_rows)
        LOGGER.debug(
            "Extracted parcel page | page=%d/%d rows=%d",
            page_number,
            total_pages,
            len(page_rows),
        )
        if page_number < total_pages and not await advance_page(session):
            break

    LOGGER.info("Parcel table read | pages=%d parcels=%d", total_pages, len(collected))
    return collected
