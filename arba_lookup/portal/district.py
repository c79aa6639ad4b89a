"""District ("Partido") parsing from the parcel panel text."""

from __future__ import annotations

import re
from typing import Any

import arba_lookup.selectors as selectors
from arba_lookup.errors import ParseAmbiguityError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import DistrictInfo

LOGGER = get_logger(__name__)

_DISTRICT_CODE_RE = re.compile(r"Partido:\s*(\d+)")
_MUNICIPALITY_RE = re.compile(r"\(([^)]+)\)")

_DISTRICT_TEXT_JS = """
([selector, marker]) => {
  const div = Array.from(document.querySelectorAll(selector))
    .find((el) => (el.textContent || '').includes(marker));
  return div ? div.textContent.trim() : '';
}
"""


def parse_district(text: str | None, *, strict: bool = False) -> DistrictInfo:
    """Pull the district code and municipality out of panel text.

    >>> parse_district("Partido: 14 (San Isidro)")
    DistrictInfo(district_code='14', municipality_name='San Isidro')

    Missing pieces come back as empty strings. With ``strict=True`` a text
    that yields neither piece raises :class:`ParseAmbiguityError`.
    """

    value = text or ""
    code_match = _DISTRICT_CODE_RE.search(value)
    name_match = _MUNICIPALITY_RE.search(value)
    info = DistrictInfo(
        district_code=code_match.group(1) if code_match else "",
        municipality_name=name_match.group(1).strip() if name_match else "",
    )

    if not info.district_code or not info.municipality_name:
        LOGGER.warning(
            "District text partially matched | code=%r municipality=%r text=%r",
            info.district_code,
            info.municipality_name,
            value[:120],
        )
        if strict and not info.district_code and not info.municipality_name:
            raise ParseAmbiguityError(f"Unrecognised district text: {value[:120]!r}")
    return info


async def read_district_text(session: Any) -> str:
    text = await session.evaluate(
        _DISTRICT_TEXT_JS, [selectors.PANEL_BODY_DIV, selectors.DISTRICT_MARKER]
    )
    return (text or "").strip()
