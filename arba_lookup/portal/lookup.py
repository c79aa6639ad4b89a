"""End-to-end parcel lookup: one browser session per coordinate."""

from __future__ import annotations

from enum import Enum

from arba_lookup.config import LookupSettings, load_settings
from arba_lookup.errors import NoResultsError, ParcelLookupError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import Coordinate, LookupResult
from arba_lookup.portal.district import parse_district, read_district_text
from arba_lookup.portal.session import Launcher, launch_portal_session, open_session
from arba_lookup.portal.steps import (
    click_map_center,
    ensure_info_mode,
    search_coordinate,
    wait_for_panel,
)
from arba_lookup.portal.table import collect_all_parcels

LOGGER = get_logger(__name__)


class LookupStage(str, Enum):
    """Lookup progress; each value names the stage being worked towards."""

    LAUNCHED = "launched"
    NAVIGATED = "navigated"
    ACTIVATED = "activated"
    SEARCHED = "searched"
    MAP_CLICKED = "map_clicked"
    PANEL_READY = "panel_ready"
    EXTRACTED = "extracted"
    TORN_DOWN = "torn_down"


def _enter(stage: LookupStage) -> LookupStage:
    LOGGER.info("Lookup stage -> %s", stage.value)
    return stage


async def lookup_parcels(
    coordinate: Coordinate,
    settings: LookupSettings | None = None,
    *,
    launch: Launcher = launch_portal_session,
) -> LookupResult:
    """Resolve *coordinate* to the parcels the portal lists for it.

    Raises :class:`NoResultsError` when the portal shows no parcel rows and
    another :class:`ParcelLookupError` subclass, tagged with the failing
    stage, for any automation failure. The browser is closed before either
    propagates. There is no retry.
    """

    settings = settings or load_settings()
    stage = LookupStage.LAUNCHED
    LOGGER.info("Lookup started | coordinate=%s", coordinate.as_query())

    try:
        async with open_session(settings, launch=launch) as session:
            stage = _enter(LookupStage.NAVIGATED)
            await session.navigate(settings.portal_url)

            stage = _enter(LookupStage.ACTIVATED)
            await ensure_info_mode(session)

            stage = _enter(LookupStage.SEARCHED)
            await search_coordinate(session, coordinate)

            stage = _enter(LookupStage.MAP_CLICKED)
            await click_map_center(session)

            stage = _enter(LookupStage.PANEL_READY)
            await wait_for_panel(session)

            stage = _enter(LookupStage.EXTRACTED)
            parcels = await collect_all_parcels(session)
            panel_text = await read_district_text(session)
            if not parcels:
                raise NoResultsError(
                    f"No parcels listed for {coordinate.as_query()}", url=settings.portal_url
                )
    except ParcelLookupError as exc:
        if exc.stage is None:
            exc.stage = stage.value
        LOGGER.warning("Lookup failed | %s", exc)
        raise
    except Exception as exc:
        LOGGER.exception("Lookup failed unexpectedly | stage=%s", stage.value)
        raise ParcelLookupError(
            f"Unexpected portal failure: {exc}", stage=stage.value, url=settings.portal_url
        ) from exc
    finally:
        LOGGER.info("Lookup stage -> %s (from %s)", LookupStage.TORN_DOWN.value, stage.value)

    district = parse_district(panel_text)
    LOGGER.info(
        "Lookup finished | parcels=%d district=%s municipality=%s",
        len(parcels),
        district.district_code or "-",
        district.municipality_name or "-",
    )
    return LookupResult(parcels=tuple(parcels), district=district, panel_text=panel_text)
