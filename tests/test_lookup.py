from __future__ import annotations

import asyncio

import pytest
from fakes import FakeSession, launcher_for, table_dump

import arba_lookup.selectors as selectors
from arba_lookup.config import LookupSettings
from arba_lookup.errors import (
    NavigationTimeoutError,
    NoResultsError,
    ParcelLookupError,
    SelectorTimeoutError,
    SessionLaunchError,
)
from arba_lookup.models import Coordinate
from arba_lookup.portal.lookup import LookupStage, lookup_parcels

COORD = Coordinate(-34.6, -58.4)


def _two_page_portal() -> FakeSession:
    return FakeSession(
        pages=[
            [
                table_dump([["Capa"]], headers=["Capas"]),
                table_dump([["055-001", "300", ""], ["055-002", "280", ""], ["055-003", "310", "0001"]]),
            ],
            [table_dump([["055-004", "150", ""]])],
        ],
        total_pages="2",
        panel_text="Partido: 7 (La Plata)",
    )


def test_end_to_end_two_pages() -> None:
    session = _two_page_portal()
    result = asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))

    assert result.parcel_ids == ["055-001", "055-002", "055-003", "055-004"]
    assert result.district.district_code == "7"
    assert result.district.municipality_name == "La Plata"
    assert result.to_payload()["parcels"][2]["subUnit"] == "0001"
    assert session.close_calls == 1
    assert session.next_clicks == 1


def test_steps_run_in_order() -> None:
    session = _two_page_portal()
    asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))
    names = session.names()
    assert names[0] == "navigate"
    assert names.index("wait_attached") < names.index("type") < names.index("click_at")
    panel_wait = session.calls.index(
        ("wait_visible", selectors.PANEL_BODY_DIV, session.settings.panel_timeout_ms)
    )
    assert panel_wait < session.calls.index(("evaluate", "tables"))


def test_no_table_yields_no_results() -> None:
    session = FakeSession(pages=[[]], panel_text="Partido: 7 (La Plata)", pager_visible=False)
    with pytest.raises(NoResultsError) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))
    assert excinfo.value.stage == LookupStage.EXTRACTED.value
    assert excinfo.value.retryable is False
    assert session.close_calls == 1


def test_missing_district_is_not_fatal() -> None:
    session = FakeSession(pages=[[table_dump([["055-001"]])]], panel_text="")
    result = asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))
    assert result.parcel_ids == ["055-001"]
    assert result.district.district_code == ""
    assert result.district.municipality_name == ""


@pytest.mark.parametrize(
    ("failure_key", "error", "expected_type", "expected_stage"),
    [
        ("navigate", NavigationTimeoutError(url="x"), NavigationTimeoutError, "navigated"),
        ("wait_attached", SelectorTimeoutError(), SelectorTimeoutError, "activated"),
        ("type", RuntimeError("detached"), ParcelLookupError, "searched"),
        ("click", RuntimeError("intercepted"), ParcelLookupError, "searched"),
        (f"wait_visible:{selectors.SEARCH_SUGGESTION}", SelectorTimeoutError(), SelectorTimeoutError, "searched"),
        ("click_at", RuntimeError("mouse"), ParcelLookupError, "map_clicked"),
        (f"wait_visible:{selectors.PANEL_BODY_DIV}", SelectorTimeoutError(), SelectorTimeoutError, "panel_ready"),
        ("evaluate:tables", RuntimeError("context destroyed"), ParcelLookupError, "extracted"),
    ],
)
def test_failure_at_any_stage_tears_down_once(failure_key, error, expected_type, expected_stage) -> None:
    session = _two_page_portal()
    session.failures = {failure_key: error}

    with pytest.raises(expected_type) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))

    assert excinfo.value.stage == expected_stage
    assert session.close_calls == 1


def test_suggestion_timeout_fails_search_stage() -> None:
    session = _two_page_portal()
    session.suggestion = True
    session.failures = {f"wait_visible:{selectors.SEARCH_SUGGESTION}": SelectorTimeoutError()}

    with pytest.raises(SelectorTimeoutError) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))

    assert excinfo.value.stage == LookupStage.SEARCHED.value
    assert ("click", selectors.SEARCH_SUGGESTION) not in session.calls
    assert session.close_calls == 1


def test_missing_next_page_control_fails_lookup() -> None:
    session = FakeSession(
        pages=[[table_dump([["A1"]])], [table_dump([["B1"]])], [table_dump([["C1"]])]],
        total_pages="3",
        next_button="missing",
        panel_text="Partido: 7 (La Plata)",
    )

    with pytest.raises(SelectorTimeoutError) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))

    assert excinfo.value.stage == LookupStage.EXTRACTED.value
    assert excinfo.value.selector == selectors.NEXT_PAGE_BTN
    assert session.close_calls == 1


def test_unexpected_errors_are_wrapped_with_cause() -> None:
    session = _two_page_portal()
    session.failures = {"click_at": RuntimeError("mouse")}
    with pytest.raises(ParcelLookupError) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)))
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert "stage=map_clicked" in str(excinfo.value)


def test_launch_failure_propagates_without_teardown() -> None:
    async def _launch(settings):
        raise SessionLaunchError("no chromium")

    with pytest.raises(SessionLaunchError) as excinfo:
        asyncio.run(lookup_parcels(COORD, LookupSettings.instant(), launch=_launch))
    assert excinfo.value.stage == LookupStage.LAUNCHED.value


def test_cancellation_still_closes_session() -> None:
    session = _two_page_portal()

    async def _slow_navigate(url=None):
        await asyncio.sleep(10)

    session.navigate = _slow_navigate

    async def _run() -> None:
        await asyncio.wait_for(
            lookup_parcels(COORD, LookupSettings.instant(), launch=launcher_for(session)),
            timeout=0.05,
        )

    with pytest.raises(asyncio.TimeoutError):
        asyncio.run(_run())
    assert session.close_calls == 1
