from __future__ import annotations

import pytest

from arba_lookup.alerts import mailer as mailer_module
from arba_lookup.alerts.mailer import Mailer, prefill_url, render_html, render_text
from arba_lookup.errors import DeliveryError
from arba_lookup.models import DistrictInfo, LookupResult, ParcelRecord

RESULT = LookupResult(
    parcels=(
        ParcelRecord("123456", "300 m2", ""),
        ParcelRecord("123457", "", "0002"),
    ),
    district=DistrictInfo("55", "La Plata"),
)


@pytest.fixture()
def configured_env(monkeypatch):
    monkeypatch.setenv("BREVO_API_KEY", "key-123")
    monkeypatch.setenv("ARBA_MAIL_FROM", "consultas@example.com")
    monkeypatch.setenv("ARBA_MAIL_BCC", "archivo@example.com")
    monkeypatch.setattr(Mailer, "_throttle", lambda self: None)


class _Response:
    def __init__(self, status_code: int) -> None:
        self.status_code = status_code


def test_prefill_url_with_and_without_district() -> None:
    assert prefill_url("123", "55").endswith("?partido=55&partida=123")
    assert prefill_url("123").endswith("?partida=123")


def test_render_text_lists_every_parcel() -> None:
    text = render_text(RESULT)
    lines = text.splitlines()
    assert lines[0].startswith("Partido: 55 — Partida: 123456 | Prellenado: ")
    assert "partida=123457" in lines[1]
    assert lines[-1].endswith("— La Plata")


def test_render_html_escapes_and_shows_sub_unit() -> None:
    result = LookupResult(parcels=(ParcelRecord("<b>9</b>", "", "PH 1"),), district=DistrictInfo())
    body = render_html(result)
    assert "&lt;b&gt;9&lt;/b&gt;" in body
    assert "Subparcela (PH): PH 1" in body
    assert "<strong>Partido:</strong>" not in body


def test_unconfigured_mailer_raises(monkeypatch) -> None:
    monkeypatch.delenv("BREVO_API_KEY", raising=False)
    monkeypatch.delenv("ARBA_MAIL_FROM", raising=False)
    with pytest.raises(DeliveryError):
        Mailer().send_lookup("user@example.com", RESULT)


def test_send_lookup_posts_payload(configured_env, monkeypatch) -> None:
    sent: list[dict] = []

    def _post(url, json=None, headers=None, timeout=None):
        sent.append({"url": url, "json": json, "headers": headers})
        return _Response(201)

    monkeypatch.setattr(mailer_module.requests, "post", _post)
    Mailer().send_lookup("user@example.com", RESULT)

    assert len(sent) == 1
    payload = sent[0]["json"]
    assert sent[0]["headers"]["api-key"] == "key-123"
    assert payload["to"] == [{"email": "user@example.com"}]
    assert payload["bcc"] == [{"email": "archivo@example.com"}]
    assert "123457" in payload["htmlContent"]


def test_send_failure_becomes_delivery_error(configured_env, monkeypatch) -> None:
    attempts: list[int] = []

    def _post(url, json=None, headers=None, timeout=None):
        attempts.append(1)
        return _Response(500)

    monkeypatch.setattr(mailer_module.requests, "post", _post)
    monkeypatch.setattr(Mailer._send_brevo.retry, "sleep", lambda seconds: None)

    with pytest.raises(DeliveryError) as excinfo:
        Mailer().send_lookup("user@example.com", RESULT)
    assert "HTTP 500" in str(excinfo.value)
    assert len(attempts) == 3
