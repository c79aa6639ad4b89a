"""Email delivery of lookup results."""

from __future__ import annotations

import html
import os
import time
from urllib.parse import urlencode

import requests
from tenacity import retry, stop_after_attempt, wait_exponential

from arba_lookup.errors import DeliveryError
from arba_lookup.logging_config import get_logger
from arba_lookup.models import LookupResult, ParcelRecord

LOGGER = get_logger(__name__)

BREVO_SEND_URL = "https://api.brevo.com/v3/smtp/email"
VALUATION_URL = "https://app.arba.gov.ar/Informacion/consultarValuacionesInit.do"
SUBJECT = "VF ARBA – Partidos y Partidas detectados"
HEADER_IMAGE_URL = "https://proprop.com.ar/wp-content/uploads/2025/09/catastro-min-min.jpg"

_FONT = "font-family:Arial,Helvetica,sans-serif;"


def prefill_url(parcel_id: str, district_code: str = "") -> str:
    """Link to the valuation form with district and parcel filled in."""

    params: dict[str, str] = {}
    if district_code:
        params["partido"] = district_code
    params["partida"] = parcel_id
    return f"{VALUATION_URL}?{urlencode(params)}"


def _html_item(parcel: ParcelRecord, district_code: str) -> str:
    parcel_id = html.escape(parcel.parcel_id)
    if district_code:
        header = (
            f"<div><strong>Partido:</strong> {html.escape(district_code)} — "
            f"<strong>Partida:</strong> {parcel_id}</div>"
        )
    else:
        header = f"<div><strong>Partida:</strong> {parcel_id}</div>"
    sub_unit = ""
    if parcel.sub_unit:
        sub_unit = (
            '<div style="font-size:.9rem;color:#555;">'
            f"Subparcela (PH): {html.escape(parcel.sub_unit)}</div>"
        )
    link = html.escape(prefill_url(parcel.parcel_id, district_code))
    return (
        '<li style="margin:0 0 1rem 0;padding:.5rem 0;border-bottom:1px solid #e5e7eb;list-style:none;">'
        f'<div style="text-align:left;{_FONT}">{header}{sub_unit}</div>'
        '<div style="text-align:center;margin-top:.5rem;">'
        f'<a href="{link}" target="_blank" rel="noopener noreferrer" '
        'style="display:inline-block;padding:10px 14px;background:#0b5ed7;color:#fff;'
        f'text-decoration:none;border-radius:6px;font-weight:700;{_FONT}">Consultar VF ARBA</a>'
        "</div></li>"
    )


def render_html(result: LookupResult) -> str:
    code = result.district.district_code
    municipality = result.district.municipality_name
    items = "".join(_html_item(parcel, code) for parcel in result.parcels)
    suffix = f" — {html.escape(municipality)}" if municipality else ""
    return (
        '<div style="padding:1rem;text-align:center;">'
        f'<img src="{HEADER_IMAGE_URL}" alt="VF ARBA" '
        'style="max-width:100%;height:auto;display:block;margin:0 auto 1rem;">'
        f'<h2 style="margin:0 0 .5rem;{_FONT}">Resultados de tu consulta VF ARBA</h2>'
        f'<p style="margin:.25rem 0 1rem;{_FONT}">'
        "A continuación encontrarás la(s) partida(s) detectada(s).</p>"
        "</div>"
        '<div style="padding:1rem;">'
        f'<div style="text-align:left;{_FONT}">'
        '<p style="margin:.5rem 0;"><strong>Instrucciones</strong></p>'
        '<ol style="margin:.25rem 0 1rem 1.25rem;padding:0;">'
        "<li>Copiá <strong>Partido</strong> y <strong>Partida</strong>.</li>"
        "<li>Hacé clic en “Consultar VF ARBA”.</li>"
        "<li>Pegá los datos en el sitio y seguí los pasos.</li>"
        "<li>Completá el captcha si corresponde.</li>"
        "</ol></div>"
        f'<ul style="margin:0;padding:0;">{items}</ul>'
        '<hr style="margin:1rem 0;border:0;border-top:1px solid #e5e7eb;">'
        f'<p style="font-size:.9rem;color:#555;{_FONT}">Enlace directo: '
        f'<a href="{VALUATION_URL}" target="_blank" rel="noopener noreferrer">'
        f"Valuación Fiscal ARBA</a>{suffix}</p>"
        "</div>"
    )


def render_text(result: LookupResult) -> str:
    code = result.district.district_code
    municipality = result.district.municipality_name
    lines = []
    for parcel in result.parcels:
        link = prefill_url(parcel.parcel_id, code)
        if code:
            lines.append(f"Partido: {code} — Partida: {parcel.parcel_id} | Prellenado: {link}")
        else:
            lines.append(f"Partida: {parcel.parcel_id} | Prellenado: {link}")
    suffix = f" — {municipality}" if municipality else ""
    lines.append(f"No prellenado: {VALUATION_URL}{suffix}")
    return "\n".join(lines)


class Mailer:
    """Send lookup results through the Brevo transactional email API."""

    def __init__(self) -> None:
        self._api_key = os.getenv("BREVO_API_KEY")
        self._sender = os.getenv("ARBA_MAIL_FROM")
        self._sender_name = os.getenv("ARBA_MAIL_FROM_NAME", "VF ARBA")
        self._bcc = os.getenv("ARBA_MAIL_BCC")
        self._last_send = 0.0

    @property
    def configured(self) -> bool:
        return bool(self._api_key and self._sender)

    def send_lookup(self, recipient: str, result: LookupResult) -> None:
        """Email *result* to *recipient*; raises DeliveryError on any failure."""

        if not self.configured:
            raise DeliveryError("Email transport not configured", transport="brevo")

        payload = {
            "sender": {"email": self._sender, "name": self._sender_name},
            "to": [{"email": recipient}],
            "subject": SUBJECT,
            "htmlContent": render_html(result),
            "textContent": render_text(result),
        }
        if self._bcc:
            payload["bcc"] = [{"email": self._bcc}]

        try:
            self._send_brevo(payload)
        except Exception as exc:
            LOGGER.warning("Email delivery failed | to=%s error=%s", recipient, exc)
            raise DeliveryError(str(exc), transport="brevo") from exc
        LOGGER.info("Email sent | to=%s parcels=%d", recipient, len(result.parcels))

    def _throttle(self) -> None:
        elapsed = time.monotonic() - self._last_send
        if elapsed < 1:
            time.sleep(1 - elapsed)
        self._last_send = time.monotonic()

    @retry(wait=wait_exponential(multiplier=0.5, max=10), stop=stop_after_attempt(3), reraise=True)
    def _send_brevo(self, payload: dict) -> None:
        self._throttle()
        headers = {"api-key": self._api_key or "", "accept": "application/json"}
        response = requests.post(BREVO_SEND_URL, json=payload, headers=headers, timeout=10)
        if response.status_code >= 300:
            raise RuntimeError(f"HTTP {response.status_code}")
