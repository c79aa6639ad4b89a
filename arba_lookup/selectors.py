"""Centralised selectors for the CartoArba map portal."""

PORTAL_URL = "https://carto.arba.gov.ar/cartoArba/"

# ==== INFO MODE (OpenLayers "Información" tool) ====
INFO_BUTTON_ACTIVE = '.olControlInfoButtonItemActive.olButton[title="Información"]'
INFO_BUTTON_INACTIVE = '.olControlInfoButtonItemInactive.olButton[title="Información"]'
INFO_BUTTON_ANY = f"{INFO_BUTTON_ACTIVE}, {INFO_BUTTON_INACTIVE}"

# ==== SEARCH ====
SEARCH_INPUT = "#inputfindall"
SEARCH_SUGGESTION = "#ui-id-1"

# ==== RESULTS PANEL ====
PANEL_BODY_DIV = ".panel.curva.panel-info .panel-body div"
DISTRICT_MARKER = "Partido:"
PARCEL_HEADER_LABEL = "Partida"

# ==== PAGER ====
TABLE_PAGER = ".table-pager"
TOTAL_PAGES = ".table-pager .total-pages"
NEXT_PAGE_BTN = ".btn.btn-primary.btn-sm.next-page"
