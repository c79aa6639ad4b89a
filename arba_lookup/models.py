"""Value objects produced by a parcel lookup."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _degrees(value: float) -> str:
    # Whole degrees print without a trailing ".0", as a JS number would.
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point; the portal decides whether it resolves."""

    lat: float
    lng: float

    def as_query(self) -> str:
        return f"{_degrees(self.lat)},{_degrees(self.lng)}"


@dataclass(frozen=True)
class ParcelRecord:
    """One row of the portal's parcel table."""

    parcel_id: str
    land_area: str = ""
    sub_unit: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "parcelId": self.parcel_id,
            "landArea": self.land_area,
            "subUnit": self.sub_unit,
        }


@dataclass(frozen=True)
class DistrictInfo:
    district_code: str = ""
    municipality_name: str = ""


@dataclass(frozen=True)
class LookupResult:
    """Parcels and district read from a single portal session."""

    parcels: tuple[ParcelRecord, ...]
    district: DistrictInfo = field(default_factory=DistrictInfo)
    panel_text: str = ""

    @property
    def parcel_ids(self) -> list[str]:
        return [parcel.parcel_id for parcel in self.parcels]

    def to_payload(self) -> dict[str, Any]:
        """Shape handed to the email collaborator."""

        return {
            "parcels": [parcel.to_dict() for parcel in self.parcels],
            "districtCode": self.district.district_code,
            "municipalityName": self.district.municipality_name,
        }
