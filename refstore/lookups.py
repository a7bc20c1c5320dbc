"""
Read-only lookups over the country and court reference databases.

These are the queries the document providers and the court picker run once
provisioning is done. The court picker narrows province -> municipality ->
court seat -> seat details. Database errors propagate; a malformed or
unknown place gives None.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .store import ReferenceDatabase, Row

logger = logging.getLogger(__name__)

_MUNICIPALITY_RE = re.compile(r"^[A-Za-zÀ-ÿ\s-]+$")
_INVALID_CHARS_RE = re.compile(r"[^A-Za-zÀ-ÿ\s-]")


def list_countries(database: ReferenceDatabase) -> list[str]:
    """Country names from paises, in table order."""
    rows = database.query("SELECT nombre FROM paises ORDER BY id")
    return [row["nombre"] for row in rows]


def normalize_municipality(name: str) -> str:
    """Strip invalid characters and capitalize the first letter."""
    cleaned = _INVALID_CHARS_RE.sub("", name).strip()
    if cleaned and cleaned[0].islower():
        cleaned = cleaned[0].upper() + cleaned[1:]
    return cleaned


def municipality_from_place(place: str) -> Optional[str]:
    """Municipality part of "road, km, municipality, province".

    Returns:
        The third element, or None if the place does not have one or it
        contains anything but letters, spaces and hyphens
    """
    if not place or not place.strip():
        return None
    parts = place.split(", ")
    if len(parts) < 3:
        logger.warning("Malformed place", extra={"place": place})
        return None
    municipality = parts[2]
    if not _MUNICIPALITY_RE.match(municipality):
        logger.warning("Invalid municipality", extra={"municipality": municipality})
        return None
    return municipality


def lookup_judicial_district(database: ReferenceDatabase, place: str) -> Optional[str]:
    """Judicial district (partido judicial) for a place description.

    Args:
        database: Provisioned court database
        place: "road, km, municipality, province"

    Returns:
        The district name, or None when the place is malformed or unknown
    """
    municipality = municipality_from_place(place)
    if municipality is None:
        return None

    normalized = normalize_municipality(municipality)
    rows = database.query(
        "SELECT partido_judicial FROM partidos_judiciales WHERE municipio = ?",
        (normalized,),
    )
    if not rows:
        logger.info("No judicial district found", extra={"municipality": normalized})
        return None
    return rows[0]["partido_judicial"] or None


def list_provinces(database: ReferenceDatabase) -> list[str]:
    """Province names from PROVINCIAS, in table order."""
    rows = database.query("SELECT Provincia FROM PROVINCIAS ORDER BY idProvincia")
    return [row["Provincia"] for row in rows]


def list_municipalities(database: ReferenceDatabase, province: str) -> list[str]:
    """Municipalities of a province that have at least one court seat.

    MUNICIPIOS is joined to PROVINCIAS by id and to SEDES by municipality
    name, so municipalities without a seat are left out.
    """
    if not province:
        return []
    rows = database.query(
        "SELECT M.Municipio FROM MUNICIPIOS M "
        "JOIN PROVINCIAS P ON M.idProvincia = P.idProvincia "
        "JOIN SEDES S ON M.Municipio = S.municipio "
        "WHERE P.Provincia = ? "
        "GROUP BY M.Municipio ORDER BY M.Municipio",
        (province,),
    )
    return [row["Municipio"] for row in rows]


def list_court_seats(database: ReferenceDatabase, municipality: str) -> list[str]:
    """Names of the court seats (SEDES) in a municipality."""
    if not municipality:
        return []
    rows = database.query(
        "SELECT nombre FROM SEDES WHERE municipio = ? ORDER BY id",
        (municipality,),
    )
    return [row["nombre"] for row in rows]


def court_details(database: ReferenceDatabase, name: str) -> Optional[Row]:
    """Every column of the court seat with the given name.

    Returns:
        The SEDES row (NULL columns as ""), or None if the name is empty or
        unknown
    """
    if not name:
        return None
    rows = database.query("SELECT * FROM SEDES WHERE nombre = ?", (name,))
    if not rows:
        logger.info("Court seat not found", extra={"court": name})
        return None
    return rows[0]
