"""
Built-in schemas for the bundled reference databases.

Table schema:
    dispositivos.db
        dispositivos:
            - id INTEGER PRIMARY KEY AUTOINCREMENT
            - nombre TEXT
            - mac TEXT UNIQUE

    paises.db
        paises:
            - id INTEGER PRIMARY KEY
            - nombre TEXT

    juzgados.db
        SEDES (court seats):
            - id INTEGER PRIMARY KEY
            - nombre TEXT UNIQUE
            - municipio TEXT
            - direccion, telefono, codigo_postal TEXT
        PROVINCIAS:
            - idProvincia INTEGER PRIMARY KEY
            - Provincia TEXT
        MUNICIPIOS:
            - id INTEGER PRIMARY KEY
            - Municipio TEXT (matches SEDES.municipio by name)
            - idProvincia INTEGER (no foreign key)
        partidos_judiciales:
            - id INTEGER PRIMARY KEY
            - municipio TEXT
            - partido_judicial TEXT

    The court tables are joined by name, not by foreign key, as the bundled
    asset ships them.
"""

from __future__ import annotations

from .types import SchemaDefinition

DEVICE_REGISTRY_ID = "dispositivos.db"
COUNTRIES_ID = "paises.db"
COURTS_ID = "juzgados.db"

DEVICE_REGISTRY = SchemaDefinition(
    identifier=DEVICE_REGISTRY_ID,
    statements=(
        """
        CREATE TABLE IF NOT EXISTS dispositivos (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            nombre TEXT NOT NULL,
            mac TEXT NOT NULL UNIQUE
        )
        """,
    ),
    tables=("dispositivos",),
)

COUNTRIES = SchemaDefinition(
    identifier=COUNTRIES_ID,
    statements=(
        """
        CREATE TABLE IF NOT EXISTS paises (
            id INTEGER PRIMARY KEY,
            nombre TEXT NOT NULL
        )
        """,
    ),
    tables=("paises",),
)

COURTS = SchemaDefinition(
    identifier=COURTS_ID,
    statements=(
        """
        CREATE TABLE IF NOT EXISTS SEDES (
            id INTEGER PRIMARY KEY,
            nombre TEXT NOT NULL UNIQUE,
            municipio TEXT,
            direccion TEXT,
            telefono TEXT,
            codigo_postal TEXT
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS PROVINCIAS (
            idProvincia INTEGER PRIMARY KEY,
            Provincia TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS MUNICIPIOS (
            id INTEGER PRIMARY KEY,
            Municipio TEXT NOT NULL,
            idProvincia INTEGER
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS partidos_judiciales (
            id INTEGER PRIMARY KEY,
            municipio TEXT NOT NULL,
            partido_judicial TEXT NOT NULL
        )
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_sedes_municipio ON SEDES(municipio)
        """,
        """
        CREATE INDEX IF NOT EXISTS idx_partidos_municipio
            ON partidos_judiciales(municipio)
        """,
    ),
    tables=("SEDES", "PROVINCIAS", "MUNICIPIOS", "partidos_judiciales"),
)

BUILTIN_SCHEMAS = (DEVICE_REGISTRY, COUNTRIES, COURTS)
