"""Provider-local code normalization: countries, NFL teams, positions, tours."""

from __future__ import annotations

# Three-letter codes as sent by golf feeds (mix of IOC and ISO) -> canonical code.
_COUNTRY_CODE_ALIASES: dict[str, str] = {
    "US": "USA",
    "UNITED STATES": "USA",
    "ZAF": "RSA",
    "SA": "RSA",
    "KOR": "KOR",
    "ROK": "KOR",
    "DEU": "GER",
    "NLD": "NED",
    "DNK": "DEN",
    "CHE": "SUI",
    "PRT": "POR",
    "CHL": "CHI",
    "PRY": "PAR",
    "TWN": "TPE",
    "PHL": "PHI",
    "ZWE": "ZIM",
}

COUNTRY_NAMES: dict[str, str] = {
    "USA": "United States",
    "ENG": "England",
    "SCO": "Scotland",
    "WAL": "Wales",
    "NIR": "Northern Ireland",
    "IRL": "Ireland",
    "CAN": "Canada",
    "MEX": "Mexico",
    "AUS": "Australia",
    "NZL": "New Zealand",
    "RSA": "South Africa",
    "ZIM": "Zimbabwe",
    "JPN": "Japan",
    "KOR": "South Korea",
    "CHN": "China",
    "TPE": "Chinese Taipei",
    "THA": "Thailand",
    "IND": "India",
    "PHI": "Philippines",
    "NOR": "Norway",
    "SWE": "Sweden",
    "DEN": "Denmark",
    "FIN": "Finland",
    "GER": "Germany",
    "AUT": "Austria",
    "SUI": "Switzerland",
    "FRA": "France",
    "BEL": "Belgium",
    "NED": "Netherlands",
    "ESP": "Spain",
    "POR": "Portugal",
    "ITA": "Italy",
    "POL": "Poland",
    "ARG": "Argentina",
    "CHI": "Chile",
    "COL": "Colombia",
    "VEN": "Venezuela",
    "PAR": "Paraguay",
    "PUR": "Puerto Rico",
}


def normalize_country_code(value: str | None) -> str | None:
    if not value:
        return None
    code = value.strip().upper()
    if not code:
        return None
    return _COUNTRY_CODE_ALIASES.get(code, code)


def country_name(code: str | None) -> str | None:
    """Display name for a canonical code; unknown codes are returned unchanged."""

    canonical = normalize_country_code(code)
    if canonical is None:
        return None
    return COUNTRY_NAMES.get(canonical, canonical)


# Relocated / alternate franchise abbreviations -> current canonical.
_TEAM_ABBR_ALIASES: dict[str, str] = {
    "LA": "LAR",
    "JAC": "JAX",
    "WSH": "WAS",
    "OAK": "LV",
    "SD": "LAC",
    "STL": "LAR",
    "ARZ": "ARI",
    "BLT": "BAL",
    "CLV": "CLE",
    "HST": "HOU",
}


def normalize_team_abbr(value: str | None) -> str | None:
    if not value:
        return None
    abbr = value.strip().upper()
    if not abbr or abbr == "NA":
        return None
    return _TEAM_ABBR_ALIASES.get(abbr, abbr)


_POSITION_ALIASES: dict[str, str] = {
    "HB": "RB",
    "FB": "RB",
    "PK": "K",
    "OT": "OL",
    "T": "OL",
    "OG": "OL",
    "G": "OL",
    "C": "OL",
    "DE": "DL",
    "DT": "DL",
    "NT": "DL",
    "ILB": "LB",
    "OLB": "LB",
    "MLB": "LB",
    "CB": "DB",
    "S": "DB",
    "SS": "DB",
    "FS": "DB",
    "SAF": "DB",
}

FANTASY_POSITIONS: frozenset[str] = frozenset({"QB", "RB", "WR", "TE", "K"})


def normalize_position(value: str | None) -> str | None:
    if not value:
        return None
    pos = value.strip().upper()
    if not pos or pos == "NA":
        return None
    return _POSITION_ALIASES.get(pos, pos)


_TOUR_CODES: dict[str, str] = {
    "pga": "PGA",
    "euro": "DP World",
    "dpwt": "DP World",
    "kft": "Korn Ferry",
    "liv": "LIV",
    "alt": "LIV",
    "lpga": "LPGA",
    "champions": "Champions",
}


def normalize_tour(value: str | None) -> str | None:
    if not value:
        return None
    code = value.strip()
    return _TOUR_CODES.get(code.lower(), code)
