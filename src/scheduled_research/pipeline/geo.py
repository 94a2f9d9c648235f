"""
Geo Context Resolver.

Normalizes free-text country input to a canonical ISO-3166 alpha-2 code
and decides whether the strict verification policy applies.
"""
import re
from enum import Enum
from typing import Optional


class CountryCode(str, Enum):
    """Countries the resolver knows. UNKNOWN covers absent or unmapped input."""
    SA = "sa"
    AE = "ae"
    US = "us"
    GB = "gb"
    CN = "cn"
    JP = "jp"
    DE = "de"
    FR = "fr"
    IN = "in"
    BR = "br"
    CA = "ca"
    AU = "au"
    KR = "kr"
    SG = "sg"
    HK = "hk"
    CH = "ch"
    NL = "nl"
    SE = "se"
    ES = "es"
    IT = "it"
    RU = "ru"
    MX = "mx"
    ID = "id"
    TR = "tr"
    EG = "eg"
    ZA = "za"
    NG = "ng"
    QA = "qa"
    KW = "kw"
    BH = "bh"
    OM = "om"
    UNKNOWN = ""

    @property
    def is_known(self) -> bool:
        return self is not CountryCode.UNKNOWN


# Jurisdiction that triggers strict mode
STRICT_COUNTRY = CountryCode.SA

# Free-text markers that imply the strict jurisdiction
STRICT_KEYWORDS = ("saudi", "tadawul", "tasi", "nomu", "cma", "riyadh", "ksa")

_STRICT_KEYWORD_RE = re.compile(
    r"\b(" + "|".join(STRICT_KEYWORDS) + r")\b",
    re.IGNORECASE,
)

# Aliases other than the bare code itself, keyed after normalization
COUNTRY_ALIASES: dict[str, CountryCode] = {
    "saudi": CountryCode.SA,
    "saudi arabia": CountryCode.SA,
    "ksa": CountryCode.SA,
    "kingdom of saudi arabia": CountryCode.SA,
    "uae": CountryCode.AE,
    "united arab emirates": CountryCode.AE,
    "emirates": CountryCode.AE,
    "dubai": CountryCode.AE,
    "abu dhabi": CountryCode.AE,
    "usa": CountryCode.US,
    "united states": CountryCode.US,
    "america": CountryCode.US,
    "uk": CountryCode.GB,
    "united kingdom": CountryCode.GB,
    "britain": CountryCode.GB,
    "china": CountryCode.CN,
    "japan": CountryCode.JP,
    "germany": CountryCode.DE,
    "france": CountryCode.FR,
    "india": CountryCode.IN,
    "brazil": CountryCode.BR,
    "canada": CountryCode.CA,
    "australia": CountryCode.AU,
    "south korea": CountryCode.KR,
    "korea": CountryCode.KR,
    "singapore": CountryCode.SG,
    "hong kong": CountryCode.HK,
    "switzerland": CountryCode.CH,
    "netherlands": CountryCode.NL,
    "holland": CountryCode.NL,
    "sweden": CountryCode.SE,
    "spain": CountryCode.ES,
    "italy": CountryCode.IT,
    "russia": CountryCode.RU,
    "mexico": CountryCode.MX,
    "indonesia": CountryCode.ID,
    "turkey": CountryCode.TR,
    "egypt": CountryCode.EG,
    "south africa": CountryCode.ZA,
    "nigeria": CountryCode.NG,
    "qatar": CountryCode.QA,
    "kuwait": CountryCode.KW,
    "bahrain": CountryCode.BH,
    "oman": CountryCode.OM,
}


def _normalize_key(raw: str) -> str:
    return re.sub(r"[_\-]+", " ", raw.strip().lower())


def normalize_country(raw: Optional[str]) -> CountryCode:
    """
    Map free-text country input to a CountryCode.

    Examples:
        "Saudi Arabia", "KSA", "sa", "saudi-arabia" -> CountryCode.SA
        None, "", "Atlantis" -> CountryCode.UNKNOWN
    """
    if not raw:
        return CountryCode.UNKNOWN

    key = _normalize_key(raw)
    if key in COUNTRY_ALIASES:
        return COUNTRY_ALIASES[key]

    try:
        code = CountryCode(key)
    except ValueError:
        return CountryCode.UNKNOWN
    return code


def is_strict_context(code: CountryCode, query_text: Optional[str]) -> bool:
    """
    Whether the strict verification policy applies.

    True for the strict jurisdiction, or when the query text names it
    (whole word, case-insensitive) even though no country was set.
    """
    if code == STRICT_COUNTRY:
        return True
    return bool(query_text and _STRICT_KEYWORD_RE.search(query_text))
