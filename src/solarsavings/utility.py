"""Electric utility lookup for Texas service addresses.

Resolution order: the first five-digit token of the address against the ZIP
table, then any known ZIP embedded in the address, then a known city name.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from solarsavings.core.models import UtilityMatch

_ZIP_TOKEN = re.compile(r"\b(\d{5})\b")

# Later groups take precedence for ZIPs split between two utilities.
_UTILITY_ZIPS: Dict[str, Tuple[str, ...]] = {
    "Oncor Electric Delivery": (
        "75001", "75002", "75006", "75007", "75019", "75023", "75024", "75025", "75030", "75040",
        "75042", "75043", "75044", "75050", "75051", "75052", "75060", "75061", "75062", "75063",
        "75080", "75081", "75082", "75201", "75202", "75203", "75204", "75205", "75206", "75207",
        "75208", "75209", "75210", "75211", "75212", "75214", "75215", "75216", "75217", "75218",
        "75219", "75220", "75221", "75222", "75223", "75224", "75225", "75226", "75227", "75228",
        "75229", "75230", "75231", "75232", "75233", "75234", "75235", "75236", "75237", "75238",
        "75240", "75241", "75243", "75244", "75246", "75247", "75248", "75249", "75251", "75252",
        "75253", "75254", "76101", "76102", "76103", "76104", "76105", "76106", "76107", "76108",
        "76109", "76110", "76111", "76112", "76113", "76114", "76115", "76116", "76117", "76118",
        "76119", "76120", "76123", "76133", "76134", "76135", "76137", "76140", "76148", "76155",
        "76161", "76162", "76164", "76179", "76180", "76182",
    ),
    "CenterPoint Energy": (
        "77001", "77002", "77003", "77004", "77005", "77006", "77007", "77008", "77009", "77010",
        "77011", "77012", "77013", "77014", "77015", "77016", "77017", "77018", "77019", "77020",
        "77021", "77022", "77023", "77024", "77025", "77026", "77027", "77028", "77029", "77030",
        "77031", "77032", "77033", "77034", "77035", "77036", "77037", "77038", "77039", "77040",
        "77041", "77042", "77043", "77044", "77045", "77046", "77047", "77048", "77049", "77050",
        "77051", "77052", "77053", "77054", "77055", "77056", "77057", "77058", "77059", "77060",
        "77061", "77062", "77063", "77064", "77065", "77066", "77067", "77068", "77069", "77070",
        "77071", "77072", "77073", "77074", "77075", "77076", "77077", "77078", "77079", "77080",
        "77081", "77082", "77083", "77084", "77085", "77086", "77087", "77088", "77089", "77090",
        "77091", "77092", "77093", "77094", "77095", "77096", "77098", "77099",
    ),
    "Grayson-Collin Electric Cooperative": (
        "75071", "75070", "75069", "75454", "75407", "75409", "75013", "75189", "75087", "75032",
        "75126", "75142", "75160",
    ),
    "Denton County Electric Cooperative (CoServ)": (
        "76210", "76201", "76205", "76207", "76208", "76209", "76227", "75022", "75028", "75077",
        "75056", "75065", "76262", "76266", "76092",
    ),
    "Bluebonnet Electric Cooperative": (
        "78640", "78610", "78645", "78620", "78669", "78666", "78154", "78132", "78133", "78676",
        "78737", "78746", "78733", "78732", "78734", "78738",
    ),
    "Pedernales Electric Cooperative (PEC)": (
        "78602", "78612", "78621", "78624", "78634", "78644", "78652", "78653", "78654", "78657",
        "78663", "78681", "78701", "78702", "78704", "78717", "78719", "78721", "78722", "78723",
        "78724", "78725", "78726", "78727", "78728", "78729", "78730", "78731", "78735", "78736",
        "78739", "78741", "78742", "78744", "78745", "78747", "78748", "78749", "78750", "78751",
        "78752", "78753", "78754", "78756", "78757", "78758", "78759",
    ),
    "HILCO Electric Cooperative": (
        "75601", "75602", "75603", "75604", "75605", "75606", "75607", "75608", "75114", "75119",
        "75144", "75169", "75165",
    ),
    "Wood County Electric Cooperative": (
        "75441", "75442", "75778", "75773", "75494", "75497",
    ),
    "Cherokee County Electric Cooperative": (
        "75701", "75702", "75703", "75704", "75705", "75706", "75707", "75708", "75709", "75750",
        "75766", "75785", "75789",
    ),
    "Guadalupe Valley Electric Cooperative (GVEC)": (
        "78130", "78131", "78155", "78156", "78109", "78108", "78112", "78114", "78119", "78124",
        "78125", "78152",
    ),
    "Bandera Electric Cooperative": (
        "78003", "78013", "78025", "78028", "78029", "78058", "78070", "78006",
    ),
    "Medina Electric Cooperative": (
        "78002", "78006", "78015", "78024", "78055", "78056", "78057", "78063", "78073", "78833",
    ),
    "Big Country Electric Cooperative": (
        "79701", "79702", "79703", "79705", "79706", "79707", "79708", "79711", "79712", "79718",
        "79720",
    ),
    "Concho Valley Electric Cooperative": (
        "76801", "76802", "76821", "76823", "76825", "76827", "76828", "76834", "76837", "76841",
        "76844", "76845", "76849", "76856",
    ),
    "Lyntegar Electric Cooperative": (
        "79015", "79316", "79331", "79336", "79347", "79356", "79358", "79360", "79364", "79373",
    ),
    "Xcel Energy": (
        "79001", "79002", "79003", "79004", "79005", "79006", "79007", "79008", "79009", "79010",
        "79011", "79012", "79013", "79014", "79016", "79017", "79018", "79019",
    ),
    "Victoria Electric Cooperative": (
        "77901", "77902", "77903", "77904", "77905",
    ),
    "Wharton County Electric Cooperative": (
        "77414", "77404", "77435", "77456", "77465", "77465", "77488",
    ),
    "Austin Energy": (
        "78701", "78702", "78703", "78704", "78705",
    ),
}

ZIP_TO_UTILITY: Mapping[str, str] = MappingProxyType(
    {zip_code: utility for utility, zips in _UTILITY_ZIPS.items() for zip_code in zips}
)

CITY_TO_UTILITY: Mapping[str, str] = MappingProxyType(
    {
        "dallas": "Oncor Electric Delivery",
        "fort worth": "Oncor Electric Delivery",
        "arlington": "Oncor Electric Delivery",
        "plano": "Oncor Electric Delivery",
        "garland": "Oncor Electric Delivery",
        "irving": "Oncor Electric Delivery",
        "grand prairie": "Oncor Electric Delivery",
        "mesquite": "Oncor Electric Delivery",
        "carrollton": "Oncor Electric Delivery",
        "richardson": "Oncor Electric Delivery",
        "mckinney": "Grayson-Collin Electric Cooperative",
        "frisco": "Oncor Electric Delivery",
        "denton": "Denton County Electric Cooperative (CoServ)",
        "lewisville": "Denton County Electric Cooperative (CoServ)",
        "flower mound": "Denton County Electric Cooperative (CoServ)",
        "houston": "CenterPoint Energy",
        "sugar land": "CenterPoint Energy",
        "katy": "CenterPoint Energy",
        "spring": "CenterPoint Energy",
        "the woodlands": "CenterPoint Energy",
        "pasadena": "CenterPoint Energy",
        "pearland": "CenterPoint Energy",
        "league city": "CenterPoint Energy",
        "baytown": "CenterPoint Energy",
        "austin": "Austin Energy",
        "round rock": "Oncor Electric Delivery",
        "cedar park": "Oncor Electric Delivery",
        "pflugerville": "Oncor Electric Delivery",
        "kyle": "Bluebonnet Electric Cooperative",
        "buda": "Bluebonnet Electric Cooperative",
        "dripping springs": "Bluebonnet Electric Cooperative",
        "san antonio": "CPS Energy",
        "new braunfels": "Guadalupe Valley Electric Cooperative (GVEC)",
        "seguin": "Guadalupe Valley Electric Cooperative (GVEC)",
        "schertz": "Guadalupe Valley Electric Cooperative (GVEC)",
        "cibolo": "Guadalupe Valley Electric Cooperative (GVEC)",
        "tyler": "Cherokee County Electric Cooperative",
        "longview": "HILCO Electric Cooperative",
        "marshall": "East Texas Cable",
        "texarkana": "SWEPCO",
        "amarillo": "Xcel Energy",
        "lubbock": "LP&L",
        "abilene": "AEP Texas",
        "midland": "Big Country Electric Cooperative",
        "odessa": "AEP Texas",
        "el paso": "El Paso Electric",
        "corpus christi": "AEP Texas",
        "brownsville": "AEP Texas",
        "laredo": "AEP Texas",
        "waco": "Oncor Electric Delivery",
        "killeen": "Oncor Electric Delivery",
        "temple": "Oncor Electric Delivery",
        "bryan": "Bryan Texas Utilities",
        "college station": "Bryan Texas Utilities",
        "beaumont": "TNMP",
        "port arthur": "TNMP",
        "galveston": "CenterPoint Energy",
        "victoria": "Victoria Electric Cooperative",
    }
)

# Longest names first so "fort worth" wins over shorter overlaps.
_CITY_PATTERNS = tuple(
    (re.compile(rf"\b{re.escape(city)}\b"), city)
    for city in sorted(CITY_TO_UTILITY, key=len, reverse=True)
)


def extract_zip(address: str) -> Optional[str]:
    match = _ZIP_TOKEN.search(address or "")
    return match.group(1) if match else None


def utility_for_zip(zip_code: str) -> Optional[str]:
    return ZIP_TO_UTILITY.get((zip_code or "").strip())


def utility_for_city(city: str) -> Optional[str]:
    return CITY_TO_UTILITY.get((city or "").strip().lower())


def lookup_utility(address: str) -> Optional[UtilityMatch]:
    """Best-effort utility for ``address`` or ``None`` when nothing matches."""
    if not address:
        return None

    zip_code = extract_zip(address)
    if zip_code and zip_code in ZIP_TO_UTILITY:
        return UtilityMatch(name=ZIP_TO_UTILITY[zip_code], method="zip")

    for token in _ZIP_TOKEN.findall(address):
        if token in ZIP_TO_UTILITY:
            return UtilityMatch(name=ZIP_TO_UTILITY[token], method="zip_scan")

    lowered = address.lower()
    for pattern, city in _CITY_PATTERNS:
        if pattern.search(lowered):
            return UtilityMatch(name=CITY_TO_UTILITY[city], method="city")
    return None


__all__ = [
    "ZIP_TO_UTILITY",
    "CITY_TO_UTILITY",
    "extract_zip",
    "utility_for_zip",
    "utility_for_city",
    "lookup_utility",
]
