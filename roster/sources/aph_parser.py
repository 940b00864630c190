"""Parse APH parliamentarian search result pages into record mappings."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Iterable
from urllib.parse import parse_qs, urljoin, urlparse

from bs4 import BeautifulSoup, Tag

from roster.common.constants import SENATE, STATE_CAPITALS, STATE_NAMES, SUPPORTED_REGIONS
from roster.common.time_utils import to_iso

_HONORIFIC_RE = re.compile(r"^(?:(?:the|hon\.?|senator|mr|mrs|ms|miss|dr|prof)\s+)+", re.IGNORECASE)
_POST_NOMINAL_RE = re.compile(r"(?:\s+(?:MP|AO|AC|AM|OAM|CSC|PSM|QC|KC|SC|RFD))+$")
_SENATOR_FOR_RE = re.compile(r"^senator\s+for\s+(?:the\s+)?", re.IGNORECASE)
_PHONE_RE = re.compile(r"\(0\d\)\s?\d{4}\s?\d{4}")
_MINISTER_RE = re.compile(r"\b(?:minister|treasurer|attorney-general|cabinet secretary)\b", re.IGNORECASE)
_OPPOSITION_RE = re.compile(
    r"\b(?:shadow|leader of the opposition|manager of opposition business)\b", re.IGNORECASE
)


def clean_name(raw: str) -> str:
    name = " ".join(raw.split())
    name = _HONORIFIC_RE.sub("", name)
    name = _POST_NOMINAL_RE.sub("", name)
    return name.strip()


def parse_for_line(value: str | None) -> tuple[str | None, str | None]:
    """Split the "For" line into (electorate, state code)."""
    if not value:
        return None, None
    text = _SENATOR_FOR_RE.sub("", " ".join(value.split())).strip()
    electorate: str | None = None
    state_text = text
    if "," in text:
        electorate, state_text = (part.strip() for part in text.rsplit(",", 1))
    state = state_text.strip().upper()
    if state not in SUPPORTED_REGIONS:
        state = STATE_NAMES.get(state_text.strip().lower(), "")
    return electorate or None, state or None


def derive_role_flags(positions: Iterable[str]) -> dict[str, bool]:
    is_minister = False
    is_shadow = False
    for position in positions:
        if _OPPOSITION_RE.search(position):
            is_shadow = True
        elif _MINISTER_RE.search(position):
            is_minister = True
    return {"is_minister": is_minister, "is_shadow_minister": is_shadow}


def _mpid(href: str | None) -> str | None:
    if not href:
        return None
    values = parse_qs(urlparse(href).query).get("MPID")
    if not values:
        return None
    return values[0].strip() or None


def _definition_pairs(container: Tag) -> dict[str, Tag]:
    pairs: dict[str, Tag] = {}
    for dt in container.find_all("dt"):
        dd = dt.find_next_sibling("dd")
        if dd is not None:
            pairs[dt.get_text(strip=True).lower()] = dd
    return pairs


def _split_positions(dd: Tag | None) -> list[str]:
    if dd is None:
        return []
    lines = dd.get_text(separator="\n").replace(";", "\n").split("\n")
    return [line.strip() for line in lines if line.strip()]


def _contact(dd: Tag | None, container: Tag) -> tuple[str | None, str | None]:
    scope = dd if dd is not None else container
    email = None
    mail_link = scope.find("a", href=re.compile(r"^mailto:", re.IGNORECASE))
    if mail_link is not None:
        email = mail_link["href"].split(":", 1)[1].split("?", 1)[0].strip() or None

    phone = None
    tel_link = scope.find("a", href=re.compile(r"^tel:", re.IGNORECASE))
    if tel_link is not None:
        phone = tel_link.get_text(strip=True) or tel_link["href"].split(":", 1)[1].strip()
    else:
        match = _PHONE_RE.search(scope.get_text(" "))
        if match:
            phone = match.group(0)
    return email, phone


def parse_search_results(html: str, *, base_url: str = "https://www.aph.gov.au") -> list[dict]:
    """Extract one scraped entry per search result block."""
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    entries: list[dict] = []
    for heading in soup.select("h4.title"):
        link = heading.find("a")
        name = clean_name(heading.get_text(" ", strip=True))
        if not name:
            continue
        container = heading.find_parent("div", class_="row") or heading.parent
        pairs = _definition_pairs(container)
        electorate, state = parse_for_line(pairs["for"].get_text(" ", strip=True) if "for" in pairs else None)
        email, phone = _contact(pairs.get("connect"), container)
        image = container.find("img", src=True)
        entries.append(
            {
                "mpid": _mpid(link.get("href") if link is not None else None),
                "name": name,
                "party": pairs["party"].get_text(" ", strip=True) if "party" in pairs else None,
                "electorate": electorate,
                "state": state,
                "positions": _split_positions(pairs.get("positions")),
                "email": email,
                "phone": phone,
                "photo_url": urljoin(base_url, image["src"]) if image is not None else None,
            }
        )
    return entries


def to_record_mapping(scraped: dict, *, chamber: str, index: int, fetched_at: datetime) -> dict:
    """Shape a scraped entry like ``Record.to_dict`` output, ready for validation."""
    state = scraped.get("state")
    electorate = scraped.get("electorate")
    chamber_slug = "senate" if chamber == SENATE else "house"
    return {
        "id": scraped.get("mpid") or f"aph-{chamber_slug}-{index}",
        "display_name": scraped.get("name"),
        "category": scraped.get("party"),
        "region": state,
        "locality": electorate or STATE_CAPITALS.get(state or "", None),
        "sub_region": electorate,
        "group": chamber,
        "contact": {"email": scraped.get("email"), "phone": scraped.get("phone")},
        "image_ref": scraped.get("photo_url"),
        "tags": list(scraped.get("positions") or []),
        "role_flags": derive_role_flags(scraped.get("positions") or []),
        "last_updated": to_iso(fetched_at),
    }
