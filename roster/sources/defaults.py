"""Built-in roster served when neither the live source nor the cache has data."""

from __future__ import annotations

from datetime import datetime

from roster.common.constants import HOUSE, SENATE
from roster.common.models import Contact, Record, RoleFlags
from roster.common.time_utils import utc_now

ALP = "Australian Labor Party"
LIBERAL = "Liberal Party of Australia"
INDEPENDENT = "Independent"

_PHOTO = "https://images.unsplash.com/photo-{}?w=150&h=150&fit=crop&crop=face"

# id, name, party, locality, state, electorate, chamber, email, phone, photo, portfolios, minister, shadow
DEFAULT_ROWS: tuple[tuple, ...] = (
    (
        "fallback_1", "Anthony Albanese", ALP, "Marrickville", "NSW", "Grayndler", HOUSE,
        "anthony.albanese.mp@aph.gov.au", "(02) 9564 3588", "1560250097-0b93528c311a",
        ("Prime Minister",), True, False,
    ),
    (
        "fallback_2", "Peter Dutton", LIBERAL, "Dickson", "QLD", "Dickson", HOUSE,
        "peter.dutton.mp@aph.gov.au", "(07) 3205 9977", "1519085360753-af0119f7cbe7",
        ("Leader of the Opposition",), False, True,
    ),
    (
        "fallback_3", "Penny Wong", ALP, "Adelaide", "SA", None, SENATE,
        "senator.wong@aph.gov.au", "(08) 8354 0511", "1494790108755-2616b612b786",
        ("Foreign Affairs", "Leader of the Government in the Senate"), True, False,
    ),
    (
        "fallback_4", "Adam Bandt", "Australian Greens", "Melbourne", "VIC", "Melbourne", HOUSE,
        "adam.bandt.mp@aph.gov.au", "(03) 9417 0772", "1472099645785-5658abf4ff4e",
        ("Leader of the Australian Greens",), False, False,
    ),
    (
        "fallback_5", "Tanya Plibersek", ALP, "Sydney", "NSW", "Sydney", HOUSE,
        "tanya.plibersek.mp@aph.gov.au", "(02) 9357 6366", "1494790108755-2616b612b786",
        ("Environment and Water",), True, False,
    ),
    (
        "fallback_6", "Simon Birmingham", LIBERAL, "Adelaide", "SA", None, SENATE,
        "senator.birmingham@aph.gov.au", "(08) 8354 0966", "1472099645785-5658abf4ff4e",
        ("Finance", "Leader of the Opposition in the Senate"), False, True,
    ),
    (
        "fallback_7", "David Pocock", INDEPENDENT, "Canberra", "ACT", None, SENATE,
        "senator.pocock@aph.gov.au", "(02) 6277 3018", "1507003211169-0a1dd7228f2d",
        ("Climate Action", "Integrity"), False, False,
    ),
    (
        "fallback_8", "Zali Steggall", INDEPENDENT, "Warringah", "NSW", "Warringah", HOUSE,
        "zali.steggall.mp@aph.gov.au", "(02) 9977 6411", "1438761681033-6461ffad8d80",
        ("Climate Action",), False, False,
    ),
)


def default_records(now: datetime | None = None) -> list[Record]:
    stamp = now or utc_now()
    return [
        Record(
            id=record_id,
            display_name=name,
            category=party,
            region=state,
            locality=locality,
            sub_region=electorate,
            group=chamber,
            contact=Contact(email=email, phone=phone),
            image_ref=_PHOTO.format(photo),
            tags=tuple(portfolios),
            role_flags=RoleFlags(is_minister=minister, is_shadow_minister=shadow),
            last_updated=stamp,
        )
        for (
            record_id, name, party, locality, state, electorate, chamber,
            email, phone, photo, portfolios, minister, shadow,
        ) in DEFAULT_ROWS
    ]
