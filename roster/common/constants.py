"""Application constants."""

USER_AGENT = "parliament-roster/1.0 (+directory cache; contact: configured-email)"
SUPPORTED_REGIONS = ("NSW", "VIC", "QLD", "WA", "SA", "TAS", "NT", "ACT")
ALL_REGIONS = "All"
SENATE = "Senate"
HOUSE = "House of Representatives"
STATE_NAMES = {
    "new south wales": "NSW",
    "victoria": "VIC",
    "queensland": "QLD",
    "western australia": "WA",
    "south australia": "SA",
    "tasmania": "TAS",
    "northern territory": "NT",
    "australian capital territory": "ACT",
}
STATE_CAPITALS = {
    "NSW": "Sydney",
    "VIC": "Melbourne",
    "QLD": "Brisbane",
    "WA": "Perth",
    "SA": "Adelaide",
    "TAS": "Hobart",
    "NT": "Darwin",
    "ACT": "Canberra",
}
DEFAULT_RECORDS_KEY = "parliamentary_members_cache"
DEFAULT_METADATA_KEY = "parliamentary_update_info"
CACHE_FORMAT_VERSION = 1
EXIT_SUCCESS = 0
EXIT_PARTIAL = 10
EXIT_HARD_FAIL = 20
JSON_LOG_FIELDS = (
    "timestamp",
    "component",
    "event",
    "status",
    "outcome",
    "attempt",
    "duration_ms",
    "records_in",
    "records_out",
    "error_code",
    "message",
)
