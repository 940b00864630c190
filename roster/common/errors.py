"""Domain errors and failure typing."""


class RosterError(Exception):
    """Base class for roster failures."""

    error_code = "ROSTER_ERROR"


class ConfigError(RosterError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(RosterError):
    """Raised when a cache generation breaks its invariants."""

    error_code = "CONTRACT_ERROR"


class RecordValidationError(RosterError):
    """Raised when a raw mapping cannot be converted into a Record."""

    error_code = "RECORD_INVALID"


class FetchError(RosterError):
    """Raised by roster sources when a fetch cannot produce records."""

    error_code = "FETCH_ERROR"


class FetchUnavailable(FetchError):
    """Source unreachable: negative probe, transport error or timeout."""

    error_code = "FETCH_UNAVAILABLE"


class FetchEmpty(FetchError):
    """Source answered but yielded zero records."""

    error_code = "FETCH_EMPTY"


class PersistenceFailure(RosterError):
    """Durable store read or write failed."""

    error_code = "PERSISTENCE_FAILURE"


class ParseFailure(RosterError):
    """Cached blob could not be decoded."""

    error_code = "PARSE_FAILURE"
