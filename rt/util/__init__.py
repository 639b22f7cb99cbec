from .misc import (
    REFERENCE_DATE,
    atomic_write_json,
    format_description,
    format_simplified,
    format_time,
    from_reference_seconds,
    start_of_day,
    to_reference_seconds,
)
