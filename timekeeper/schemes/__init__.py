"""Per-scheme parsers and injectors, and the registry that holds them."""

from .base import Scheme, SchemeContext
from .hash_state import GenericHashStateScheme
from .insights import LogsInsightsFormatAScheme, LogsInsightsFormatBScheme
from .log_events import LogEventsScheme
from .metrics import MetricsGraphScheme
from .query_duration import PlainQueryDurationScheme
from .registry import SchemeRegistry, default_registry

__all__ = [
    "Scheme",
    "SchemeContext",
    "SchemeRegistry",
    "default_registry",
    "GenericHashStateScheme",
    "LogEventsScheme",
    "LogsInsightsFormatAScheme",
    "LogsInsightsFormatBScheme",
    "MetricsGraphScheme",
    "PlainQueryDurationScheme",
]
