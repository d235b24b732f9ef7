"""
Address Classifier

Scheme substrings nest and overlap, so classification is an ordered list
of rules evaluated top to bottom; the first rule whose predicate holds
decides the tag. The order below is the precedence:

1. metrics graph (``metricsV2`` + ``graph=``)
2. Logs Insights, short-escaped delimiters (``queryDetail$3D``)
3. Logs Insights, literal delimiters (``queryDetail=``)
4. log events (``log-events`` + short-escaped ``start``, no insights marker)
5. X-Ray product with a ``timeRange`` parameter
6. generic hash state (``?~(`` anywhere in the fragment)
7. a known product whose address carries no time
8. any other console page
9. anything else

Classification is a pure function of the address text and is never
cached: run it again whenever the address changes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from timekeeper.address import Address
from timekeeper.config import KeeperConfig
from timekeeper.model import SchemeTag

_ESCAPED_START_RE = re.compile(r"(?:\$3F|\$26)start\$3D", re.IGNORECASE)
_TIME_RANGE_RE = re.compile(r"(?<![\w.-])timeRange=")


@dataclass(frozen=True)
class ClassifierRule:
    """A named (predicate, tag) pair with the label shown to users."""

    name: str
    tag: SchemeTag
    label: str
    predicate: Callable[[Address, KeeperConfig], bool]

    def matches(self, address: Address, config: KeeperConfig) -> bool:
        return self.predicate(address, config)


# ---------- Predicates ----------


def _on_console(address: Address, config: KeeperConfig) -> bool:
    host = address.host
    suffix = config.console_host_suffix.lower()
    return host == suffix or host.endswith("." + suffix)


def _cloudwatch(address: Address, config: KeeperConfig) -> bool:
    return _on_console(address, config) and "/cloudwatch" in address.path


def _xray(address: Address, config: KeeperConfig) -> bool:
    if not _on_console(address, config):
        return False
    path = address.path
    if "/xray" in path or "/x-ray" in path:
        return True
    return _cloudwatch(address, config) and address.fragment.startswith("xray:")


def _metrics_graph(address: Address, config: KeeperConfig) -> bool:
    fragment = address.fragment
    return _cloudwatch(address, config) and "metricsV2" in fragment and "graph=" in fragment


def _insights_fragment(address: Address) -> bool:
    fragment = address.fragment
    return "logs-insights" in fragment or "logsV2" in fragment


def _insights_escaped(address: Address, config: KeeperConfig) -> bool:
    return (
        _cloudwatch(address, config)
        and _insights_fragment(address)
        and "querydetail$3d" in address.fragment.lower()
    )


def _insights_plain(address: Address, config: KeeperConfig) -> bool:
    return (
        _cloudwatch(address, config)
        and _insights_fragment(address)
        and "queryDetail=" in address.fragment
    )


def _log_events(address: Address, config: KeeperConfig) -> bool:
    fragment = address.fragment
    return (
        _cloudwatch(address, config)
        and "log-events" in fragment
        and "queryDetail" not in fragment
        and "logs-insights" not in fragment
        and _ESCAPED_START_RE.search(fragment) is not None
    )


def _xray_time(address: Address, config: KeeperConfig) -> bool:
    return _xray(address, config) and (
        _TIME_RANGE_RE.search(address.query) is not None
        or _TIME_RANGE_RE.search(address.fragment) is not None
    )


def _hash_state(address: Address, config: KeeperConfig) -> bool:
    return _cloudwatch(address, config) and "?~(" in address.fragment


def _known_product(address: Address, config: KeeperConfig) -> bool:
    return _cloudwatch(address, config) or _xray(address, config)


def _always(address: Address, config: KeeperConfig) -> bool:
    return True


RULES: Sequence[ClassifierRule] = (
    ClassifierRule("metrics-graph", SchemeTag.METRICS_GRAPH, "CW Metrics", _metrics_graph),
    ClassifierRule("logs-insights-escaped", SchemeTag.LOGS_INSIGHTS_B, "CW Logs Insights", _insights_escaped),
    ClassifierRule("logs-insights-plain", SchemeTag.LOGS_INSIGHTS_A, "CW Logs Insights", _insights_plain),
    ClassifierRule("log-events", SchemeTag.LOG_EVENTS, "CW Log Events", _log_events),
    ClassifierRule("xray-time-range", SchemeTag.PLAIN_QUERY_DURATION, "X-Ray", _xray_time),
    ClassifierRule("hash-state", SchemeTag.GENERIC_HASH_STATE, "CloudWatch", _hash_state),
    ClassifierRule("product-without-time", SchemeTag.UNSUPPORTED, "CW (limited)", _known_product),
    ClassifierRule("unknown-product", SchemeTag.UNSUPPORTED, "Unsupported", _on_console),
    ClassifierRule("not-console", SchemeTag.NOT_APPLICABLE, "Not AWS", _always),
)


def classify_rule(
    address: Address | str,
    config: Optional[KeeperConfig] = None,
    rules: Sequence[ClassifierRule] = RULES,
) -> ClassifierRule:
    """Return the first rule that matches the address."""
    if isinstance(address, str):
        address = Address(address)
    config = config or KeeperConfig()
    for rule in rules:
        if rule.matches(address, config):
            return rule
    return RULES[-1]


def classify(address: Address | str, config: Optional[KeeperConfig] = None) -> SchemeTag:
    """Return exactly one scheme tag for the address. Never fails."""
    return classify_rule(address, config).tag


def is_supported(tag: SchemeTag) -> bool:
    return tag.supported
