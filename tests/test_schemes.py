"""
Tests for the scheme parsers and injectors

Parsers must read every documented shape, report the three failure kinds
distinctly, and injectors must touch nothing outside the time-bearing
substring.
"""

import datetime as dt

import pytest

from conftest import NOW_MS
from timekeeper.address import Address
from timekeeper.errors import MalformedError, NoMatchError, UnsupportedValueError
from timekeeper.model import Encoding, FailureReason, SchemeTag, TimeRange
from timekeeper.schemes import (
    GenericHashStateScheme,
    LogEventsScheme,
    LogsInsightsFormatAScheme,
    LogsInsightsFormatBScheme,
    MetricsGraphScheme,
    PlainQueryDurationScheme,
    SchemeContext,
    SchemeRegistry,
    default_registry,
)

CW = "https://us-east-1.console.aws.amazon.com/cloudwatch/home?region=us-east-1"
XRAY = "https://console.aws.amazon.com/xray/home?region=us-east-1"

START = 1_700_000_000_000  # 2023-11-14T22:13:20Z
END = 1_700_003_600_000  # 2023-11-14T23:13:20Z
RANGE = TimeRange.absolute(START, END)


def _parse(scheme, url, ctx):
    return scheme.parse(Address(url), ctx)


def _inject(scheme, url, ctx, time_range=RANGE):
    return scheme.inject(Address(url), time_range, ctx)


class TestMetricsGraph:
    """graph= JSURL object in the fragment."""

    scheme = MetricsGraphScheme()

    def test_relative(self, ctx):
        r = _parse(self.scheme, CW + "#metricsV2:graph=~(view~'timeSeries~start~'-PT3H~end~'P0D)", ctx)
        assert (r.start, r.end) == (NOW_MS - 10_800_000, NOW_MS)
        assert r.encoding == Encoding.RELATIVE
        assert r.duration == "-PT3H"
        assert r.scheme == SchemeTag.METRICS_GRAPH
        assert r.source == "CloudWatch Metrics"

    def test_relative_end_offset(self, ctx):
        r = _parse(self.scheme, CW + "#metricsV2:graph=~(start~'-PT3H~end~'-PT1H)", ctx)
        assert (r.start, r.end) == (NOW_MS - 10_800_000, NOW_MS - 3_600_000)

    def test_absolute_iso(self, ctx):
        url = CW + "#metricsV2:graph=~(start~'2023-11-14T22*3a13*3a20Z~end~'2023-11-14T23*3a13*3a20Z)"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)
        assert r.encoding == Encoding.ABSOLUTE

    def test_absolute_epoch(self, ctx):
        r = _parse(self.scheme, CW + "#metricsV2:graph=~(start~1700000000000~end~1700003600000)", ctx)
        assert (r.start, r.end) == (START, END)

    def test_period_fallback(self, ctx):
        r = _parse(self.scheme, CW + "#metricsV2:graph=~(view~'timeSeries~period~'PT1H)", ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)
        assert r.is_relative

    def test_no_time_fields(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, CW + "#metricsV2:graph=~(view~'timeSeries)", ctx)

    def test_unreadable_timestamps(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, CW + "#metricsV2:graph=~(start~'yesterday~end~'today)", ctx)

    def test_not_an_object(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, CW + "#metricsV2:graph=~'hello", ctx)

    def test_malformed(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, CW + "#metricsV2:graph=~(start~zzz)", ctx)

    def test_bad_duration(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, CW + "#metricsV2:graph=~(start~'-Pxyz~end~'P0D)", ctx)

    def test_no_graph(self, ctx):
        with pytest.raises(NoMatchError):
            _parse(self.scheme, CW + "#metricsV2:", ctx)

    def test_inject(self, ctx):
        """Only start/end change; other fields and trailing text survive."""
        url = (
            CW + "#metricsV2:graph=~(view~'timeSeries~stacked~false~region~'us-east-1"
            "~start~'-PT3H~end~'P0D)&other=1"
        )
        assert _inject(self.scheme, url, ctx) == (
            CW + "#metricsV2:graph=~(view~'timeSeries~stacked~false~region~'us-east-1"
            "~start~'2023-11-14T22:13:20~end~'2023-11-14T23:13:20)&other=1"
        )

    def test_inject_local_zone(self):
        """Wall-clock text follows the configured zone."""
        ctx = SchemeContext(now_ms=NOW_MS, tz=dt.timezone(dt.timedelta(hours=2)))
        new = _inject(self.scheme, CW + "#metricsV2:graph=~(start~'-PT3H~end~'P0D)", ctx)
        assert new.endswith("graph=~(start~'2023-11-15T00:13:20~end~'2023-11-15T01:13:20)")

    def test_inject_no_graph(self, ctx):
        with pytest.raises(NoMatchError):
            _inject(self.scheme, CW + "#metricsV2:", ctx)

    def test_inject_beyond_calendar(self, ctx):
        """An instant with no calendar date is a malformed range."""
        with pytest.raises(MalformedError):
            _inject(
                self.scheme,
                CW + "#metricsV2:graph=~(start~'-PT3H~end~'P0D)",
                ctx,
                TimeRange.absolute(START, 99_999_999_999_999_999),
            )


class TestLogsInsightsFormatA:
    """queryDetail= with '$'-for-'%' percent-encoding."""

    scheme = LogsInsightsFormatAScheme()
    prefix = CW + "#logsV2:logs-insights?queryDetail="

    def test_relative_with_zero_end(self, ctx):
        """end~0 means now, not a missing value."""
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE~unit~'seconds)", ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)
        assert r.encoding == Encoding.RELATIVE
        assert r.unit == "seconds"

    def test_relative_by_sign(self, ctx):
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-900)", ctx)
        assert (r.start, r.end) == (NOW_MS - 900_000, NOW_MS)

    def test_relative_minutes(self, ctx):
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-15~timeType~'RELATIVE~unit~'minutes)", ctx)
        assert r.start == NOW_MS - 900_000

    def test_escaped_delimiters(self, ctx):
        """$7E is a percent-encoded '~'."""
        r = _parse(self.scheme, self.prefix + "$7E(end$7E0$7Estart$7E-3600$7EtimeType$7E'RELATIVE)", ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)

    def test_absolute_seconds(self, ctx):
        r = _parse(self.scheme, self.prefix + "~(end~1700003600~start~1700000000~timeType~'ABSOLUTE)", ctx)
        assert (r.start, r.end) == (START, END)
        assert r.unit == "seconds"

    def test_absolute_milliseconds(self, ctx):
        url = self.prefix + "~(end~1700003600000~start~1700000000000~timeType~'ABSOLUTE)"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)
        assert r.unit == "milliseconds"

    def test_absolute_iso(self, ctx):
        url = (
            self.prefix + "~(end~'2023-11-14T23$3A13$3A20.000Z~start~'2023-11-14T22$3A13$3A20.000Z"
            "~timeType~'ABSOLUTE)"
        )
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)

    def test_time_type_wins_over_sign(self, ctx):
        """An explicit ABSOLUTE is honored even for a negative start."""
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-3600~timeType~'ABSOLUTE)", ctx)
        assert r.encoding == Encoding.ABSOLUTE
        assert (r.start, r.end) == (-3_600_000, 0)

    def test_unit_value_fallback(self, ctx):
        r = _parse(self.scheme, self.prefix + "~(unit~'h~value~2)", ctx)
        assert (r.start, r.end) == (NOW_MS - 7_200_000, NOW_MS)

    def test_no_time_fields(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, self.prefix + "~(editorString~'x)", ctx)

    def test_unknown_unit(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, self.prefix + "~(end~0~start~-2~timeType~'RELATIVE~unit~'fortnights)", ctx)

    def test_non_numeric_offset(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, self.prefix + "~(end~0~start~'abc~timeType~'RELATIVE)", ctx)

    def test_bad_percent_encoding(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, self.prefix + "$FF", ctx)

    def test_no_match(self, ctx):
        with pytest.raises(NoMatchError):
            _parse(self.scheme, CW + "#logsV2:logs-insights", ctx)

    def test_inject(self, ctx):
        url = self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE~unit~'seconds)&tab=logs"
        assert _inject(self.scheme, url, ctx) == (
            self.prefix + "~(end~1700003600~start~1700000000~timeType~'ABSOLUTE~unit~'seconds)&tab=logs"
        )

    def test_inject_reapplies_percent_layer(self, ctx):
        """Characters the JSURL layer leaves alone are still percent-escaped."""
        url = self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE~editorString~'fields*20$40timestamp)"
        assert _inject(self.scheme, url, ctx) == (
            self.prefix + "~(end~1700003600~start~1700000000~timeType~'ABSOLUTE"
            "~editorString~'fields*20$40timestamp)"
        )

    def test_inject_keeps_milliseconds(self, ctx):
        url = self.prefix + "~(end~1600003600000~start~1600000000000~timeType~'ABSOLUTE)"
        assert _inject(self.scheme, url, ctx).endswith(
            "~(end~1700003600000~start~1700000000000~timeType~'ABSOLUTE)"
        )


class TestLogsInsightsFormatB:
    """queryDetail$3D followed by raw JSURL."""

    scheme = LogsInsightsFormatBScheme()
    prefix = CW + "#logsV2:logs-insights$3FqueryDetail$3D"

    def test_ignores_format_a(self, ctx):
        """Each format searches with its own pattern."""
        with pytest.raises(NoMatchError):
            _parse(self.scheme, TestLogsInsightsFormatA.prefix + "~(end~0~start~-3600)", ctx)

    def test_relative_with_zero_end(self, ctx):
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE~unit~'seconds)", ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)
        assert r.scheme == SchemeTag.LOGS_INSIGHTS_B
        assert r.source == "CloudWatch Logs Insights"

    def test_lowercase_marker(self, ctx):
        r = _parse(self.scheme, CW + "#logsV2:logs-insights$3fqueryDetail$3d~(end~0~start~-60)", ctx)
        assert r.start == NOW_MS - 60_000

    def test_stops_at_escaped_ampersand(self, ctx):
        url = self.prefix + "~(end~1700003600~start~1700000000~timeType~'ABSOLUTE)$26tab$3Dlogs"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)

    def test_truncated_value(self, ctx):
        """Addresses cut before the closing paren still parse."""
        r = _parse(self.scheme, self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE", ctx)
        assert r.start == NOW_MS - 3_600_000

    def test_malformed(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, self.prefix + "~(end~0~start~oops)", ctx)

    def test_inject(self, ctx):
        url = self.prefix + "~(end~0~start~-3600~timeType~'RELATIVE~unit~'seconds)$26tab$3Dlogs"
        assert _inject(self.scheme, url, ctx) == (
            self.prefix + "~(end~1700003600~start~1700000000~timeType~'ABSOLUTE~unit~'seconds)$26tab$3Dlogs"
        )


class TestLogEvents:
    """Short-escaped start/end integers."""

    scheme = LogEventsScheme()
    prefix = CW + "#logsV2:log-groups/log-group/app/log-events/stream$3FfilterPattern$3DERROR"

    def test_relative_without_end(self, ctx):
        r = _parse(self.scheme, self.prefix + "$26start$3D-3600000", ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)
        assert r.encoding == Encoding.RELATIVE

    def test_absolute(self, ctx):
        r = _parse(self.scheme, self.prefix + "$26start$3D1700000000000$26end$3D1700003600000", ctx)
        assert (r.start, r.end) == (START, END)
        assert r.encoding == Encoding.ABSOLUTE

    def test_negative_end(self, ctx):
        r = _parse(self.scheme, self.prefix + "$26start$3D-3600000$26end$3D-60000", ctx)
        assert r.end == NOW_MS - 60_000

    def test_zero_end_is_epoch(self, ctx):
        """Only a missing end means now; zero is the epoch itself."""
        r = _parse(self.scheme, self.prefix + "$26start$3D-3600000$26end$3D0", ctx)
        assert r.end == 0

    def test_start_first_in_query(self, ctx):
        url = CW + "#logsV2:log-groups/log-group/app/log-events/stream$3Fstart$3D-60000"
        assert _parse(self.scheme, url, ctx).start == NOW_MS - 60_000

    def test_malformed(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, self.prefix + "$26start$3Dabc", ctx)

    def test_no_start(self, ctx):
        with pytest.raises(NoMatchError):
            _parse(self.scheme, self.prefix + "$26end$3D0", ctx)

    def test_inject_replaces_both(self, ctx):
        url = self.prefix + "$26start$3D-3600000$26end$3D0$26other$3Dx"
        assert _inject(self.scheme, url, ctx) == (
            self.prefix + "$26start$3D1700000000000$26end$3D1700003600000$26other$3Dx"
        )

    def test_inject_adds_missing_end(self, ctx):
        url = self.prefix + "$26start$3D-3600000$26other$3Dx"
        assert _inject(self.scheme, url, ctx) == (
            self.prefix + "$26start$3D1700000000000$26end$3D1700003600000$26other$3Dx"
        )


class TestGenericHashState:
    """JSURL state object after '?~(' in the fragment."""

    scheme = GenericHashStateScheme()

    def test_duration_number(self, ctx):
        r = _parse(self.scheme, CW + "#home:?~(timeRange~1814400000", ctx)
        assert (r.start, r.end) == (NOW_MS - 1_814_400_000, NOW_MS)
        assert r.encoding == Encoding.RELATIVE
        assert r.duration == "-PT504H"

    def test_pair(self, ctx):
        r = _parse(self.scheme, CW + "#home:?~(timeRange~(~1700000000000~1700003600000))", ctx)
        assert (r.start, r.end) == (START, END)

    def test_object(self, ctx):
        url = CW + "#dashboards/dashboard/ops?~(timeRange~(start~'2023-11-14T22*3a13*3a20Z~end~'2023-11-14T23*3a13*3a20Z))"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)

    def test_unterminated_object(self, ctx):
        url = CW + "#dashboards/dashboard/ops?~(timeRange~(start~'2023-11-14T22:13:20Z~end~'2023-11-14T23:13:20Z"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (START, END)

    def test_no_time_range(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, CW + "#home:?~(autoRefresh~false)", ctx)

    def test_unrecognized_time_range(self, ctx):
        with pytest.raises(UnsupportedValueError):
            _parse(self.scheme, CW + "#home:?~(timeRange~'abc)", ctx)

    def test_malformed(self, ctx):
        with pytest.raises(MalformedError):
            _parse(self.scheme, CW + "#home:?~(timeRange~zz)", ctx)

    def test_no_marker(self, ctx):
        with pytest.raises(NoMatchError):
            _parse(self.scheme, CW + "#home:", ctx)

    def test_inject_number(self, ctx):
        """A relative number becomes an absolute start/end object."""
        assert _inject(self.scheme, CW + "#home:?~(timeRange~1814400000", ctx) == (
            CW + "#home:?~(timeRange~(start~'2023-11-14T22:13:20~end~'2023-11-14T23:13:20))"
        )

    def test_inject_pair_keeps_shape(self, ctx):
        url = CW + "#home:?~(timeRange~(~1~2)~autoRefresh~false)&tail"
        assert _inject(self.scheme, url, ctx) == (
            CW + "#home:?~(timeRange~(~1700000000000~1700003600000)~autoRefresh~false)&tail"
        )

    def test_inject_cut_inside_literal(self, ctx):
        """State cut off inside a literal still takes the new range."""
        url = CW + "#home:?~(timeRange~3600000~autoRefresh~fal"
        r = _parse(self.scheme, url, ctx)
        assert (r.start, r.end) == (NOW_MS - 3_600_000, NOW_MS)
        assert _inject(self.scheme, url, ctx) == (
            CW + "#home:?~(timeRange~(start~'2023-11-14T22:13:20~end~'2023-11-14T23:13:20))"
        )


class TestPlainQueryDuration:
    """timeRange= in the query or fragment."""

    scheme = PlainQueryDurationScheme()

    def test_duration_in_fragment(self, ctx):
        r = _parse(self.scheme, XRAY + "#/traces?timeRange=PT6H", ctx)
        assert (r.start, r.end) == (NOW_MS - 21_600_000, NOW_MS)
        assert r.duration == "PT6H"
        assert r.source == "X-Ray"

    def test_endpoints(self, ctx):
        r = _parse(self.scheme, XRAY + "#/traces?timeRange=2023-11-14T22:13:20Z~2023-11-14T23:13:20Z", ctx)
        assert (r.start, r.end) == (START, END)

    def test_percent_encoded_endpoints(self, ctx):
        url = XRAY + "#/traces?timeRange=2023-11-14T22%3A13%3A20Z~2023-11-14T23%3A13%3A20Z"
        assert _parse(self.scheme, url, ctx).start == START

    def test_epoch_endpoints(self, ctx):
        r = _parse(self.scheme, XRAY + "&timeRange=1700000000000~1700003600000", ctx)
        assert (r.start, r.end) == (START, END)

    def test_query_before_fragment(self, ctx):
        url = XRAY + "&timeRange=PT1H#/traces?timeRange=PT6H"
        assert _parse(self.scheme, url, ctx).start == NOW_MS - 3_600_000

    @pytest.mark.parametrize("value", ["a~b~c", "~2023-11-14T22:13:20Z", "PTfoo", ""])
    def test_malformed(self, ctx, value):
        with pytest.raises(MalformedError):
            _parse(self.scheme, XRAY + "#/traces?timeRange=" + value, ctx)

    def test_no_match(self, ctx):
        with pytest.raises(NoMatchError):
            _parse(self.scheme, XRAY + "#/traces?myTimeRange=PT1H", ctx)

    def test_inject(self, ctx):
        url = "https://console.aws.amazon.com/xray/home?timeRange=PT1H&region=us-east-1#/traces"
        assert _inject(self.scheme, url, ctx) == (
            "https://console.aws.amazon.com/xray/home"
            "?timeRange=2023-11-14T22:13:20~2023-11-14T23:13:20&region=us-east-1#/traces"
        )


class TestRegistry:
    """Test the scheme table."""

    def test_default_covers_supported_tags(self):
        registry = default_registry()
        assert set(registry.tags()) == {tag for tag in SchemeTag if tag.supported}

    @pytest.mark.parametrize("tag", [SchemeTag.UNSUPPORTED, SchemeTag.NOT_APPLICABLE])
    def test_unsupported_tags_have_no_scheme(self, tag):
        registry = default_registry()
        assert not registry.exists(tag)
        with pytest.raises(NoMatchError) as exc:
            registry.resolve(tag)
        assert exc.value.to_failure().reason == FailureReason.NO_MATCH

    def test_register_replaces(self):
        registry = SchemeRegistry()
        first, second = MetricsGraphScheme(), MetricsGraphScheme()
        registry.register(first)
        registry.register(second)
        assert registry.resolve(SchemeTag.METRICS_GRAPH) is second

    def test_dispatch(self, ctx):
        registry = default_registry()
        url = Address(CW + "#metricsV2:graph=~(start~'-PT3H~end~'P0D)")
        assert registry.parse(SchemeTag.METRICS_GRAPH, url, ctx).start == NOW_MS - 10_800_000
