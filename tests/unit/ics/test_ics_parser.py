"""Unit tests for the iCalendar parser."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest
from dateutil import tz as dateutil_tz
from icalendar import Calendar, Event

from freetimebot.ics.datetime_utils import decode_ical_datetime, has_date_value_param
from freetimebot.ics.parser import ICSParser, PendingEvent, unescape_text, unfold_lines
from freetimebot.ics.rrule_expander import RRuleExpander, RRuleExpansionError

UTC = timezone.utc
RANGE_START = datetime(2025, 1, 6, tzinfo=UTC)
RANGE_END = datetime(2025, 1, 13, tzinfo=UTC)


class TestUnfoldLines:
    """Tests for RFC 5545 line unfolding."""

    def test_space_continuation_joined(self):
        lines = list(unfold_lines("SUMMARY:Long ti\r\n tle\r\nUID:1\r\n"))

        assert lines[0] == "SUMMARY:Long title"
        assert lines[1] == "UID:1"

    def test_tab_continuation_joined(self):
        assert list(unfold_lines("SUMMARY:ab\n\tcd")) == ["SUMMARY:abcd"]

    def test_only_first_whitespace_character_removed(self):
        assert list(unfold_lines("SUMMARY:a\r\n  b")) == ["SUMMARY:a b"]

    def test_lf_and_crlf_mixed(self):
        assert list(unfold_lines("A:1\nB:2\r\nC:3")) == ["A:1", "B:2", "C:3"]

    def test_leading_continuation_dropped(self):
        assert list(unfold_lines(" orphan\r\nUID:1")) == ["UID:1"]


class TestUnescapeText:
    """Tests for SUMMARY text unescaping."""

    def test_all_escapes(self):
        assert unescape_text("a\\, b\\; c\\nd\\\\e") == "a, b; c\nd\\e"

    def test_plain_text_unchanged(self):
        assert unescape_text("Team sync") == "Team sync"


class TestDecodeDateTime:
    """Tests for DTSTART/DTEND value decoding."""

    def test_date_only_value_is_all_day(self):
        decoded = decode_ical_datetime("20250106", tz=UTC)

        assert decoded.value == datetime(2025, 1, 6, tzinfo=UTC)
        assert decoded.is_all_day is True

    def test_value_date_param_is_all_day(self):
        decoded = decode_ical_datetime("20250106", "VALUE=DATE", tz=UTC)

        assert decoded.is_all_day is True

    def test_value_date_time_param_is_not_all_day(self):
        assert has_date_value_param("VALUE=DATE-TIME") is False
        assert has_date_value_param("TZID=Europe/Berlin;VALUE=DATE") is True

    def test_utc_value_converted_to_zone(self):
        plus_two = dateutil_tz.tzoffset("PLUS2", 2 * 3600)

        decoded = decode_ical_datetime("20250106T080000Z", tz=plus_two)

        assert decoded.value == datetime(2025, 1, 6, 8, 0, tzinfo=UTC)
        assert decoded.value.hour == 10
        assert decoded.is_all_day is False

    def test_floating_value_is_wall_clock_in_zone(self):
        plus_two = dateutil_tz.tzoffset("PLUS2", 2 * 3600)

        decoded = decode_ical_datetime("20250106T080000", tz=plus_two)

        assert decoded.value.hour == 8
        assert decoded.value.utcoffset() == timedelta(hours=2)

    def test_missing_seconds_default_to_zero(self):
        decoded = decode_ical_datetime("20250106T0930", tz=UTC)

        assert decoded.value == datetime(2025, 1, 6, 9, 30, tzinfo=UTC)

    @pytest.mark.parametrize("value", ["garbage", "2025", "20251306T090000", ""])
    def test_unreadable_value_returns_none(self, value):
        assert decode_ical_datetime(value, tz=UTC) is None

    def test_utc_value_past_max_year_in_local_zone_returns_none(self):
        plus_two = timezone(timedelta(hours=2))

        assert decode_ical_datetime("99991231T235959Z", tz=plus_two) is None


class TestPendingEvent:
    """Tests for converting accumulated fields into an occurrence."""

    def test_requires_start_and_end(self):
        assert PendingEvent(uid="1", start=RANGE_START).to_occurrence() is None
        assert PendingEvent(uid="1", end=RANGE_START).to_occurrence() is None

    def test_missing_uid_gets_generated_id(self):
        event = PendingEvent(start=RANGE_START, end=RANGE_START + timedelta(hours=1))

        first = event.to_occurrence()
        second = event.to_occurrence()

        assert first.id
        assert first.id != second.id
        assert first.title == ""


class TestICSParser:
    """Tests for ICSParser.parse."""

    def test_parses_basic_event(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:event-1",
                "SUMMARY:Team sync",
                "DTSTART:20250107T090000",
                "DTEND:20250107T100000",
            ]
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert len(occurrences) == 1
        occurrence = occurrences[0]
        assert occurrence.id == "event-1"
        assert occurrence.title == "Team sync"
        assert occurrence.start == datetime(2025, 1, 7, 9, tzinfo=UTC)
        assert occurrence.end == datetime(2025, 1, 7, 10, tzinfo=UTC)
        assert occurrence.is_all_day is False
        assert occurrence.source_name == "Work"

    def test_all_day_event(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:holiday",
                "SUMMARY:Holiday",
                "DTSTART;VALUE=DATE:20250108",
                "DTEND;VALUE=DATE:20250109",
            ]
        )

        occurrence = parser.parse(feed, "Work", RANGE_START, RANGE_END)[0]

        assert occurrence.is_all_day is True
        assert occurrence.start == datetime(2025, 1, 8, tzinfo=UTC)
        assert occurrence.end == datetime(2025, 1, 9, tzinfo=UTC)

    def test_tzid_does_not_change_instant(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:ny",
                "DTSTART;TZID=America/New_York:20250107T090000",
                "DTEND;TZID=America/New_York:20250107T100000",
            ]
        )

        occurrence = parser.parse(feed, "Work", RANGE_START, RANGE_END)[0]

        assert occurrence.start == datetime(2025, 1, 7, 9, tzinfo=UTC)

    def test_summary_unescaped(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:1",
                "SUMMARY:Lunch\\, then review\\; bring notes",
                "DTSTART:20250107T120000Z",
                "DTEND:20250107T130000Z",
            ]
        )

        occurrence = parser.parse(feed, "Work", RANGE_START, RANGE_END)[0]

        assert occurrence.title == "Lunch, then review; bring notes"

    def test_summary_keeps_colons_after_first(self, parser, ics_calendar):
        feed = ics_calendar(
            ["UID:1", "SUMMARY:Call: budget", "DTSTART:20250107T120000Z", "DTEND:20250107T130000Z"]
        )

        assert parser.parse(feed, "Work", RANGE_START, RANGE_END)[0].title == "Call: budget"

    def test_folded_summary(self, parser):
        feed = (
            "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nUID:1\r\n"
            "SUMMARY:Quarterly planning with the\r\n  extended team\r\n"
            "DTSTART:20250107T090000Z\r\nDTEND:20250107T100000Z\r\n"
            "END:VEVENT\r\nEND:VCALENDAR\r\n"
        )

        occurrence = parser.parse(feed, "Work", RANGE_START, RANGE_END)[0]

        assert occurrence.title == "Quarterly planning with the extended team"

    def test_event_missing_end_dropped(self, parser, ics_calendar):
        feed = ics_calendar(
            ["UID:no-end", "DTSTART:20250107T090000"],
            ["UID:ok", "DTSTART:20250107T110000", "DTEND:20250107T120000"],
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["ok"]

    def test_unreadable_start_dropped(self, parser, ics_calendar):
        feed = ics_calendar(["UID:bad", "DTSTART:tomorrow", "DTEND:20250107T100000"])

        assert parser.parse(feed, "Work", RANGE_START, RANGE_END) == []

    def test_unknown_properties_ignored(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:1",
                "LOCATION:Room 4",
                "X-CUSTOM;FOO=bar:baz",
                "no colon on this line",
                "DTSTART:20250107T090000",
                "DTEND:20250107T100000",
            ]
        )

        assert len(parser.parse(feed, "Work", RANGE_START, RANGE_END)) == 1

    def test_malformed_text_returns_empty(self, parser):
        assert parser.parse("this is not a calendar\nat all", "Work", RANGE_START, RANGE_END) == []

    def test_empty_text_returns_empty(self, parser):
        assert parser.parse("", "Work", RANGE_START, RANGE_END) == []
        assert parser.parse("   \r\n", "Work", RANGE_START, RANGE_END) == []

    def test_unterminated_event_not_emitted(self, parser):
        feed = "BEGIN:VCALENDAR\r\nBEGIN:VEVENT\r\nUID:1\r\nDTSTART:20250107T090000\r\nDTEND:20250107T100000\r\n"

        assert parser.parse(feed, "Work", RANGE_START, RANGE_END) == []

    def test_events_outside_range_excluded(self, parser, ics_calendar):
        feed = ics_calendar(
            ["UID:before", "DTSTART:20250101T090000", "DTEND:20250101T100000"],
            ["UID:after", "DTSTART:20250120T090000", "DTEND:20250120T100000"],
            ["UID:inside", "DTSTART:20250107T090000", "DTEND:20250107T100000"],
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["inside"]

    def test_range_overlap_is_half_open(self, parser, ics_calendar):
        feed = ics_calendar(
            ["UID:ends-at-start", "DTSTART:20250105T230000", "DTEND:20250106T000000"],
            ["UID:straddles-start", "DTSTART:20250105T230000", "DTEND:20250106T010000"],
            ["UID:starts-at-end", "DTSTART:20250113T000000", "DTEND:20250113T010000"],
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["straddles-start"]

    def test_naive_range_bounds_accepted(self, parser, ics_calendar):
        feed = ics_calendar(["UID:1", "DTSTART:20250107T090000", "DTEND:20250107T100000"])

        occurrences = parser.parse(feed, "Work", datetime(2025, 1, 6), datetime(2025, 1, 13))

        assert len(occurrences) == 1

    def test_recurring_event_expanded(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:standup",
                "SUMMARY:Standup",
                "DTSTART:20250106T090000",
                "DTEND:20250106T091500",
                "RRULE:FREQ=DAILY;COUNT=3",
            ]
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.start.day for o in occurrences] == [6, 7, 8]
        assert occurrences[0].id == "standup"
        assert occurrences[1].id == f"standup-{int(datetime(2025, 1, 7, 9, tzinfo=UTC).timestamp() * 1000)}"
        assert all(o.title == "Standup" for o in occurrences)
        assert all(o.end - o.start == timedelta(minutes=15) for o in occurrences)

    def test_recurrence_expanded_when_origin_out_of_range(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:weekly",
                "DTSTART:20241230T140000",
                "DTEND:20241230T150000",
                "RRULE:FREQ=WEEKLY",
            ]
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.start for o in occurrences] == [datetime(2025, 1, 6, 14, tzinfo=UTC)]
        assert occurrences[0].id.startswith("weekly-")

    def test_weekly_by_day_from_tuesday(self, parser, ics_calendar):
        feed = ics_calendar(
            [
                "UID:tt",
                "DTSTART:20250107T100000",
                "DTEND:20250107T110000",
                "RRULE:FREQ=WEEKLY;BYDAY=TU,TH",
            ]
        )

        occurrences = parser.parse(
            feed, "Work", datetime(2025, 1, 7, tzinfo=UTC), datetime(2025, 1, 21, tzinfo=UTC)
        )

        assert [o.start.day for o in occurrences] == [7, 9, 14, 16]
        assert len({o.id for o in occurrences}) == 4

    def test_expansion_failure_keeps_original(self, ics_calendar):
        expander = Mock(spec=RRuleExpander)
        expander.expand.side_effect = RRuleExpansionError("boom")
        parser = ICSParser(UTC, expander)
        feed = ics_calendar(
            ["UID:1", "DTSTART:20250107T090000", "DTEND:20250107T100000", "RRULE:FREQ=DAILY"]
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["1"]
        expander.expand.assert_called_once()

    def test_recurring_event_with_unrepresentable_end_keeps_feed(self, parser, ics_calendar):
        feed = ics_calendar(
            ["UID:good", "DTSTART:20250107T090000Z", "DTEND:20250107T100000Z"],
            [
                "UID:endless",
                "DTSTART:20250106T090000Z",
                "DTEND:99991231T000000Z",
                "RRULE:FREQ=DAILY",
            ],
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["good", "endless"]

    def test_utc_value_past_max_year_in_eastern_zone_skipped(self, ics_calendar):
        parser = ICSParser(timezone(timedelta(hours=2)))
        feed = ics_calendar(
            ["UID:good", "DTSTART:20250107T090000Z", "DTEND:20250107T100000Z"],
            ["UID:far", "DTSTART:99991231T235959Z", "DTEND:99991231T235959Z"],
        )

        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert [o.id for o in occurrences] == ["good"]

    def test_feed_generated_by_icalendar(self, parser):
        calendar = Calendar()
        calendar.add("prodid", "-//Example Corp//Calendar//EN")
        calendar.add("version", "2.0")

        title = "Architecture review, part two; with the platform, data and mobile teams present"
        event = Event()
        event.add("uid", "review-2025@example.com")
        event.add("summary", title)
        event.add("dtstart", datetime(2025, 1, 8, 13, 0))
        event.add("dtend", datetime(2025, 1, 8, 14, 30))
        calendar.add_component(event)

        feed = calendar.to_ical().decode("utf-8")
        occurrences = parser.parse(feed, "Work", RANGE_START, RANGE_END)

        assert len(occurrences) == 1
        assert occurrences[0].id == "review-2025@example.com"
        assert occurrences[0].title == title
        assert occurrences[0].start == datetime(2025, 1, 8, 13, tzinfo=UTC)
        assert occurrences[0].end == datetime(2025, 1, 8, 14, 30, tzinfo=UTC)
