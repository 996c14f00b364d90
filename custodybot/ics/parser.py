"""Best-effort iCalendar text decoder.

The decoder is a small line scanner rather than a full RFC 5545 parser:
third-party exports are frequently imperfect, and one bad VEVENT must never
sink the rest of a calendar. Blocks that cannot be decoded are dropped and
counted in the parse result.
"""

import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional, Union

from icalendar import vDuration

from ..models import WEEKDAY_INDEX
from ..utils.helpers import UTC
from .exceptions import ICSParseError
from .models import ICSParseResult, NormalizedCalendarEvent, RecurrenceFrequency, RecurrenceRule

logger = logging.getLogger(__name__)

_DATETIME_RE = re.compile(r"^(\d{4})(\d{2})(\d{2})(?:T(\d{2})(\d{2})(\d{2})(Z?))?$")
_TEXT_ESCAPE_RE = re.compile(r"\\([\\;,nN])")

_SUPPORTED_FREQUENCIES = {freq.value for freq in RecurrenceFrequency}


@dataclass
class ICSProperty:
    """A single content line split into name, parameters and raw value."""

    name: str
    value: str
    params: dict[str, str] = field(default_factory=dict)


def unescape_text(value: str) -> str:
    """Undo TEXT escaping (backslash, semicolon, comma and newline)."""

    def _replace(match: re.Match) -> str:
        char = match.group(1)
        return "\n" if char in "nN" else char

    return _TEXT_ESCAPE_RE.sub(_replace, value)


def _split_outside_quotes(text: str, separator: str, maxsplit: int = -1) -> list[str]:
    """Split on ``separator`` while ignoring separators inside double quotes."""
    parts: list[str] = []
    current: list[str] = []
    in_quotes = False
    for char in text:
        if char == '"':
            in_quotes = not in_quotes
        if char == separator and not in_quotes and (maxsplit < 0 or len(parts) < maxsplit):
            parts.append("".join(current))
            current = []
            continue
        current.append(char)
    parts.append("".join(current))
    return parts


class ICSParser:
    """Decode raw ICS text into normalized calendar events."""

    def decode(self, raw_text: Union[str, bytes, None]) -> list[NormalizedCalendarEvent]:
        """Decode ICS text into events, in document order.

        Never raises for malformed input; returns an empty list when nothing
        usable is found.
        """
        return self.parse(raw_text).events

    def parse(self, raw_text: Union[str, bytes, None]) -> ICSParseResult:
        """Decode ICS text and report statistics about dropped blocks.

        Args:
            raw_text: Full contents of an ``.ics`` resource

        Returns:
            Parse result with the surviving events, counts and warnings
        """
        result = ICSParseResult()

        if isinstance(raw_text, bytes):
            raw_text = raw_text.decode("utf-8", errors="replace")

        if not raw_text or not raw_text.strip():
            logger.warning("Empty ICS content provided")
            return result

        lines = self._unfold_lines(raw_text)

        for block in self._iter_event_blocks(lines, result):
            try:
                event = self._parse_event_block(block)
            except Exception as e:
                warning = f"Failed to parse event: {e}"
                result.warnings.append(warning)
                logger.warning(warning)
                event = None

            if event is None:
                result.skipped_blocks += 1
                continue

            result.events.append(event)
            if event.is_recurring:
                result.recurring_event_count += 1

        logger.debug(
            f"Decoded {len(result.events)} events from {result.total_blocks} VEVENT blocks "
            f"({result.skipped_blocks} skipped, {result.recurring_event_count} recurring)"
        )
        return result

    def _unfold_lines(self, text: str) -> list[str]:
        """Normalize line endings and join folded continuation lines."""
        text = text.replace("\r\n", "\n").replace("\r", "\n")
        lines: list[str] = []
        for line in text.split("\n"):
            if line.startswith((" ", "\t")) and lines:
                lines[-1] += line[1:]
            else:
                lines.append(line)
        return lines

    def _iter_event_blocks(self, lines: list[str], result: ICSParseResult) -> Iterator[list[str]]:
        """Yield the property lines of each well-formed VEVENT block.

        A ``BEGIN:VEVENT`` seen while a block is still open discards the open
        block. Properties of nested components (VALARM and friends) are left
        out of the block.
        """
        in_event = False
        nested_depth = 0
        current: list[str] = []

        for line in lines:
            marker = line.strip().upper()

            if marker == "BEGIN:VEVENT":
                result.total_blocks += 1
                if in_event:
                    self._discard_block(result, "Nested or unterminated VEVENT discarded")
                in_event = True
                nested_depth = 0
                current = []
                continue

            if marker == "END:VEVENT":
                if in_event and nested_depth == 0:
                    yield current
                elif in_event:
                    self._discard_block(result, "VEVENT closed inside a nested component")
                in_event = False
                current = []
                continue

            if not in_event:
                self._read_calendar_property(line, result)
                continue

            if marker.startswith("BEGIN:"):
                nested_depth += 1
            elif marker.startswith("END:"):
                nested_depth = max(0, nested_depth - 1)
            elif nested_depth == 0 and line.strip():
                current.append(line)

        if in_event:
            self._discard_block(result, "Incomplete event at end of file")

    def _discard_block(self, result: ICSParseResult, reason: str) -> None:
        result.skipped_blocks += 1
        result.warnings.append(reason)
        logger.warning(reason)

    def _read_calendar_property(self, line: str, result: ICSParseResult) -> None:
        prop = self.parse_property(line)
        if prop and prop.name == "X-WR-CALNAME" and result.calendar_name is None:
            result.calendar_name = unescape_text(prop.value).strip() or None

    def parse_property(self, line: str) -> Optional[ICSProperty]:
        """Split a content line into name, parameters and value.

        ``DTSTART;TZID=Europe/London:20250310T090000`` yields name ``DTSTART``,
        params ``{"TZID": "Europe/London"}`` and value ``20250310T090000``.
        """
        head_and_value = _split_outside_quotes(line, ":", maxsplit=1)
        if len(head_and_value) != 2:
            return None

        head, value = head_and_value
        segments = _split_outside_quotes(head, ";")
        name = segments[0].strip().upper()
        if not name:
            return None

        params: dict[str, str] = {}
        for segment in segments[1:]:
            if "=" not in segment:
                continue
            key, param_value = segment.split("=", 1)
            params[key.strip().upper()] = param_value.strip().strip('"')

        return ICSProperty(name=name, value=value.strip(), params=params)

    def _parse_event_block(self, lines: list[str]) -> Optional[NormalizedCalendarEvent]:
        """Build an event from the property lines of one VEVENT block."""
        props: dict[str, ICSProperty] = {}
        for line in lines:
            prop = self.parse_property(line)
            # First occurrence wins, matching how the properties are read elsewhere
            if prop is not None and prop.name not in props:
                props[prop.name] = prop

        summary = props.get("SUMMARY")
        title = unescape_text(summary.value).strip() if summary else ""
        if not title:
            logger.debug("VEVENT without SUMMARY skipped")
            return None

        dtstart = props.get("DTSTART")
        if dtstart is None:
            logger.debug(f"Event '{title}' missing DTSTART, skipping")
            return None

        start_time, is_all_day = self.parse_datetime(dtstart.value, dtstart.params)
        end_time = self._resolve_end_time(props, start_time, is_all_day)

        rule = None
        rrule_prop = props.get("RRULE")
        if rrule_prop is not None:
            rule = self.parse_rrule(rrule_prop.value)
            if rule is None:
                logger.warning(
                    f"Unsupported RRULE '{rrule_prop.value}' on '{title}', treating as single event"
                )

        return NormalizedCalendarEvent(
            title=title,
            description=self._text_value(props.get("DESCRIPTION")),
            location=self._text_value(props.get("LOCATION")),
            start_time=start_time,
            end_time=end_time,
            is_all_day=is_all_day,
            external_id=self._text_value(props.get("UID")),
            is_recurring=rule is not None,
            recurrence_rule=rule,
        )

    def _resolve_end_time(
        self, props: dict[str, ICSProperty], start_time: datetime, is_all_day: bool
    ) -> Optional[datetime]:
        dtend = props.get("DTEND")
        if dtend is not None:
            try:
                end_time, _ = self.parse_datetime(dtend.value, dtend.params)
                return end_time
            except ICSParseError as e:
                logger.warning(f"Ignoring DTEND: {e}")

        duration = props.get("DURATION")
        if duration is not None:
            try:
                return start_time + vDuration.from_ical(duration.value)
            except ValueError:
                logger.debug(f"Ignoring invalid DURATION '{duration.value}'")

        if is_all_day:
            return start_time + timedelta(days=1)
        return None

    def _text_value(self, prop: Optional[ICSProperty]) -> Optional[str]:
        if prop is None:
            return None
        text = unescape_text(prop.value).strip()
        return text or None

    def parse_datetime(
        self, value: str, params: Optional[dict[str, str]] = None
    ) -> tuple[datetime, bool]:
        """Parse a DATE or DATE-TIME value.

        ``20250310T090000Z`` becomes an aware UTC datetime, ``20250310T090000``
        a floating (naive) one; TZID parameters are not resolved. Date-only
        values become floating midnight and are flagged as all-day.

        Returns:
            Tuple of (datetime, is_all_day)

        Raises:
            ICSParseError: If the value is not a recognizable date or date-time
        """
        match = _DATETIME_RE.match(value.strip())
        if not match:
            raise ICSParseError(f"Unrecognized date-time value: {value!r}", component="DATE-TIME")

        year, month, day, hour, minute, second, zulu = match.groups()
        try:
            if hour is None:
                return datetime(int(year), int(month), int(day)), True

            dt = datetime(int(year), int(month), int(day), int(hour), int(minute), int(second))
        except ValueError as e:
            raise ICSParseError(f"Invalid date-time value: {value!r}", component="DATE-TIME") from e

        if zulu:
            dt = dt.replace(tzinfo=UTC)
        elif params and params.get("VALUE", "").upper() == "DATE":
            return dt, True
        return dt, False

    def parse_rrule(self, value: str) -> Optional[RecurrenceRule]:
        """Parse an RRULE value such as ``FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR``.

        Unknown components are ignored, invalid numbers fall back to defaults.

        Returns:
            Structured rule, or None when FREQ is missing or unsupported
        """
        components: dict[str, str] = {}
        for part in value.split(";"):
            if "=" not in part:
                continue
            key, part_value = part.split("=", 1)
            components[key.strip().upper()] = part_value.strip()

        frequency = components.get("FREQ", "").upper()
        if frequency not in _SUPPORTED_FREQUENCIES:
            return None

        rule_data: dict = {"frequency": frequency}

        interval = self._positive_int(components.get("INTERVAL"))
        if interval is not None:
            rule_data["interval"] = interval

        count = self._positive_int(components.get("COUNT"))
        if count is not None:
            rule_data["count"] = count

        if "BYDAY" in components:
            # Ordinal prefixes ("1MO", "-1FR") are reduced to the weekday code
            by_day = []
            for token in components["BYDAY"].split(","):
                token = token.strip().upper()
                code = token[-2:]
                if code not in WEEKDAY_INDEX:
                    continue
                if token != code:
                    logger.warning(
                        f"Ordinal BYDAY '{token}' not supported, expanding every {code} instead"
                    )
                if code not in by_day:
                    by_day.append(code)
            rule_data["by_day"] = by_day

        week_start = components.get("WKST", "").upper()
        if week_start in WEEKDAY_INDEX:
            rule_data["week_start"] = week_start

        if "UNTIL" in components:
            try:
                rule_data["until"], _ = self.parse_datetime(components["UNTIL"])
            except ICSParseError:
                logger.debug(f"Ignoring invalid UNTIL '{components['UNTIL']}'")

        return RecurrenceRule(**rule_data)

    def _positive_int(self, value: Optional[str]) -> Optional[int]:
        if value is None:
            return None
        try:
            number = int(value)
        except ValueError:
            return None
        return number if number >= 1 else None
