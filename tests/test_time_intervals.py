"""
Tests for minute-of-day interval helpers.
"""
import pytest

from shiftplanner.error_handlers.exceptions import InvalidTimeFormatException
from shiftplanner.services.time_intervals import (
    MINUTES_PER_DAY,
    TimeInterval,
    clip,
    minutes_to_time,
    outside_parts,
    overlaps,
    parse_interval,
    to_minutes,
)


@pytest.mark.unit
class TestToMinutes:

    def test_parses_hours_and_minutes(self):
        assert to_minutes('00:00') == 0
        assert to_minutes('09:30') == 570
        assert to_minutes('23:59') == 1439

    @pytest.mark.parametrize('value', ['9:30', '24:00', '12:60', '', 'ab:cd', None, '09:30:00', '09:00\n', ' 09:00', '\u0661\u0662:00'])
    def test_strict_rejects_malformed(self, value):
        with pytest.raises(InvalidTimeFormatException):
            to_minutes(value)

    def test_lenient_returns_zero(self):
        assert to_minutes('nope', strict=False) == 0
        assert to_minutes(None, strict=False) == 0

    def test_error_maps_to_bad_request(self):
        with pytest.raises(InvalidTimeFormatException) as exc_info:
            to_minutes('25:00')
        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict()['error'] == 'InvalidTimeFormat'


@pytest.mark.unit
class TestParseInterval:

    def test_midnight_allowed_as_end(self):
        interval = parse_interval('18:00', '24:00')
        assert interval.end_minute == MINUTES_PER_DAY
        assert interval.end_time == '24:00'

    def test_midnight_not_allowed_as_start(self):
        with pytest.raises(InvalidTimeFormatException):
            parse_interval('24:00', '24:00')

    @pytest.mark.parametrize('start,end', [('10:00', '10:00'), ('22:00', '06:00')])
    def test_rejects_zero_length_and_wraparound(self, start, end):
        with pytest.raises(InvalidTimeFormatException):
            parse_interval(start, end)

    def test_direct_construction_is_validated(self):
        with pytest.raises(InvalidTimeFormatException):
            TimeInterval(600, 540)

    def test_minutes_to_time_bounds(self):
        assert minutes_to_time(0) == '00:00'
        assert minutes_to_time(545) == '09:05'
        with pytest.raises(ValueError):
            minutes_to_time(1441)


@pytest.mark.unit
class TestIntervalArithmetic:

    def test_touching_is_not_overlapping(self):
        morning = parse_interval('09:00', '13:00')
        afternoon = parse_interval('13:00', '17:00')
        assert not overlaps(morning, afternoon)
        assert not overlaps(afternoon, morning)

    def test_partial_overlap(self):
        assert overlaps(parse_interval('09:00', '13:00'), parse_interval('12:00', '16:00'))

    def test_clip_inside_and_disjoint(self):
        opening = parse_interval('09:00', '18:00')
        assert str(clip(parse_interval('08:00', '10:00'), opening)) == '09:00-10:00'
        assert clip(parse_interval('06:00', '09:00'), opening) is None

    def test_outside_parts_both_sides(self):
        opening = parse_interval('09:00', '18:00')
        parts = outside_parts(parse_interval('08:00', '19:00'), opening)
        assert [str(p) for p in parts] == ['08:00-09:00', '18:00-19:00']

    def test_outside_parts_closed_day_is_whole_interval(self):
        interval = parse_interval('10:00', '12:00')
        assert outside_parts(interval, None) == [interval]

    def test_inside_and_outside_reconstruct_interval(self):
        opening = parse_interval('09:00', '18:00')
        for start, end in [('08:00', '10:00'), ('10:00', '12:00'), ('17:00', '20:00'), ('06:00', '08:00')]:
            interval = parse_interval(start, end)
            inside = clip(interval, opening)
            total = sum(p.duration for p in outside_parts(interval, opening))
            total += inside.duration if inside else 0
            assert total == interval.duration
