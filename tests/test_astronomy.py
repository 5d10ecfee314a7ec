"""Tests for spacedash/services/astronomy.py and astronomy_mock.py."""

from __future__ import annotations

import random
from datetime import date

import pytest

from spacedash.schemas.astronomy import AstronomyEvent, PositionQuery, SunEvent
from spacedash.services.astronomy import (
    clamp_coordinates,
    clamp_positions_range,
    normalize_body_events,
    normalize_moon_positions,
    one_year_after,
    parse_row_events,
    parse_table_events,
    resolve_range,
    split_datetime,
)
from spacedash.services.astronomy_mock import (
    MAX_MOCK_DAYS,
    MOON_PHASES,
    PHENOMENA,
    generate_mock_data,
)
from spacedash.services.errors import CredentialsMissing, UpstreamUnavailable

FROM = date(2025, 1, 1)

ECLIPSE_ROWS = {
    "data": {
        "rows": [
            {
                "body": {"id": "sun"},
                "events": [
                    {
                        "type": "total_solar_eclipse",
                        "eventHighlights": {
                            "peak": {"date": "2025-06-01T12:00:00Z"}
                        },
                    }
                ],
            }
        ]
    }
}

SUN_ROWS = {
    "data": {
        "rows": [
            {
                "events": [
                    {
                        "type": "sunrise_sunset",
                        "rise": "2025-01-01T05:48:00Z",
                        "set": "2025-01-01T13:02:30Z",
                    }
                ]
            }
        ]
    }
}

MOON_ROWS = {
    "data": {
        "rows": [
            {
                "date": "2025-01-02T12:00:00Z",
                "positions": [
                    {
                        "date": "2025-01-01T12:00:00Z",
                        "extraInfo": {"phase": {"string": "Waxing Crescent"}},
                    },
                    {"extraInfo": {"phase": {"string": "First Quarter"}}},
                    {"extraInfo": {}},
                ],
            }
        ]
    }
}


class TestShapeDispatch:
    def test_rows_eclipse(self):
        result = normalize_body_events(ECLIPSE_ROWS, "sun", FROM)
        assert result.events == [
            AstronomyEvent(
                date="2025-06-01",
                time="12:00:00",
                type="Total solar eclipse",
                description="Obscuration: N/A",
            )
        ]

    def test_table_shape_is_parsed_like_rows(self):
        table = {
            "data": {
                "table": {
                    "rows": [
                        {
                            "cells": [
                                {
                                    "type": "partial_lunar_eclipse",
                                    "eventHighlights": {
                                        "peak": {"date": "2025-03-14T06:58:00Z"}
                                    },
                                    "extraInfo": {"obscuration": 0.4},
                                }
                            ]
                        }
                    ]
                }
            }
        }
        result = normalize_body_events(table, "moon", FROM)
        assert result.events[0].type == "Partial lunar eclipse"
        assert result.events[0].description == "Obscuration: 0.4"
        assert result.events[0].date == "2025-03-14"

    def test_rows_take_priority_over_table(self):
        both = {
            "data": {
                "rows": [],
                "table": {"rows": [{"cells": [{"type": "total_solar_eclipse"}]}]},
            }
        }
        assert parse_row_events(both) == []
        assert normalize_body_events(both, "sun", FROM).events == []

    def test_unknown_shape_yields_nothing(self):
        assert parse_row_events({"data": {}}) is None
        assert parse_table_events({"data": {}}) is None
        result = normalize_body_events({"unexpected": True}, "sun", FROM)
        assert result.events == []
        assert result.sun == []

    def test_eclipse_without_peak_uses_from_date(self):
        payload = {"data": {"rows": [{"events": [{"type": "annular_solar_eclipse"}]}]}}
        event = normalize_body_events(payload, "sun", FROM).events[0]
        assert (event.date, event.time) == ("2025-01-01", "00:00:00")

    def test_non_eclipse_events_are_skipped(self):
        payload = {"data": {"rows": [{"events": [{"type": "transit"}]}]}}
        assert normalize_body_events(payload, "moon", FROM).events == []

    def test_sunrise_and_sunset(self):
        result = normalize_body_events(SUN_ROWS, "sun", FROM)
        assert result.sun == [
            SunEvent(type="Sunrise", date="2025-01-01", time="05:48:00"),
            SunEvent(type="Sunset", date="2025-01-01", time="13:02:30"),
        ]

    def test_eclipse_entry_with_rise_is_only_an_event(self):
        payload = {
            "data": {
                "rows": [
                    {
                        "events": [
                            {
                                "type": "partial_solar_eclipse",
                                "rise": "2025-03-29T09:00:00Z",
                                "set": "2025-03-29T19:00:00Z",
                            }
                        ]
                    }
                ]
            }
        }
        result = normalize_body_events(payload, "sun", FROM)
        assert [e.type for e in result.events] == ["Partial solar eclipse"]
        assert result.sun == []

    def test_rise_and_set_ignored_for_other_bodies(self):
        assert normalize_body_events(SUN_ROWS, "moon", FROM).sun == []

    def test_peak_with_offset_is_converted_to_utc(self):
        assert split_datetime("2025-06-01T23:30:00-02:00") == ("2025-06-02", "01:30:00")
        assert split_datetime("not a date") is None


class TestMoonPositions:
    def test_rows_shape_uses_row_date_as_fallback(self):
        phases = normalize_moon_positions(MOON_ROWS)
        assert [(p.phase, p.date) for p in phases] == [
            ("Waxing Crescent", "2025-01-01"),
            ("First Quarter", "2025-01-02"),
        ]

    def test_table_shape_uses_peak_date_as_fallback(self):
        table = {
            "data": {
                "table": {
                    "rows": [
                        {
                            "cells": [
                                {
                                    "date": "2025-01-05T12:00:00Z",
                                    "extraInfo": {"phase": {"string": "Full Moon"}},
                                },
                                {
                                    "eventHighlights": {
                                        "peak": {"date": "2025-01-06T03:00:00Z"}
                                    },
                                    "extraInfo": {"phase": {"string": "Waning Gibbous"}},
                                },
                            ]
                        }
                    ]
                }
            }
        }
        phases = normalize_moon_positions(table)
        assert [(p.phase, p.date, p.time) for p in phases] == [
            ("Full Moon", "2025-01-05", "12:00:00"),
            ("Waning Gibbous", "2025-01-06", "03:00:00"),
        ]

    def test_garbage(self):
        assert normalize_moon_positions(None) == []
        assert normalize_moon_positions({"data": {"rows": ["x", {"positions": 3}]}}) == []


class TestMockData:
    def test_three_day_range_shape(self):
        report = generate_mock_data(FROM, date(2025, 1, 3), random.Random(1))

        assert report.mock is True
        assert report.message
        assert len(report.sun) == 6
        sunrises = [e for e in report.sun if e.type == "Sunrise"]
        sunsets = [e for e in report.sun if e.type == "Sunset"]
        assert len(sunrises) == len(sunsets) == 3
        for event in sunrises:
            assert "08:30:00" <= event.time <= "08:59:00"
        for event in sunsets:
            assert "16:00:00" <= event.time <= "16:30:00"

        assert len(report.data) <= 3
        catalog = {name for name, _ in PHENOMENA}
        for event in report.data:
            assert "2025-01-01" <= event.date <= "2025-01-03"
            assert event.type in catalog
            assert "18:00:00" <= event.time <= "23:59:00"

        assert len(report.moon) == 1
        assert report.moon[0].date == "2025-01-01"
        assert report.moon[0].phase in MOON_PHASES

    def test_two_moon_phases_three_days_apart(self):
        report = generate_mock_data(FROM, date(2025, 1, 10), random.Random(2))
        assert [p.date for p in report.moon] == ["2025-01-01", "2025-01-04"]

    def test_one_in_three_events_roughly(self):
        report = generate_mock_data(FROM, date(2025, 12, 31), random.Random(3))
        assert 60 <= len(report.data) <= 190

    def test_single_day(self):
        report = generate_mock_data(FROM, FROM, random.Random(4))
        assert [e.type for e in report.sun] == ["Sunrise", "Sunset"]

    def test_range_ending_on_last_day(self):
        report = generate_mock_data(date(9999, 12, 30), date.max, random.Random(6))
        assert [e.date for e in report.sun] == ["9999-12-30"] * 2 + ["9999-12-31"] * 2
        assert [p.date for p in report.moon] == ["9999-12-30"]

    def test_long_range_is_capped(self):
        report = generate_mock_data(date(1, 1, 1), date.max, random.Random(7))
        assert len(report.sun) == 2 * MAX_MOCK_DAYS
        assert report.sun[-1].date == "0002-01-02"

    def test_response_flags_mock(self):
        body = generate_mock_data(FROM, FROM, random.Random(5)).to_response()
        assert body["ok"] is True
        assert body["mock"] is True
        assert "message" in body


class TestRanges:
    def test_positions_range_is_clamped_to_ten_days(self):
        assert clamp_positions_range(date(2025, 1, 1), date(2025, 3, 1)) == date(
            2025, 1, 11
        )
        assert clamp_positions_range(date(2025, 1, 1), date(2025, 1, 5)) == date(
            2025, 1, 5
        )

    def test_resolve_range_defaults_to_a_year(self):
        assert resolve_range(None, None, today=date(2025, 3, 10)) == (
            date(2025, 3, 10),
            date(2026, 3, 10),
        )
        assert resolve_range(date(2024, 2, 29), None) == (
            date(2024, 2, 29),
            date(2025, 2, 28),
        )

    def test_resolve_range_stops_at_last_representable_day(self):
        assert resolve_range(date(9999, 6, 1), None) == (date(9999, 6, 1), date.max)
        assert one_year_after(date(9999, 12, 31)) == date.max

    def test_positions_range_near_last_day(self):
        assert clamp_positions_range(date(9999, 12, 30), date.max) == date.max

    def test_reversed_range_is_swapped(self):
        assert resolve_range(date(2025, 2, 1), date(2025, 1, 1)) == (
            date(2025, 1, 1),
            date(2025, 2, 1),
        )

    def test_coordinates_are_clamped(self):
        assert clamp_coordinates(123, -500) == (90.0, -180.0)
        assert clamp_coordinates(-91, 181) == (-90.0, 180.0)


class TestAstronomyService:
    @pytest.mark.asyncio
    async def test_missing_credentials_serve_mock_without_network(
        self, services, upstream
    ):
        report = await services.astronomy.get_events(
            55.0, 37.0, FROM, date(2025, 1, 3)
        )
        assert report.mock is True
        assert len(report.sun) == 6
        upstream.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_live_data_is_merged(self, credentialed_settings, build_services, upstream):
        services = build_services(credentialed_settings)
        upstream.ok(
            "/bodies/events/sun",
            {"data": {"rows": ECLIPSE_ROWS["data"]["rows"] + SUN_ROWS["data"]["rows"]}},
        )
        upstream.fail("/bodies/events/moon")
        upstream.ok("/bodies/positions/moon", MOON_ROWS)

        report = await services.astronomy.get_events(
            55.0, 37.0, FROM, date(2025, 1, 3)
        )

        assert report.mock is False
        assert [e.type for e in report.data] == ["Total solar eclipse"]
        assert [e.type for e in report.sun] == ["Sunrise", "Sunset"]
        assert len(report.moon) == 2

    @pytest.mark.asyncio
    async def test_upstream_calls_carry_auth_and_params(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        await services.astronomy.get_events(10.0, 20.0, FROM, date(2025, 3, 1))

        sun_call = upstream.calls_to("/bodies/events/sun")[0]
        assert sun_call.args[1] == {
            "latitude": 10.0,
            "longitude": 20.0,
            "elevation": 0,
            "from_date": "2025-01-01",
            "to_date": "2025-03-01",
            "time": "00:00:00",
            "output": "rows",
        }
        assert sun_call.kwargs["headers"]["Authorization"].startswith("Basic ")
        assert sun_call.kwargs["timeout"] == credentialed_settings.astro_events_timeout

        moon_call = upstream.calls_to("/bodies/positions/moon")[0]
        assert moon_call.args[1]["from_date"] == "2025-01-01"
        assert moon_call.args[1]["to_date"] == "2025-01-11"
        assert moon_call.args[1]["time"] == "12:00:00"

    @pytest.mark.asyncio
    async def test_total_outage_degrades_to_mock(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        upstream.fail("/bodies/events/sun")
        upstream.fail("/bodies/events/moon", status=0)
        upstream.fail("/bodies/positions/moon", status=500)

        report = await services.astronomy.get_events(
            55.0, 37.0, FROM, date(2025, 1, 3)
        )

        assert report.ok is True
        assert report.mock is True
        assert len(upstream.fetch.await_args_list) == 3

    @pytest.mark.asyncio
    async def test_events_are_cached_per_location_and_range(
        self, credentialed_settings, build_services, upstream, fake_clock
    ):
        services = build_services(credentialed_settings)
        upstream.ok("/bodies/events/sun", SUN_ROWS)
        upstream.ok("/bodies/events/moon", {"data": {"rows": []}})
        upstream.ok("/bodies/positions/moon", MOON_ROWS)

        await services.astronomy.get_events(55.0, 37.0, FROM, date(2025, 1, 3))
        await services.astronomy.get_events(55.0, 37.0, FROM, date(2025, 1, 3))
        assert upstream.fetch.await_count == 3

        await services.astronomy.get_events(56.0, 37.0, FROM, date(2025, 1, 3))
        assert upstream.fetch.await_count == 6

        fake_clock.advance(credentialed_settings.astro_events_cache_ttl)
        await services.astronomy.get_events(55.0, 37.0, FROM, date(2025, 1, 3))
        assert upstream.fetch.await_count == 9

    @pytest.mark.asyncio
    async def test_search_filters_events_only(self, services):
        full = await services.astronomy.get_events(
            55.0, 37.0, FROM, date(2025, 3, 31)
        )
        assert full.data
        needle = full.data[0].type.split()[0].upper()

        filtered = await services.astronomy.get_events(
            55.0, 37.0, FROM, date(2025, 3, 31), search=needle
        )

        assert filtered.data
        assert all(
            needle.lower() in (e.type + e.description).lower() for e in filtered.data
        )
        assert filtered.sun == full.sun
        assert filtered.moon == full.moon


class TestPositions:
    PARAMS = PositionQuery(
        latitude=55.0,
        longitude=37.0,
        from_date=date(2025, 1, 1),
        to_date=date(2025, 1, 2),
    )

    @pytest.mark.asyncio
    async def test_missing_credentials_raise(self, services, upstream):
        with pytest.raises(CredentialsMissing):
            await services.astronomy.get_positions(self.PARAMS)
        with pytest.raises(CredentialsMissing):
            await services.astronomy.get_body_positions("moon", self.PARAMS)
        upstream.fetch.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_success_returns_data_and_caches(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        upstream.ok("/bodies/positions", {"data": {"table": {"rows": []}}})

        first = await services.astronomy.get_positions(self.PARAMS)
        second = await services.astronomy.get_positions(self.PARAMS)

        assert first == second == {"table": {"rows": []}}
        assert upstream.fetch.await_count == 1
        call = upstream.fetch.await_args
        assert "output" not in call.args[1]
        assert call.kwargs["timeout"] == credentialed_settings.astro_body_positions_timeout

    @pytest.mark.asyncio
    async def test_body_positions_request_rows(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        upstream.ok("/bodies/positions/mars", {"data": {"rows": [1]}})

        assert await services.astronomy.get_body_positions("mars", self.PARAMS) == {
            "rows": [1]
        }
        assert upstream.fetch.await_args.args[1]["output"] == "rows"

    @pytest.mark.asyncio
    async def test_failure_raises_and_is_not_cached(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        upstream.fail("/bodies/positions", status=401)

        with pytest.raises(UpstreamUnavailable) as exc_info:
            await services.astronomy.get_positions(self.PARAMS)
        assert exc_info.value.status == 401

        upstream.ok("/bodies/positions", {"data": {"ok": 1}})
        assert await services.astronomy.get_positions(self.PARAMS) == {"ok": 1}

    @pytest.mark.asyncio
    async def test_missing_data_key_gives_empty_mapping(
        self, credentialed_settings, build_services, upstream
    ):
        services = build_services(credentialed_settings)
        upstream.ok("/bodies/positions", {"unexpected": True})
        assert await services.astronomy.get_positions(self.PARAMS) == {}
