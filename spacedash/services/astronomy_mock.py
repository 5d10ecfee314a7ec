"""Demo astronomy data used when AstronomyAPI is unavailable or unconfigured."""

from __future__ import annotations

import random
from datetime import date, timedelta

from spacedash.schemas.astronomy import (
    AstronomyEvent,
    AstronomyReport,
    MoonPhase,
    SunEvent,
)

MOCK_MESSAGE = "Demo data (astronomy API unavailable)"

PHENOMENA: tuple[tuple[str, str], ...] = (
    (
        "Mercury greatest elongation",
        "Mercury reaches its greatest angular distance from the Sun",
    ),
    ("Venus-Moon conjunction", "Venus passes close to the Moon"),
    ("Mars at opposition", "Mars is on the opposite side of the Earth from the Sun"),
    ("Jupiter at peak brightness", "Jupiter reaches its maximum brightness"),
    ("Saturn visibility", "Optimal conditions for observing Saturn"),
    ("ISS pass", "The International Space Station is visible to the naked eye"),
)
MOON_PHASES = ("New Moon", "First Quarter", "Full Moon", "Last Quarter")
MOON_PHASE_COUNT = 2
MOON_PHASE_SPACING = timedelta(days=3)
# One year inclusive of both ends, leap years included
MAX_MOCK_DAYS = 367


def _clock(hour: int, minute: int) -> str:
    return f"{hour:02d}:{minute:02d}:00"


def generate_mock_data(
    from_date: date, to_date: date, rng: random.Random | None = None
) -> AstronomyReport:
    """Plausible sun, moon and event listings for every day in ``[from, to]``.

    Ranges longer than ``MAX_MOCK_DAYS`` are cut to their first ``MAX_MOCK_DAYS`` days.
    """
    rng = rng or random.Random()
    events: list[AstronomyEvent] = []
    sun: list[SunEvent] = []
    moon: list[MoonPhase] = []

    days = min((to_date - from_date).days + 1, MAX_MOCK_DAYS)
    for offset in range(days):
        day = (from_date + timedelta(days=offset)).isoformat()
        sun.append(
            SunEvent(type="Sunrise", date=day, time=_clock(8, rng.randint(30, 59)))
        )
        sun.append(
            SunEvent(type="Sunset", date=day, time=_clock(16, rng.randint(0, 30)))
        )
        if rng.randint(0, 2) == 0:
            kind, description = rng.choice(PHENOMENA)
            events.append(
                AstronomyEvent(
                    date=day,
                    time=_clock(rng.randint(18, 23), rng.randint(0, 59)),
                    type=kind,
                    description=description,
                )
            )

    for index in range(MOON_PHASE_COUNT):
        if (to_date - from_date) < MOON_PHASE_SPACING * index:
            break
        moon.append(
            MoonPhase(
                phase=rng.choice(MOON_PHASES),
                date=(from_date + MOON_PHASE_SPACING * index).isoformat(),
                time=_clock(rng.randint(0, 23), rng.randint(0, 59)),
            )
        )

    return AstronomyReport(
        ok=True, data=events, moon=moon, sun=sun, mock=True, message=MOCK_MESSAGE
    )
