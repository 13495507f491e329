"""
Season and Weather Categorization

Buckets a date into a Northern-hemisphere season and an ambient weather
reading into a coarse ``<temp>_<wind>_<precip>`` category. The category is
the lookup key for pre-computed basic advice, so it must always resolve to
some bucket: missing readings fall back to the neutral ``mild_calm_dry``.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

from models.advice import WeatherReading

# Temperature thresholds (Celsius)
COLD_BELOW_C = 8.0
WARM_ABOVE_C = 16.0

# Wind thresholds (mph)
CALM_BELOW_MPH = 10.0
STRONG_ABOVE_MPH = 20.0

# Accumulated precipitation above which conditions count as wet (mm)
WET_ABOVE_MM = 2.0

NEUTRAL_TEMPERATURE = "mild"
NEUTRAL_WIND = "calm"
NEUTRAL_PRECIPITATION = "dry"
NEUTRAL_WEATHER_CATEGORY = f"{NEUTRAL_TEMPERATURE}_{NEUTRAL_WIND}_{NEUTRAL_PRECIPITATION}"

_SEASON_BY_MONTH = {
    12: "winter", 1: "winter", 2: "winter",
    3: "spring", 4: "spring", 5: "spring",
    6: "summer", 7: "summer", 8: "summer",
    9: "autumn", 10: "autumn", 11: "autumn",
}

# Weeks per year used for wrap-around distance between ISO weeks
WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class Conditions:
    """Season and weather bucket for one request"""
    season: str
    weather_category: str


def season_for_date(target_date: date) -> str:
    """Northern-hemisphere meteorological season for a date."""
    return _SEASON_BY_MONTH[target_date.month]


def temperature_band(temp: Optional[float]) -> str:
    if temp is None:
        return NEUTRAL_TEMPERATURE
    if temp < COLD_BELOW_C:
        return "cold"
    if temp > WARM_ABOVE_C:
        return "warm"
    return "mild"


def wind_band(wind_speed_mph: Optional[float]) -> str:
    if wind_speed_mph is None:
        return NEUTRAL_WIND
    if wind_speed_mph < CALM_BELOW_MPH:
        return "calm"
    if wind_speed_mph > STRONG_ABOVE_MPH:
        return "strong"
    return "moderate"


def precipitation_band(precip_mm: Optional[float]) -> str:
    if precip_mm is not None and precip_mm > WET_ABOVE_MM:
        return "wet"
    return "dry"


def categorize_weather(reading: Optional[WeatherReading]) -> str:
    """
    Bucket a weather reading into ``<temp>_<wind>_<precip>``.

    Any component missing from the reading takes its neutral bucket, and a
    missing reading yields ``mild_calm_dry``.
    """
    if reading is None:
        return NEUTRAL_WEATHER_CATEGORY

    return "_".join((
        temperature_band(reading.temp),
        wind_band(reading.wind_speed_mph),
        precipitation_band(reading.precip_mm),
    ))


def categorize(target_date: date, reading: Optional[WeatherReading] = None) -> Conditions:
    """Season and weather category for a request."""
    return Conditions(
        season=season_for_date(target_date),
        weather_category=categorize_weather(reading),
    )


def iso_week(d: date) -> int:
    """ISO-8601 week number (1-53)."""
    return d.isocalendar()[1]


def within_week_window(observed: date, target_week: int, window: int) -> bool:
    """True when ``observed`` falls within ``window`` ISO weeks of ``target_week``, wrapping at year end."""
    diff = abs(iso_week(observed) - target_week)
    return min(diff, WEEKS_PER_YEAR - diff) <= window


def precipitation_category_daily(mm: Optional[float]) -> int:
    """0 dry, 1 light, 2 moderate, 3 heavy for a daily total."""
    if mm is None or mm < 0.5:
        return 0
    if mm < 3:
        return 1
    if mm < 8:
        return 2
    return 3


def precipitation_category_weekly(mm: Optional[float]) -> int:
    """0 dry, 1 light, 2 moderate, 3 heavy for a weekly total."""
    if mm is None or mm < 2:
        return 0
    if mm < 10:
        return 1
    if mm < 25:
        return 2
    return 3


def precipitation_category_hourly(mm: Optional[float]) -> int:
    """0 dry, 1 light, 2 moderate, 3 heavy for an hourly rate."""
    if mm is None or mm < 0.1:
        return 0
    if mm < 1:
        return 1
    if mm < 4:
        return 2
    return 3


_WIND_QUADRANT = {
    "N": "N", "NNE": "N", "NE": "N", "ENE": "E", "E": "E", "ESE": "E",
    "SE": "E", "SSE": "S", "S": "S", "SSW": "S", "SW": "S", "WSW": "W",
    "W": "W", "WNW": "W", "NW": "N", "NNW": "N",
}
WIND_QUADRANTS = ("N", "E", "S", "W")


def wind_quadrant(direction: Optional[str]) -> str:
    """Collapse a 16-point compass direction to N/E/S/W; unknown is N."""
    if not direction:
        return "N"
    return _WIND_QUADRANT.get(direction.strip().upper(), "N")


def quadrant_distance(a: Optional[str], b: Optional[str]) -> int:
    """Quarter-turns between two directions' quadrants (0, 1 or 2)."""
    diff = abs(WIND_QUADRANTS.index(wind_quadrant(a)) - WIND_QUADRANTS.index(wind_quadrant(b)))
    return min(diff, len(WIND_QUADRANTS) - diff)
