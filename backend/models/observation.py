"""
Observation Models

The uniform record the advice engine reasons about. Fishery-wide reports and
a user's diary-derived reports are both normalized into ``Observation`` at the
aggregation boundary, so nothing downstream ever branches on source schema or
on null-vs-empty categorical arrays.
"""

from datetime import date
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class WeatherCovariates(BaseModel):
    """Weekly weather means recorded alongside a report (all optional)."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    temp: Optional[float] = None
    wind_speed: Optional[float] = Field(default=None, description="Mean wind speed, m/s")
    precipitation: Optional[float] = Field(default=None, description="Weekly total, mm")
    pressure: Optional[float] = None
    humidity: Optional[float] = None


class Observation(BaseModel):
    """One dated historical fishing outcome at a venue."""

    # Postgres double precision can hold Infinity and NaN; neither is a catch rate
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    venue: str = Field(..., min_length=1)
    observed_date: date
    is_personal: bool = False
    catch_rate: Optional[float] = Field(default=None, ge=0)
    methods: Tuple[str, ...] = ()
    flies: Tuple[str, ...] = ()
    spots: Tuple[str, ...] = ()
    weather_covariates: WeatherCovariates = Field(default_factory=WeatherCovariates)

    @field_validator("methods", "flies", "spots", mode="before")
    @classmethod
    def null_to_empty(cls, v):
        """A missing categorical array is an empty one"""
        if v is None:
            return ()
        if isinstance(v, str):
            return (v,)
        return tuple(str(item) for item in v if item is not None)

    @property
    def has_catch_rate(self) -> bool:
        """True when this observation can feed the rod-average predictor"""
        return self.catch_rate is not None and self.catch_rate > 0
