"""
Orbital Element Sets

Immutable element sets and their conversion into the working units of the
propagator (radians, minutes, Earth radii).

Epochs use the two-line element encoding ``YYDDD.dddddddd``: a two-digit year
(57-99 means 19xx, 00-56 means 20xx) followed by the day of year with its
fraction.
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Sequence

from orbit_propagator.constants import AE, DE2RA, TWOPI, TWOPI_SIDEREAL, XMNPDA
from orbit_propagator.exceptions import InvalidElements

CATALOG_RECORD_LENGTH = 11


class WorkingElements(NamedTuple):
    """Element set in internal units."""

    epoch: float  # YYDDD.dddddddd
    xmo: float  # mean anomaly (rad)
    xnodeo: float  # right ascension of ascending node (rad)
    omegao: float  # argument of perigee (rad)
    eo: float  # eccentricity
    xincl: float  # inclination (rad)
    xno: float  # mean motion (rad/min)
    xndt2o: float  # first derivative of mean motion / 2 (rad/min^2)
    xndd6o: float  # second derivative of mean motion / 6 (rad/min^3)
    bstar: float  # drag term (1/Earth radii)


class EpochSidereal(NamedTuple):
    """Greenwich sidereal angle at epoch and the day count it was derived from."""

    theta: float  # rad, in [0, 2*pi)
    ds50: float  # days since 1950 Jan 0.0 UT


def split_epoch(epoch: float):
    """Return (four-digit year, fractional day of year) for a YYDDD epoch."""
    year = math.floor(epoch / 1000.0)
    day = epoch - 1000.0 * year
    year += 2000 if year < 57 else 1900
    return int(year), day


def epoch_to_julian(epoch: float) -> float:
    """Julian day of a YYDDD epoch."""
    year, day = split_epoch(epoch)
    year -= 1
    jd = (
        5643.5
        - 10000.0
        + day
        + 365.0 * (year - 1985)
        + math.floor(year / 4.0)
        - math.floor(year / 100.0)
        + math.floor(year / 400.0)
        + 306.0
    )
    return jd + 2450000.0


def epoch_sidereal(epoch: float) -> EpochSidereal:
    """
    Greenwich sidereal angle at the element epoch.

    The day count is referenced to 1950 Jan 0.0 and is also the time argument
    of the lunar and solar orbit polynomials.
    """
    yr = int((epoch + 2.0e-7) * 1.0e-3)
    day = epoch - yr * 1.0e3
    if yr < 57:
        yr += 100
    # truncating division, matching the reference day count for years before 1969
    n = int((yr - 69) / 4)
    if yr < 70:
        n = int((yr - 72) / 4)
    ds50 = 7305.0 + 365.0 * (yr - 70) + n + day
    theta = 1.72944494 + 6.3003880987 * ds50
    value = theta - int(theta / TWOPI_SIDEREAL) * TWOPI_SIDEREAL
    if value < 0.0:
        value += TWOPI_SIDEREAL
    return EpochSidereal(value, ds50)


@dataclass(frozen=True)
class ElementSet:
    """
    Mean orbital elements at epoch.

    Angles are in degrees and mean motion in revolutions per day, as they
    appear in element-set catalogs. ``ndot`` and ``nddot`` are the catalog's
    first derivative / 2 and second derivative / 6 of the mean motion
    (rev/day^2, rev/day^3). ``bstar`` is in inverse Earth radii.

    Raises:
        InvalidElements: if any field is non-finite or out of range
    """

    epoch: float
    mean_motion: float
    eccentricity: float
    inclination: float
    raan: float
    arg_perigee: float
    mean_anomaly: float
    ndot: float = 0.0
    nddot: float = 0.0
    bstar: float = 0.0
    satnum: int = 0
    name: str = ""

    def __post_init__(self):
        for field_name in (
            "epoch", "mean_motion", "eccentricity", "inclination", "raan",
            "arg_perigee", "mean_anomaly", "ndot", "nddot", "bstar",
        ):
            value = getattr(self, field_name)
            try:
                finite = math.isfinite(value)
            except TypeError:
                finite = False
            if not finite:
                raise InvalidElements(f"{field_name} must be a finite number, got {value!r}")

        if not 0.0 <= self.eccentricity < 1.0:
            raise InvalidElements(f"eccentricity {self.eccentricity} outside [0, 1)")
        if not 0.0 <= self.inclination <= 180.0:
            raise InvalidElements(f"inclination {self.inclination} deg outside [0, 180]")
        if self.mean_motion <= 0.0:
            raise InvalidElements(f"mean motion {self.mean_motion} rev/day must be positive")
        if self.epoch < 0.0:
            raise InvalidElements(f"epoch {self.epoch} is not a YYDDD value")
        _, day = split_epoch(self.epoch)
        if not 0.0 <= day < 367.0:
            raise InvalidElements(f"epoch day-of-year {day} outside [0, 367)")

    @classmethod
    def from_catalog_record(cls, record: Sequence[float], name: str = "") -> "ElementSet":
        """
        Build an element set from an 11-value numeric catalog record.

        Record layout: catalog number, ndot, nddot, BSTAR * 1e5, inclination,
        RAAN, eccentricity * 1e7, argument of perigee, mean anomaly,
        mean motion (rev/day), epoch (YYDDD.dddddddd).
        """
        if len(record) != CATALOG_RECORD_LENGTH:
            raise InvalidElements(
                f"catalog record needs {CATALOG_RECORD_LENGTH} values, got {len(record)}"
            )
        try:
            values = [float(v) for v in record]
        except (TypeError, ValueError) as e:
            raise InvalidElements(f"catalog record is not numeric: {e}") from e

        return cls(
            epoch=values[10],
            mean_motion=values[9],
            eccentricity=values[6] / 1.0e7,
            inclination=values[4],
            raan=values[5],
            arg_perigee=values[7],
            mean_anomaly=values[8],
            ndot=values[1],
            nddot=values[2],
            bstar=values[3] / AE / 1.0e5,
            satnum=int(values[0]),
            name=name,
        )

    def to_working_units(self) -> WorkingElements:
        """Convert to radians, rad/min and inverse Earth radii."""
        return WorkingElements(
            epoch=self.epoch,
            xmo=self.mean_anomaly * DE2RA,
            xnodeo=self.raan * DE2RA,
            omegao=self.arg_perigee * DE2RA,
            eo=self.eccentricity,
            xincl=self.inclination * DE2RA,
            xno=self.mean_motion * TWOPI / XMNPDA,
            xndt2o=self.ndot * TWOPI / XMNPDA / XMNPDA,
            xndd6o=self.nddot * TWOPI / XMNPDA / XMNPDA / XMNPDA,
            bstar=self.bstar / AE,
        )

    @property
    def epoch_jd(self) -> float:
        return epoch_to_julian(self.epoch)

    @property
    def epoch_datetime(self) -> datetime:
        year, day = split_epoch(self.epoch)
        return datetime(year, 1, 1, tzinfo=timezone.utc) + timedelta(days=day - 1.0)

    @property
    def period_minutes(self) -> float:
        """Keplerian period from the catalog mean motion."""
        return XMNPDA / self.mean_motion

    def minutes_since_epoch(self, jd: float) -> float:
        """Elapsed minutes from epoch to the Julian day ``jd`` (negative before epoch)."""
        return XMNPDA * (jd - self.epoch_jd)
