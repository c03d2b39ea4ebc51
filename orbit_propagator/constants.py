"""
Model Constants

Physical constants and fixed perturbation-theory coefficients used by the
SGP4/SDP4 propagation engine.

The values are the literals of Spacetrack Report #3 (Hoots & Roehrich, 1980),
including its truncated values of pi. They are kept exactly as published
because the reference test vectors depend on them at the last digit. Do not
replace them with ``math.pi`` or with the WGS-72 values of Vallado et al.
(2006).

Units:
    Distances are in Earth radii (AE), times in minutes and angles in radians,
    unless a comment says otherwise.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3:
    Models for Propagation of NORAD Element Sets.
"""

from dataclasses import dataclass

# Gravity model (WGS-72 as used by SR#3)
XKMPER: float = 6378.135  # Earth equatorial radius (km)
AE: float = 1.0  # distance units per Earth radius
XMNPDA: float = 1440.0  # minutes per day
XKE: float = 0.743669161e-1  # sqrt(GM) in (Earth radii)^1.5 / min
XJ2: float = 1.082616e-3  # second zonal harmonic
XJ3: float = -0.253881e-5  # third zonal harmonic
XJ4: float = -1.65597e-6  # fourth zonal harmonic
CK2: float = 0.5 * XJ2 * AE * AE
CK4: float = -0.375 * XJ4 * AE * AE * AE * AE

# Atmospheric density model parameters
QO: float = 120.0  # km
SO: float = 78.0  # km
_QO_MINUS_SO: float = (QO - SO) * AE / XKMPER
QOMS2T: float = (_QO_MINUS_SO * _QO_MINUS_SO) * (_QO_MINUS_SO * _QO_MINUS_SO)
S: float = AE * (1.0 + SO / XKMPER)

# Truncated SR#3 literals
TOTHRD: float = 0.66666667
DE2RA: float = 0.174532925e-1
PI: float = 3.14159265
PIO2: float = 1.57079633
TWOPI: float = 6.2831853
X3PIO2: float = 4.71238898
# Full-precision 2*pi used only by the sidereal-angle computation
TWOPI_SIDEREAL: float = 6.28318530717959

# Kepler solver contract
KEPLER_TOLERANCE: float = 1.0e-6  # rad
KEPLER_MAX_ITERATIONS: int = 10

# Model selection and drag-shape clamp
DEEP_SPACE_PERIOD_MIN: float = 225.0  # orbits at or above this period use SDP4
PERIGEE_CLAMP_KM: float = 156.0
PERIGEE_FLOOR_KM: float = 98.0
S4_FLOOR_KM: float = 20.0
SIMPLE_DRAG_PERIGEE_KM: float = 220.0
MIN_ECCENTRICITY_FOR_DRAG_TERMS: float = 1.0e-4
SINGULAR_DENOMINATOR: float = 1.5e-12

# Lunar/solar periodic terms
PERIODIC_REFRESH_MIN: float = 30.0
LOW_INCLINATION_RAD: float = 0.2  # below this the Lyddane form is used
NODE_DRIFT_CUTOFF_RAD: float = 5.2359877e-2  # 3 degrees

# Solar and lunar orbit geometry
ZCOSIS: float = 0.91744867
ZSINIS: float = 0.39785416
ZSINGS: float = -0.98088458
ZCOSGS: float = 0.1945905

# Resonance
THDT: float = 4.3752691e-3  # Earth rotation rate (rad/min)
STEP: float = 720.0  # integrator step (min)
STEP2: float = 259200.0  # STEP * STEP / 2
SYNCHRONOUS_LOW: float = 0.0034906585  # rad/min
SYNCHRONOUS_HIGH: float = 0.0052359877  # rad/min
HALF_DAY_LOW: float = 8.26e-3  # rad/min
HALF_DAY_HIGH: float = 9.24e-3  # rad/min
HALF_DAY_MIN_ECCENTRICITY: float = 0.5

Q22: float = 1.7891679e-6
Q31: float = 2.1460748e-6
Q33: float = 2.2123015e-7
G22: float = 5.7686396
G32: float = 0.95240898
G44: float = 1.8014998
G52: float = 1.0508330
G54: float = 4.4108898
ROOT22: float = 1.7891679e-6
ROOT32: float = 3.7393792e-7
ROOT44: float = 7.3636953e-9
ROOT52: float = 1.1428639e-7
ROOT54: float = 2.1765803e-9
FASX2: float = 0.13130908
FASX4: float = 2.8843198
FASX6: float = 0.37448087


@dataclass(frozen=True)
class ThirdBodyConstants:
    """Fixed perturbation constants of one perturbing body (Sun or Moon)."""

    name: str
    zn: float  # mean motion (rad/min)
    cc: float  # perturbation coefficient
    ze: float  # orbital eccentricity


SOLAR = ThirdBodyConstants(name="sun", zn=1.19459e-5, cc=2.9864797e-6, ze=0.01675)
LUNAR = ThirdBodyConstants(name="moon", zn=1.5835218e-4, cc=4.7968065e-7, ze=0.05490)
