"""
Kepler Solver and Coordinate Reconstruction

Solves Kepler's equation in its equinoctial form and turns the corrected mean
elements into an inertial position and velocity.

The solver is the fixed-point (Newton) iteration of Spacetrack Report #3,
seeded at the mean argument of latitude. It stops after at most 10 iterations
or when successive estimates agree to 1e-6 rad. The trigonometric values
returned are those of the last estimate that was evaluated. The reconstruction
uses these values, as the published test vectors do.
"""

import math
from typing import NamedTuple

import numpy as np

from orbit_propagator.constants import (
    CK2,
    KEPLER_MAX_ITERATIONS,
    KEPLER_TOLERANCE,
    PI,
    PIO2,
    TWOPI,
    X3PIO2,
    XKE,
)
from orbit_propagator.exceptions import PropagationError


def actan(sinx: float, cosx: float) -> float:
    """Quadrant-resolved arctangent of sinx/cosx, in [0, 2*pi)."""
    if cosx == 0.0:
        if sinx == 0.0:
            return 0.0
        if sinx > 0.0:
            return PIO2
        return X3PIO2
    if cosx > 0.0:
        if sinx == 0.0:
            return 0.0
        if sinx > 0.0:
            return math.atan(sinx / cosx)
        return TWOPI + math.atan(sinx / cosx)
    return PI + math.atan(sinx / cosx)


def fmod2p(x: float) -> float:
    """Reduce an angle to [0, 2*pi) by truncated division."""
    value = x - int(x / TWOPI) * TWOPI
    if value < 0.0:
        value += TWOPI
    return value


class KeplerSolution(NamedTuple):
    """Result of one Kepler solve."""

    epw: float  # final estimate of eccentric anomaly + argument of perigee (rad)
    sin_epw: float  # sine of the last evaluated estimate
    cos_epw: float  # cosine of the last evaluated estimate
    iterations: int
    converged: bool


class MeanElements(NamedTuple):
    """Mean elements at the query time, after secular and lunar/solar corrections."""

    a: float  # semi-major axis (Earth radii)
    e: float
    incl: float  # rad
    argp: float  # rad
    node: float  # rad
    xl: float  # mean longitude (rad)


class OrbitState(NamedTuple):
    """Inertial state in internal units."""

    position: np.ndarray  # Earth radii
    velocity: np.ndarray  # Earth radii per minute
    kepler: KeplerSolution


def solve_kepler(
    capu: float,
    axn: float,
    ayn: float,
    tolerance: float = KEPLER_TOLERANCE,
    max_iterations: int = KEPLER_MAX_ITERATIONS,
) -> KeplerSolution:
    """
    Solve ``capu = E - axn*sin(E) + ayn*cos(E)`` for E.

    Args:
        capu: Mean argument of latitude minus node, reduced to [0, 2*pi)
        axn: e*cos(argument of perigee), including long-period terms
        ayn: e*sin(argument of perigee), including long-period terms
        tolerance: Convergence threshold on successive estimates (rad)
        max_iterations: Iteration cap

    Returns:
        KeplerSolution; ``converged`` is False when the cap was reached first
    """
    if max_iterations < 1:
        raise ValueError("max_iterations must be at least 1")

    temp2 = capu
    epw = capu
    sinepw = cosepw = 0.0
    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        sinepw = math.sin(temp2)
        cosepw = math.cos(temp2)
        temp3 = axn * sinepw
        temp4 = ayn * cosepw
        temp5 = axn * cosepw
        temp6 = ayn * sinepw
        epw = (capu - temp4 + temp3 - temp2) / (1.0 - temp5 - temp6) + temp2
        if abs(epw - temp2) <= tolerance:
            converged = True
            break
        temp2 = epw

    return KeplerSolution(epw, sinepw, cosepw, iterations, converged)


def eccentric_anomaly(
    mean_anomaly: float,
    eccentricity: float,
    tolerance: float = KEPLER_TOLERANCE,
    max_iterations: int = KEPLER_MAX_ITERATIONS,
) -> KeplerSolution:
    """Classical form M = E - e*sin(E), i.e. the equinoctial solve with zero perigee."""
    return solve_kepler(fmod2p(mean_anomaly), eccentricity, 0.0, tolerance, max_iterations)


def reconstruct_state(
    mean: MeanElements,
    consts,
    tolerance: float = KEPLER_TOLERANCE,
    max_iterations: int = KEPLER_MAX_ITERATIONS,
) -> OrbitState:
    """
    Long-period terms, Kepler solve, short-period J2 terms and the rotation
    to the inertial frame.

    ``consts`` supplies the epoch quantities (xlcof, aycof, cosio, sinio,
    x3thm1, x1mth2, x7thm1) from the secular initialization.

    Raises:
        PropagationError: if the perturbed orbit is no longer an ellipse
    """
    a, e = mean.a, mean.e
    if a <= 0.0 or 1.0 - e * e <= 0.0:
        raise PropagationError(f"perturbed elements out of range: a={a!r}, e={e!r}")

    beta = math.sqrt(1.0 - e * e)
    xn = XKE / a**1.5

    # Long period periodics
    axn = e * math.cos(mean.argp)
    temp = 1.0 / (a * beta * beta)
    xll = temp * consts.xlcof * axn
    aynl = temp * consts.aycof
    xlt = mean.xl + xll
    ayn = e * math.sin(mean.argp) + aynl

    capu = fmod2p(xlt - mean.node)
    kep = solve_kepler(capu, axn, ayn, tolerance, max_iterations)
    sinepw, cosepw = kep.sin_epw, kep.cos_epw

    # Short period preliminary quantities
    ecose = axn * cosepw + ayn * sinepw
    esine = axn * sinepw - ayn * cosepw
    elsq = axn * axn + ayn * ayn
    temp = 1.0 - elsq
    pl = a * temp
    r = a * (1.0 - ecose)
    if pl <= 0.0 or r <= 0.0:
        raise PropagationError(f"semi-latus rectum {pl!r} or radius {r!r} is not positive")

    temp1 = 1.0 / r
    rdot = XKE * math.sqrt(a) * esine * temp1
    rfdot = XKE * math.sqrt(pl) * temp1
    temp2 = a * temp1
    betal = math.sqrt(temp)
    temp3 = 1.0 / (1.0 + betal)
    cosu = temp2 * (cosepw - axn + ayn * esine * temp3)
    sinu = temp2 * (sinepw - ayn - axn * esine * temp3)
    u = actan(sinu, cosu)
    sin2u = 2.0 * sinu * cosu
    cos2u = 2.0 * cosu * cosu - 1.0
    temp = 1.0 / pl
    temp1 = CK2 * temp
    temp2 = temp1 * temp

    # Update for short periodics
    rk = r * (1.0 - 1.5 * temp2 * betal * consts.x3thm1) + 0.5 * temp1 * consts.x1mth2 * cos2u
    uk = u - 0.25 * temp2 * consts.x7thm1 * sin2u
    xnodek = mean.node + 1.5 * temp2 * consts.cosio * sin2u
    xinck = mean.incl + 1.5 * temp2 * consts.cosio * consts.sinio * cos2u
    rdotk = rdot - xn * temp1 * consts.x1mth2 * sin2u
    rfdotk = rfdot + xn * temp1 * (consts.x1mth2 * cos2u + 1.5 * consts.x3thm1)

    # Orientation vectors
    sinuk = math.sin(uk)
    cosuk = math.cos(uk)
    sinik = math.sin(xinck)
    cosik = math.cos(xinck)
    sinnok = math.sin(xnodek)
    cosnok = math.cos(xnodek)
    xmx = -sinnok * cosik
    xmy = cosnok * cosik
    ux = xmx * sinuk + cosnok * cosuk
    uy = xmy * sinuk + sinnok * cosuk
    uz = sinik * sinuk
    vx = xmx * cosuk - cosnok * sinuk
    vy = xmy * cosuk - sinnok * sinuk
    vz = sinik * cosuk

    position = np.array([rk * ux, rk * uy, rk * uz])
    velocity = np.array([
        rdotk * ux + rfdotk * vx,
        rdotk * uy + rfdotk * vy,
        rdotk * uz + rfdotk * vz,
    ])
    return OrbitState(position, velocity, kep)
