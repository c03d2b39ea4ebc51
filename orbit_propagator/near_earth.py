"""
Near-Earth Secular Model

One-time initialization shared by SGP4 and SDP4: recovery of the original mean
motion and semi-major axis from the element set, the atmospheric drag
coefficients and the J2/J4 secular rates. This module also holds the SGP4
secular update used for orbits with periods under 225 minutes.

For perigee heights below 156 km the density reference altitude s* is moved
down with the perigee. At or below 98 km it is held at 20 km, and the session
reports a DecayedOrbit warning.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3, sections
    on SGP4 and SDP4.
"""

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

from orbit_propagator.constants import (
    AE,
    CK2,
    CK4,
    DEEP_SPACE_PERIOD_MIN,
    MIN_ECCENTRICITY_FOR_DRAG_TERMS,
    PERIGEE_CLAMP_KM,
    PERIGEE_FLOOR_KM,
    QO,
    QOMS2T,
    S,
    S4_FLOOR_KM,
    SIMPLE_DRAG_PERIGEE_KM,
    SINGULAR_DENOMINATOR,
    SO,
    TOTHRD,
    TWOPI,
    XJ3,
    XKE,
    XKMPER,
)
from orbit_propagator.elements import WorkingElements
from orbit_propagator.kepler import MeanElements

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedSecularConstants:
    """Quantities computed once per element set and read on every query."""

    # recovered mean motion and semi-major axis
    xnodp: float
    aodp: float
    perigee_km: float
    s4: float
    qoms24: float
    drag_floor_engaged: bool

    # epoch inclination and eccentricity functions
    cosio: float
    sinio: float
    theta2: float
    x3thm1: float
    x1mth2: float
    x7thm1: float
    eosq: float
    betao: float
    betao2: float
    sing: float
    cosg: float

    # drag
    eta: float
    c1: float
    c2: float
    c3: float
    c4: float
    c5: float
    d2: float
    d3: float
    d4: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    omgcof: float
    xmcof: float
    delmo: float
    sinmo: float
    xnodcf: float

    # secular rates (rad/min)
    xmdot: float
    omgdot: float
    xnodot: float

    # long period
    xlcof: float
    aycof: float

    isimp: bool
    deep_space: bool

    @property
    def period_minutes(self) -> float:
        return TWOPI / self.xnodp


class SecularDrift(NamedTuple):
    """Gravity and first-order drag drift at a query time."""

    xmdf: float
    omgadf: float
    xnode: float
    tempa: float
    tempe: float
    templ: float


def initialize(w: WorkingElements) -> DerivedSecularConstants:
    """
    Derive the secular constants for an element set.

    Args:
        w: Element set in working units

    Returns:
        DerivedSecularConstants
    """
    eo = w.eo

    # Recover original mean motion (xnodp) and semimajor axis (aodp)
    a1 = (XKE / w.xno) ** TOTHRD
    cosio = math.cos(w.xincl)
    theta2 = cosio * cosio
    x3thm1 = 3.0 * theta2 - 1.0
    eosq = eo * eo
    betao2 = 1.0 - eosq
    betao = math.sqrt(betao2)
    del1 = 1.5 * CK2 * x3thm1 / (a1 * a1 * betao * betao2)
    ao = a1 * (1.0 - del1 * (0.5 * TOTHRD + del1 * (1.0 + 134.0 / 81.0 * del1)))
    delo = 1.5 * CK2 * x3thm1 / (ao * ao * betao * betao2)
    xnodp = w.xno / (1.0 + delo)
    aodp = ao / (1.0 - delo)

    # Perigee below 220 km: truncated drag equations
    isimp = (aodp * (1.0 - eo) / AE) < (SIMPLE_DRAG_PERIGEE_KM / XKMPER + AE)

    # Perigee below 156 km: alter s and qoms2t
    s4 = S
    qoms24 = QOMS2T
    drag_floor_engaged = False
    perige = (aodp * (1.0 - eo) - AE) * XKMPER
    if perige < PERIGEE_CLAMP_KM:
        s4 = perige - SO
        if perige <= PERIGEE_FLOOR_KM:
            s4 = S4_FLOOR_KM
            drag_floor_engaged = True
        qoms24 = (QO - s4) * AE / XKMPER
        qoms24 *= qoms24
        qoms24 *= qoms24
        s4 = s4 / XKMPER + AE

    pinvsq = 1.0 / (aodp * aodp * betao2 * betao2)
    sing = math.sin(w.omegao)
    cosg = math.cos(w.omegao)
    tsi = 1.0 / (aodp - s4)
    eta = aodp * eo * tsi
    etasq = eta * eta
    eeta = eo * eta
    psisq = abs(1.0 - etasq)
    coef = qoms24 * tsi * tsi * tsi * tsi
    coef1 = coef / psisq**3.5
    c2 = coef1 * xnodp * (
        aodp * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
        + 0.75 * CK2 * tsi / psisq * x3thm1 * (8.0 + 3.0 * etasq * (8.0 + etasq))
    )
    c1 = w.bstar * c2
    sinio = math.sin(w.xincl)
    a3ovk2 = -XJ3 / CK2 * AE * AE * AE
    x1mth2 = 1.0 - theta2
    c4 = 2.0 * xnodp * coef1 * aodp * betao2 * (
        eta * (2.0 + 0.5 * etasq)
        + eo * (0.5 + 2.0 * etasq)
        - 2.0 * CK2 * tsi / (aodp * psisq) * (
            -3.0 * x3thm1 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
            + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * w.omegao)
        )
    )
    c5 = 2.0 * coef1 * aodp * betao2 * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

    theta4 = theta2 * theta2
    temp1 = 3.0 * CK2 * pinvsq * xnodp
    temp2 = temp1 * CK2 * pinvsq
    temp3 = 1.25 * CK4 * pinvsq * pinvsq * xnodp
    xmdot = (
        xnodp
        + 0.5 * temp1 * betao * x3thm1
        + 0.0625 * temp2 * betao * (13.0 - 78.0 * theta2 + 137.0 * theta4)
    )
    x1m5th = 1.0 - 5.0 * theta2
    omgdot = (
        -0.5 * temp1 * x1m5th
        + 0.0625 * temp2 * (7.0 - 114.0 * theta2 + 395.0 * theta4)
        + temp3 * (3.0 - 36.0 * theta2 + 49.0 * theta4)
    )
    xhdot1 = -temp1 * cosio
    xnodot = xhdot1 + (0.5 * temp2 * (4.0 - 19.0 * theta2) + 2.0 * temp3 * (3.0 - 7.0 * theta2)) * cosio

    # c3 and xmcof divide by the eccentricity
    if eo > MIN_ECCENTRICITY_FOR_DRAG_TERMS:
        c3 = coef * tsi * a3ovk2 * xnodp * AE * sinio / eo
        xmcof = -TOTHRD * coef * w.bstar * AE / eeta
    else:
        c3 = 0.0
        xmcof = 0.0
    omgcof = w.bstar * c3 * math.cos(w.omegao)
    xnodcf = 3.5 * betao2 * xhdot1 * c1
    t2cof = 1.5 * c1

    denom = 1.0 + cosio
    if abs(denom) < SINGULAR_DENOMINATOR:
        denom = SINGULAR_DENOMINATOR
    xlcof = 0.125 * a3ovk2 * sinio * (3.0 + 5.0 * cosio) / denom
    aycof = 0.25 * a3ovk2 * sinio
    delmo = (1.0 + eta * math.cos(w.xmo)) ** 3
    sinmo = math.sin(w.xmo)
    x7thm1 = 7.0 * theta2 - 1.0

    d2 = d3 = d4 = t3cof = t4cof = t5cof = 0.0
    if not isimp:
        c1sq = c1 * c1
        d2 = 4.0 * aodp * tsi * c1sq
        temp = d2 * tsi * c1 / 3.0
        d3 = (17.0 * aodp + s4) * temp
        d4 = 0.5 * temp * aodp * tsi * (221.0 * aodp + 31.0 * s4) * c1
        t3cof = d2 + 2.0 * c1sq
        t4cof = 0.25 * (3.0 * d3 + c1 * (12.0 * d2 + 10.0 * c1sq))
        t5cof = 0.2 * (3.0 * d4 + 12.0 * c1 * d3 + 6.0 * d2 * d2 + 15.0 * c1sq * (2.0 * d2 + c1sq))

    deep_space = TWOPI / xnodp >= DEEP_SPACE_PERIOD_MIN

    logger.debug(
        f"Secular init: aodp={aodp:.6f} ER, perigee={perige:.1f} km, "
        f"period={TWOPI / xnodp:.2f} min, {'deep-space' if deep_space else 'near-earth'}"
    )

    return DerivedSecularConstants(
        xnodp=xnodp, aodp=aodp, perigee_km=perige, s4=s4, qoms24=qoms24,
        drag_floor_engaged=drag_floor_engaged,
        cosio=cosio, sinio=sinio, theta2=theta2, x3thm1=x3thm1, x1mth2=x1mth2,
        x7thm1=x7thm1, eosq=eosq, betao=betao, betao2=betao2, sing=sing, cosg=cosg,
        eta=eta, c1=c1, c2=c2, c3=c3, c4=c4, c5=c5, d2=d2, d3=d3, d4=d4,
        t2cof=t2cof, t3cof=t3cof, t4cof=t4cof, t5cof=t5cof,
        omgcof=omgcof, xmcof=xmcof, delmo=delmo, sinmo=sinmo, xnodcf=xnodcf,
        xmdot=xmdot, omgdot=omgdot, xnodot=xnodot,
        xlcof=xlcof, aycof=aycof,
        isimp=isimp, deep_space=deep_space,
    )


def secular_drift(c: DerivedSecularConstants, w: WorkingElements, tsince: float) -> SecularDrift:
    """Secular gravity and first-order drag, common to both models."""
    xmdf = w.xmo + c.xmdot * tsince
    omgadf = w.omegao + c.omgdot * tsince
    xnoddf = w.xnodeo + c.xnodot * tsince
    tsq = tsince * tsince
    xnode = xnoddf + c.xnodcf * tsq
    tempa = 1.0 - c.c1 * tsince
    tempe = w.bstar * c.c4 * tsince
    templ = c.t2cof * tsq
    return SecularDrift(xmdf, omgadf, xnode, tempa, tempe, templ)


def mean_elements(c: DerivedSecularConstants, w: WorkingElements, tsince: float) -> MeanElements:
    """SGP4 mean elements at ``tsince`` minutes from epoch."""
    drift = secular_drift(c, w, tsince)
    xmp = drift.xmdf
    omega = drift.omgadf
    tempa, tempe, templ = drift.tempa, drift.tempe, drift.templ

    if not c.isimp:
        delomg = c.omgcof * tsince
        delm = c.xmcof * ((1.0 + c.eta * math.cos(drift.xmdf)) ** 3 - c.delmo)
        temp = delomg + delm
        xmp = drift.xmdf + temp
        omega = drift.omgadf - temp
        tsq = tsince * tsince
        tcube = tsq * tsince
        tfour = tsince * tcube
        tempa = tempa - c.d2 * tsq - c.d3 * tcube - c.d4 * tfour
        tempe = tempe + w.bstar * c.c5 * (math.sin(xmp) - c.sinmo)
        templ = templ + c.t3cof * tcube + tfour * (c.t4cof + tsince * c.t5cof)

    a = c.aodp * tempa * tempa
    e = w.eo - tempe
    xl = xmp + omega + drift.xnode + c.xnodp * templ
    return MeanElements(a=a, e=e, incl=w.xincl, argp=omega, node=drift.xnode, xl=xl)
