"""
Deep-Space Perturbations (SDP4)

Lunar/solar and resonance perturbations for orbits with periods of 225 minutes
or more, in three phases:

- initialization: lunar and solar geometry at epoch, the secular-rate and
  periodic amplitudes of both bodies (one routine, run once per body with its
  constant set), resonance classification and resonance coefficients;
- secular update: luni-solar secular drift plus, for resonant orbits, a
  fixed-step numerical integration of the resonant mean motion and mean
  longitude;
- periodic update: lunar/solar periodic corrections, re-evaluated at most
  every 30 minutes of query time.

The resonance integrator is stateful. It keeps the last full-step point
(time, mean longitude, mean motion) and resumes from there on the next query.
It restarts from epoch when the query time changes sign or when it has not
yet moved away from epoch. When the query is closer to epoch than the
integrator, it steps back towards epoch. See ``IntegratorPhase``.

References:
    Hoots, F. R., & Roehrich, R. L. (1980). Spacetrack Report No. 3,
    subroutines DEEP, DPINIT, DPSEC and DPPER.
"""

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from orbit_propagator.constants import (
    FASX2,
    FASX4,
    FASX6,
    G22,
    G32,
    G44,
    G52,
    G54,
    HALF_DAY_HIGH,
    HALF_DAY_LOW,
    HALF_DAY_MIN_ECCENTRICITY,
    LOW_INCLINATION_RAD,
    LUNAR,
    NODE_DRIFT_CUTOFF_RAD,
    PERIODIC_REFRESH_MIN,
    PI,
    Q22,
    Q31,
    Q33,
    ROOT22,
    ROOT32,
    ROOT44,
    ROOT52,
    ROOT54,
    SOLAR,
    STEP,
    STEP2,
    SYNCHRONOUS_HIGH,
    SYNCHRONOUS_LOW,
    THDT,
    TWOPI,
    ZCOSGS,
    ZCOSIS,
    ZSINGS,
    ZSINIS,
    ThirdBodyConstants,
)
from orbit_propagator.elements import WorkingElements, epoch_sidereal
from orbit_propagator.kepler import actan, fmod2p

logger = logging.getLogger(__name__)

NEVER_EVALUATED = 1.0e20


class ResonanceKind(Enum):
    NONE = "none"
    HALF_DAY = "half-day"
    SYNCHRONOUS = "synchronous"


class IntegratorPhase(Enum):
    """
    States of the resonance integrator.

    NOT_STARTED: no query yet.
    STEPPING_FORWARD: taking full steps away from epoch, towards the target.
    STEPPING_BACKWARD: taking full steps towards epoch because the target is
        closer to epoch than the stored integration time.
    FINAL_STEP: target is within one step; evaluate there without moving the
        stored state.
    """

    NOT_STARTED = "not-started"
    STEPPING_FORWARD = "stepping-forward"
    STEPPING_BACKWARD = "stepping-backward"
    FINAL_STEP = "final-short-step"


def classify_resonance(xnq: float, eq: float) -> ResonanceKind:
    """
    Resonance class from the recovered mean motion (rad/min) and eccentricity.

    Mean motions strictly between 0.0034906585 and 0.0052359877 rad/min
    (periods of roughly 20 to 30 hours) are one-day synchronous. Otherwise the
    orbit is half-day resonant when 8.26e-3 <= n <= 9.24e-3 rad/min and
    e >= 0.5, and non-resonant in every other case.
    """
    if xnq >= SYNCHRONOUS_HIGH or xnq <= SYNCHRONOUS_LOW:
        if xnq < HALF_DAY_LOW or xnq > HALF_DAY_HIGH:
            return ResonanceKind.NONE
        if eq < HALF_DAY_MIN_ECCENTRICITY:
            return ResonanceKind.NONE
        return ResonanceKind.HALF_DAY
    return ResonanceKind.SYNCHRONOUS


class ThirdBodyGeometry(NamedTuple):
    """Orientation of a perturbing body's orbit relative to the satellite's node."""

    zcosg: float
    zsing: float
    zcosi: float
    zsini: float
    zcosh: float
    zsinh: float


class OrbitFactors(NamedTuple):
    """Epoch quantities of the satellite orbit used by the luni-solar terms."""

    eq: float
    eqsq: float
    bsq: float
    rteqsq: float
    siniq: float
    cosiq: float
    sinomo: float
    cosomo: float
    xnoi: float
    xqncl: float


@dataclass(frozen=True)
class ThirdBodyTerms:
    """Secular rates and periodic amplitudes contributed by one body."""

    se: float
    si: float
    sl: float
    sgh: float
    sh: float
    e2: float
    e3: float
    i2: float
    i3: float
    l2: float
    l3: float
    l4: float
    gh2: float
    gh3: float
    gh4: float
    h2: float
    h3: float


def third_body_terms(body: ThirdBodyConstants, geom: ThirdBodyGeometry, orb: OrbitFactors) -> ThirdBodyTerms:
    """Secular and periodic coefficients for one perturbing body."""
    zcosg, zsing, zcosi, zsini, zcosh, zsinh = geom
    cosiq, siniq = orb.cosiq, orb.siniq
    cosomo, sinomo = orb.cosomo, orb.sinomo
    eqsq = orb.eqsq

    a1 = zcosg * zcosh + zsing * zcosi * zsinh
    a3 = -zsing * zcosh + zcosg * zcosi * zsinh
    a7 = -zcosg * zsinh + zsing * zcosi * zcosh
    a8 = zsing * zsini
    a9 = zsing * zsinh + zcosg * zcosi * zcosh
    a10 = zcosg * zsini
    a2 = cosiq * a7 + siniq * a8
    a4 = cosiq * a9 + siniq * a10
    a5 = -siniq * a7 + cosiq * a8
    a6 = -siniq * a9 + cosiq * a10

    x1 = a1 * cosomo + a2 * sinomo
    x2 = a3 * cosomo + a4 * sinomo
    x3 = -a1 * sinomo + a2 * cosomo
    x4 = -a3 * sinomo + a4 * cosomo
    x5 = a5 * sinomo
    x6 = a6 * sinomo
    x7 = a5 * cosomo
    x8 = a6 * cosomo

    z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
    z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
    z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
    z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * eqsq
    z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * eqsq
    z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * eqsq
    z11 = -6.0 * a1 * a5 + eqsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
    z12 = -6.0 * (a1 * a6 + a3 * a5) + eqsq * (
        -24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)
    )
    z13 = -6.0 * a3 * a6 + eqsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
    z21 = 6.0 * a2 * a5 + eqsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
    z22 = 6.0 * (a4 * a5 + a2 * a6) + eqsq * (
        24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)
    )
    z23 = 6.0 * a4 * a6 + eqsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
    z1 = z1 + z1 + orb.bsq * z31
    z2 = z2 + z2 + orb.bsq * z32
    z3 = z3 + z3 + orb.bsq * z33

    s3 = body.cc * orb.xnoi
    s2 = -0.5 * s3 / orb.rteqsq
    s4 = s3 * orb.rteqsq
    s1 = -15.0 * orb.eq * s4
    s5 = x1 * x3 + x2 * x4
    s6 = x2 * x3 + x1 * x4
    s7 = x2 * x4 - x1 * x3

    zn, ze = body.zn, body.ze
    se = s1 * zn * s5
    si = s2 * zn * (z11 + z13)
    sl = -zn * s3 * (z1 + z3 - 14.0 - 6.0 * eqsq)
    sgh = s4 * zn * (z31 + z33 - 6.0)
    sh = -zn * s2 * (z21 + z23)
    if orb.xqncl < NODE_DRIFT_CUTOFF_RAD or orb.xqncl > PI - NODE_DRIFT_CUTOFF_RAD:
        sh = 0.0

    return ThirdBodyTerms(
        se=se, si=si, sl=sl, sgh=sgh, sh=sh,
        e2=2.0 * s1 * s6,
        e3=2.0 * s1 * s7,
        i2=2.0 * s2 * z12,
        i3=2.0 * s2 * (z13 - z11),
        l2=-2.0 * s3 * z2,
        l3=-2.0 * s3 * (z3 - z1),
        l4=-2.0 * s3 * (-21.0 - 9.0 * eqsq) * ze,
        gh2=2.0 * s4 * z32,
        gh3=2.0 * s4 * (z33 - z31),
        gh4=-18.0 * s4 * ze,
        h2=-2.0 * s2 * z22,
        h3=-2.0 * s2 * (z23 - z21),
    )


@dataclass(frozen=True)
class ResonanceCoefficients:
    """Coupling coefficients of the resonance integrator (zero where unused)."""

    kind: ResonanceKind
    xlamo: float = 0.0
    xfact: float = 0.0
    xnq: float = 0.0
    omegaq: float = 0.0
    omgdt: float = 0.0
    # synchronous
    del1: float = 0.0
    del2: float = 0.0
    del3: float = 0.0
    # half-day
    d2201: float = 0.0
    d2211: float = 0.0
    d3210: float = 0.0
    d3222: float = 0.0
    d4410: float = 0.0
    d4422: float = 0.0
    d5220: float = 0.0
    d5232: float = 0.0
    d5421: float = 0.0
    d5433: float = 0.0


@dataclass
class ResonanceState:
    """Mutable integrator state, persisted across queries of one session."""

    kind: ResonanceKind
    xli: float = 0.0  # mean longitude at atime (rad)
    xni: float = 0.0  # mean motion at atime (rad/min)
    atime: float = 0.0  # minutes from epoch of the stored point
    phase: IntegratorPhase = IntegratorPhase.NOT_STARTED
    restarts: int = field(default=0, compare=False)

    def restart(self, xlamo: float, xnq: float):
        self.atime = 0.0
        self.xni = xnq
        self.xli = xlamo
        self.restarts += 1


class DeepSecular(NamedTuple):
    xll: float
    omgasm: float
    xnodes: float
    em: float
    xinc: float
    xn: float


class DeepPeriodic(NamedTuple):
    em: float
    xinc: float
    omgasm: float
    xnodes: float
    xll: float


class PeriodicTerms(NamedTuple):
    pe: float
    pinc: float
    pl: float
    pgh: float
    ph: float


def _half_day_coefficients(eq, eqsq, siniq, cosiq, aqnv, xnq):
    eoc = eq * eqsq
    g201 = -0.306 - (eq - 0.64) * 0.440

    if eq <= 0.65:
        g211 = 3.616 - 13.247 * eq + 16.290 * eqsq
        g310 = -19.302 + 117.390 * eq - 228.419 * eqsq + 156.591 * eoc
        g322 = -18.9068 + 109.7927 * eq - 214.6334 * eqsq + 146.5816 * eoc
        g410 = -41.122 + 242.694 * eq - 471.094 * eqsq + 313.953 * eoc
        g422 = -146.407 + 841.880 * eq - 1629.014 * eqsq + 1083.435 * eoc
        g520 = -532.114 + 3017.977 * eq - 5740.0 * eqsq + 3708.276 * eoc
    else:
        g211 = -72.099 + 331.819 * eq - 508.738 * eqsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * eq - 2415.925 * eqsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * eq - 2366.899 * eqsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * eq - 7193.992 * eqsq + 3651.957 * eoc
        g422 = -3581.69 + 16178.11 * eq - 24462.77 * eqsq + 12422.52 * eoc
        if eq <= 0.715:
            g520 = 1464.74 - 4664.75 * eq + 3763.64 * eqsq
        else:
            g520 = -5149.66 + 29936.92 * eq - 54087.36 * eqsq + 31324.56 * eoc

    if eq < 0.7:
        g533 = -919.2277 + 4988.61 * eq - 9064.77 * eqsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * eq - 8491.4146 * eqsq + 5337.524 * eoc
        g532 = -853.666 + 4690.25 * eq - 8624.77 * eqsq + 5341.4 * eoc
    else:
        g533 = -37995.78 + 161616.52 * eq - 229838.2 * eqsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * eq - 309468.16 * eqsq + 146349.42 * eoc
        g532 = -40023.88 + 170470.89 * eq - 242699.48 * eqsq + 115605.82 * eoc

    cosq2 = cosiq * cosiq
    sini2 = siniq * siniq
    f220 = 0.75 * (1.0 + 2.0 * cosiq + cosq2)
    f221 = 1.5 * sini2
    f321 = 1.875 * siniq * (1.0 - 2.0 * cosiq - 3.0 * cosq2)
    f322 = -1.875 * siniq * (1.0 + 2.0 * cosiq - 3.0 * cosq2)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * siniq * (
        sini2 * (1.0 - 2.0 * cosiq - 5.0 * cosq2)
        + 0.33333333 * (-2.0 + 4.0 * cosiq + 6.0 * cosq2)
    )
    f523 = siniq * (
        4.92187512 * sini2 * (-2.0 - 4.0 * cosiq + 10.0 * cosq2)
        + 6.56250012 * (1.0 + 2.0 * cosiq - 3.0 * cosq2)
    )
    f542 = 29.53125 * siniq * (2.0 - 8.0 * cosiq + cosq2 * (-12.0 + 8.0 * cosiq + 10.0 * cosq2))
    f543 = 29.53125 * siniq * (-2.0 - 8.0 * cosiq + cosq2 * (12.0 + 8.0 * cosiq - 10.0 * cosq2))

    xno2 = xnq * xnq
    ainv2 = aqnv * aqnv
    temp1 = 3.0 * xno2 * ainv2
    temp = temp1 * ROOT22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aqnv
    temp = 2.0 * temp1 * ROOT44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aqnv
    temp = temp1 * ROOT52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * ROOT54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533

    return dict(
        d2201=d2201, d2211=d2211, d3210=d3210, d3222=d3222, d4410=d4410,
        d4422=d4422, d5220=d5220, d5232=d5232, d5421=d5421, d5433=d5433,
    )


def _synchronous_coefficients(eqsq, siniq, cosiq, aqnv, xnq):
    g200 = 1.0 + eqsq * (-2.5 + 0.8125 * eqsq)
    g310 = 1.0 + 2.0 * eqsq
    g300 = 1.0 + eqsq * (-6.0 + 6.60937 * eqsq)
    f220 = 0.75 * (1.0 + cosiq) * (1.0 + cosiq)
    f311 = 0.9375 * siniq * siniq * (1.0 + 3.0 * cosiq) - 0.75 * (1.0 + cosiq)
    f330 = 1.0 + cosiq
    f330 = 1.875 * f330 * f330 * f330
    del1 = 3.0 * xnq * xnq * aqnv * aqnv
    del2 = 2.0 * del1 * f220 * g200 * Q22
    del3 = 3.0 * del1 * f330 * g300 * Q33 * aqnv
    del1 = del1 * f311 * g310 * Q31 * aqnv
    return dict(del1=del1, del2=del2, del3=del3)


class DeepSpaceEngine:
    """
    Deep-space perturbations for one element set.

    Created once per session; ``secular`` and ``periodic`` are then called on
    every query. Not thread-safe: both mutate the engine (integrator state and
    periodic cache).
    """

    def __init__(self, w: WorkingElements, consts):
        self.elements = w
        self.consts = consts

        sidereal = epoch_sidereal(w.epoch)
        self.thgr = sidereal.theta
        self.ds50 = sidereal.ds50

        eq = w.eo
        xnq = consts.xnodp
        aqnv = 1.0 / consts.aodp
        self.xqncl = w.xincl
        self.siniq = consts.sinio
        self.cosiq = consts.cosio
        sinq = math.sin(w.xnodeo)
        cosq = math.cos(w.xnodeo)

        # Lunar and solar orbit geometry at epoch
        day = self.ds50 + 18261.5
        xnodce = 4.5236020 - 9.2422029e-4 * day
        stem = math.sin(xnodce)
        ctem = math.cos(xnodce)
        zcosil = 0.91375164 - 0.03568096 * ctem
        zsinil = math.sqrt(1.0 - zcosil * zcosil)
        zsinhl = 0.089683511 * stem / zsinil
        zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
        c = 4.7199672 + 0.22997150 * day
        gam = 5.8351514 + 0.0019443680 * day
        self.zmol = fmod2p(c - gam)
        zx = 0.39785416 * stem / zsinil
        zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
        zx = actan(zx, zy)
        zx = gam + zx - xnodce
        zcosgl = math.cos(zx)
        zsingl = math.sin(zx)
        self.zmos = fmod2p(6.2565837 + 0.017201977 * day)

        orb = OrbitFactors(
            eq=eq, eqsq=consts.eosq, bsq=consts.betao2, rteqsq=consts.betao,
            siniq=self.siniq, cosiq=self.cosiq, sinomo=consts.sing, cosomo=consts.cosg,
            xnoi=1.0 / xnq, xqncl=self.xqncl,
        )
        solar_geom = ThirdBodyGeometry(ZCOSGS, ZSINGS, ZCOSIS, ZSINIS, cosq, sinq)
        lunar_geom = ThirdBodyGeometry(
            zcosgl, zsingl, zcosil, zsinil,
            zcoshl * cosq + zsinhl * sinq,
            sinq * zcoshl - cosq * zsinhl,
        )
        self.solar = third_body_terms(SOLAR, solar_geom, orb)
        self.lunar = third_body_terms(LUNAR, lunar_geom, orb)

        # Combined secular rates
        siniq, cosiq = self.siniq, self.cosiq
        self.sse = self.solar.se
        self.ssi = self.solar.si
        self.ssl = self.solar.sl
        self.ssh = self.solar.sh / siniq if siniq != 0.0 else 0.0
        self.ssg = self.solar.sgh - cosiq * self.ssh
        self.sse = self.sse + self.lunar.se
        self.ssi = self.ssi + self.lunar.si
        self.ssl = self.ssl + self.lunar.sl
        if siniq != 0.0:
            self.ssg = self.ssg + self.lunar.sgh - cosiq / siniq * self.lunar.sh
            self.ssh = self.ssh + self.lunar.sh / siniq
        else:
            self.ssg = self.ssg + self.lunar.sgh

        self.resonance_coefficients = self._resonance_coefficients(w, consts, eq, xnq, aqnv)
        coef = self.resonance_coefficients
        self.resonance = ResonanceState(kind=coef.kind, xli=coef.xlamo, xni=coef.xnq)

        self._savtsn = NEVER_EVALUATED
        self._periodic_terms = PeriodicTerms(0.0, 0.0, 0.0, 0.0, 0.0)

        logger.debug(
            f"Deep-space init: resonance={coef.kind.value}, thgr={self.thgr:.8f}, "
            f"ds50={self.ds50:.8f}"
        )

    def _resonance_coefficients(self, w, consts, eq, xnq, aqnv) -> ResonanceCoefficients:
        kind = classify_resonance(xnq, eq)
        if kind is ResonanceKind.NONE:
            return ResonanceCoefficients(kind=kind, xnq=xnq)

        siniq, cosiq = self.siniq, self.cosiq
        xlldot = consts.xmdot
        if kind is ResonanceKind.HALF_DAY:
            terms = _half_day_coefficients(eq, consts.eosq, siniq, cosiq, aqnv, xnq)
            xlamo = w.xmo + w.xnodeo + w.xnodeo - self.thgr - self.thgr
            bfact = xlldot + consts.xnodot + consts.xnodot - THDT - THDT
            bfact = bfact + self.ssl + self.ssh + self.ssh
        else:
            terms = _synchronous_coefficients(consts.eosq, siniq, cosiq, aqnv, xnq)
            xpidot = consts.omgdot + consts.xnodot
            xlamo = w.xmo + w.xnodeo + w.omegao - self.thgr
            bfact = xlldot + xpidot - THDT
            bfact = bfact + self.ssl + self.ssg + self.ssh

        return ResonanceCoefficients(
            kind=kind,
            xlamo=xlamo,
            xfact=bfact - xnq,
            xnq=xnq,
            omegaq=w.omegao,
            omgdt=consts.omgdot,
            **terms,
        )

    @property
    def kind(self) -> ResonanceKind:
        return self.resonance.kind

    @property
    def periodic_cache_time(self) -> float:
        """Query time of the last periodic-term evaluation (1e20 before the first)."""
        return self._savtsn

    def secular(self, tsince: float, xll: float, omgasm: float, xnodes: float) -> DeepSecular:
        """
        Luni-solar secular drift and resonance integration.

        Args:
            tsince: Minutes from epoch
            xll: Mean anomaly after gravity secular drift (rad)
            omgasm: Argument of perigee after secular drift (rad)
            xnodes: Node after secular drift (rad)

        Returns:
            DeepSecular with the updated elements and mean motion
        """
        w = self.elements
        xll = xll + self.ssl * tsince
        omgasm = omgasm + self.ssg * tsince
        xnodes = xnodes + self.ssh * tsince
        em = w.eo + self.sse * tsince
        xinc = w.xincl + self.ssi * tsince
        if xinc < 0.0:
            xinc = -xinc
            xnodes = xnodes + PI
            omgasm = omgasm - PI

        xn = self.consts.xnodp
        if self.resonance.kind is ResonanceKind.NONE:
            return DeepSecular(xll, omgasm, xnodes, em, xinc, xn)

        xl, xn = self._integrate(tsince)
        temp = -xnodes + self.thgr + tsince * THDT
        if self.resonance.kind is ResonanceKind.SYNCHRONOUS:
            xll = xl - omgasm + temp
        else:
            xll = xl + temp + temp
        return DeepSecular(xll, omgasm, xnodes, em, xinc, xn)

    def _next_transition(self, tsince: float) -> float:
        """Choose the next integrator phase for a query; return the step to take."""
        state = self.resonance
        coef = self.resonance_coefficients

        if (
            state.atime == 0.0
            or (tsince >= 0.0 and state.atime < 0.0)
            or (tsince < 0.0 and state.atime >= 0.0)
        ):
            delt = -STEP if tsince < 0.0 else STEP
            if state.atime != 0.0:
                logger.debug(f"Resonance integrator restart at epoch (query {tsince:.3f} min)")
            state.restart(coef.xlamo, coef.xnq)
            far = abs(tsince - state.atime) >= STEP
            state.phase = IntegratorPhase.STEPPING_FORWARD if far else IntegratorPhase.FINAL_STEP
        elif abs(tsince) >= abs(state.atime):
            delt = STEP if tsince > 0.0 else -STEP
            far = abs(tsince - state.atime) >= STEP
            state.phase = IntegratorPhase.STEPPING_FORWARD if far else IntegratorPhase.FINAL_STEP
        else:
            delt = -STEP if tsince >= 0.0 else STEP
            state.phase = IntegratorPhase.STEPPING_BACKWARD
        return delt

    def _rates(self):
        """Mean motion rate, its derivative and the mean longitude rate at the stored point."""
        state = self.resonance
        coef = self.resonance_coefficients
        xli = state.xli

        if state.kind is ResonanceKind.SYNCHRONOUS:
            xndot = (
                coef.del1 * math.sin(xli - FASX2)
                + coef.del2 * math.sin(2.0 * (xli - FASX4))
                + coef.del3 * math.sin(3.0 * (xli - FASX6))
            )
            xnddt = (
                coef.del1 * math.cos(xli - FASX2)
                + 2.0 * coef.del2 * math.cos(2.0 * (xli - FASX4))
                + 3.0 * coef.del3 * math.cos(3.0 * (xli - FASX6))
            )
        else:
            xomi = coef.omegaq + coef.omgdt * state.atime
            x2omi = xomi + xomi
            x2li = xli + xli
            xndot = (
                coef.d2201 * math.sin(x2omi + xli - G22)
                + coef.d2211 * math.sin(xli - G22)
                + coef.d3210 * math.sin(xomi + xli - G32)
                + coef.d3222 * math.sin(-xomi + xli - G32)
                + coef.d4410 * math.sin(x2omi + x2li - G44)
                + coef.d4422 * math.sin(x2li - G44)
                + coef.d5220 * math.sin(xomi + xli - G52)
                + coef.d5232 * math.sin(-xomi + xli - G52)
                + coef.d5421 * math.sin(xomi + x2li - G54)
                + coef.d5433 * math.sin(-xomi + x2li - G54)
            )
            xnddt = (
                coef.d2201 * math.cos(x2omi + xli - G22)
                + coef.d2211 * math.cos(xli - G22)
                + coef.d3210 * math.cos(xomi + xli - G32)
                + coef.d3222 * math.cos(-xomi + xli - G32)
                + coef.d5220 * math.cos(xomi + xli - G52)
                + coef.d5232 * math.cos(-xomi + xli - G52)
                + 2.0 * (
                    coef.d4410 * math.cos(x2omi + x2li - G44)
                    + coef.d4422 * math.cos(x2li - G44)
                    + coef.d5421 * math.cos(xomi + x2li - G54)
                    + coef.d5433 * math.cos(-xomi + x2li - G54)
                )
            )

        xldot = state.xni + coef.xfact
        xnddt = xnddt * xldot
        return xndot, xnddt, xldot

    def _integrate(self, tsince: float):
        """Run the integrator to ``tsince``; return (mean longitude, mean motion) there."""
        state = self.resonance
        while True:
            delt = self._next_transition(tsince)
            xndot, xnddt, xldot = self._rates()
            if state.phase is IntegratorPhase.FINAL_STEP:
                ft = tsince - state.atime
                xn = state.xni + xndot * ft + xnddt * ft * ft * 0.5
                xl = state.xli + xldot * ft + xndot * ft * ft * 0.5
                return xl, xn
            state.xli = state.xli + xldot * delt + xndot * STEP2
            state.xni = state.xni + xndot * delt + xnddt * STEP2
            state.atime = state.atime + delt

    def _evaluate_periodics(self, tsince: float) -> PeriodicTerms:
        solar = _body_periodics(self.solar, SOLAR, self.zmos, tsince)
        lunar = _body_periodics(self.lunar, LUNAR, self.zmol, tsince)
        return PeriodicTerms(
            pe=solar[0] + lunar[0],
            pinc=solar[1] + lunar[1],
            pl=solar[2] + lunar[2],
            pgh=solar[3] + lunar[3],
            ph=solar[4] + lunar[4],
        )

    def periodic(
        self, tsince: float, em: float, xinc: float, omgasm: float, xnodes: float, xll: float
    ) -> DeepPeriodic:
        """
        Apply lunar/solar periodics.

        Amplitudes are re-evaluated only when ``tsince`` is 30 minutes or more
        away from the last evaluation; otherwise the cached ones are reused.
        """
        sinis = math.sin(xinc)
        cosis = math.cos(xinc)
        if abs(self._savtsn - tsince) >= PERIODIC_REFRESH_MIN:
            self._savtsn = tsince
            self._periodic_terms = self._evaluate_periodics(tsince)
            logger.debug(f"Lunar/solar periodics refreshed at {tsince:.3f} min")
        pe, pinc, pl, pgh, ph = self._periodic_terms

        xinc = xinc + pinc
        em = em + pe

        if LOW_INCLINATION_RAD <= self.xqncl <= PI - LOW_INCLINATION_RAD:
            ph = ph / self.siniq
            pgh = pgh - self.cosiq * ph
            omgasm = omgasm + pgh
            xnodes = xnodes + ph
            xll = xll + pl
        else:
            # Lyddane modification: perturb the node through its direction cosines,
            # which stays regular as sin(i) goes to zero at 0 and 180 degrees
            sinok = math.sin(xnodes)
            cosok = math.cos(xnodes)
            alfdp = sinis * sinok
            betdp = sinis * cosok
            dalf = ph * cosok + pinc * cosis * sinok
            dbet = -ph * sinok + pinc * cosis * cosok
            alfdp = alfdp + dalf
            betdp = betdp + dbet
            xnodes = math.fmod(xnodes, TWOPI)
            xls = xll + omgasm + cosis * xnodes
            dls = pl + pgh - pinc * xnodes * sinis
            xls = xls + dls
            xnoh = xnodes
            xnodes = actan(alfdp, betdp)
            # keep the node on the same branch as xls across the 0/2*pi wrap
            if abs(xnoh - xnodes) > PI:
                if xnodes < xnoh:
                    xnodes = xnodes + TWOPI
                else:
                    xnodes = xnodes - TWOPI
            xll = xll + pl
            omgasm = xls - xll - math.cos(xinc) * xnodes

        return DeepPeriodic(em, xinc, omgasm, xnodes, xll)


def _body_periodics(terms: ThirdBodyTerms, body: ThirdBodyConstants, zmo: float, tsince: float):
    zm = zmo + body.zn * tsince
    zf = zm + 2.0 * body.ze * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    return (
        terms.e2 * f2 + terms.e3 * f3,
        terms.i2 * f2 + terms.i3 * f3,
        terms.l2 * f2 + terms.l3 * f3 + terms.l4 * sinzf,
        terms.gh2 * f2 + terms.gh3 * f3 + terms.gh4 * sinzf,
        terms.h2 * f2 + terms.h3 * f3,
    )
