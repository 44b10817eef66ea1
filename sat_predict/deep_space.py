"""
Deep-Space Perturbations

Lunar-solar and geopotential-resonance terms applied to orbits whose period is
225 minutes or more, following the deep-space part of the SGP4 theory as
revised by Vallado et al. (2006).

Stages:
- ``lunar_solar_coefficients``: lunar and solar perturbation coefficients at epoch
- ``deep_space_init``: secular rates and Earth-resonance coefficients
- ``deep_space_secular``: secular drift plus resonance integration at a time
- ``lunar_solar_periodics``: periodic lunar-solar corrections at a time

Unlike the reference code, the resonance integrator keeps no state between
calls: every call integrates from epoch in fixed 720-minute steps, so results
do not depend on the order of earlier calls.

References:
- Hoots, F. R., & Roehrich, R. L. (1980). "Spacetrack Report No. 3"
- Vallado, D. A., et al. (2006). "Revisiting Spacetrack Report #3." AIAA 2006-6753
"""

import math
from dataclasses import dataclass
from typing import NamedTuple, Tuple

from sat_predict.config import TWOPI

X2O3 = 2.0 / 3.0

# Solar and lunar mean motions (rad/min) and orbit eccentricities
ZNS = 1.19459e-5
ZES = 0.01675
ZNL = 1.5835218e-4
ZEL = 0.05490

# Earth rotation (rad/min)
RPTIM = 4.37526908801129966e-3

# Resonance integrator step (min) and half its square
STEP = 720.0
STEP2 = 259200.0

# Low-inclination limit below which node terms are dropped (3 deg)
_LOW_INCLINATION = 5.2359877e-2

# Lyddane formulation is used when the inclination is within 0.2 rad of 0 or pi
_LYDDANE_LIMIT = 0.2


class NoResonance(NamedTuple):
    """Placeholder for orbits outside both resonance bands."""

    kind: int = 0


@dataclass(frozen=True)
class LunarSolarPeriodics:
    """Periodic coefficients of the solar (s*) and lunar (x*, e*) terms."""

    e3: float
    ee2: float
    se2: float
    se3: float
    sgh2: float
    sgh3: float
    sgh4: float
    sh2: float
    sh3: float
    si2: float
    si3: float
    sl2: float
    sl3: float
    sl4: float
    xgh2: float
    xgh3: float
    xgh4: float
    xh2: float
    xh3: float
    xi2: float
    xi3: float
    xl2: float
    xl3: float
    xl4: float
    zmol: float
    zmos: float


@dataclass(frozen=True)
class SynchronousResonance:
    """One-day (geosynchronous) resonance coefficients."""

    del1: float
    del2: float
    del3: float
    xfact: float
    xlamo: float
    kind: int = 1


@dataclass(frozen=True)
class HalfDayResonance:
    """Half-day (Molniya-type) resonance coefficients."""

    d2201: float
    d2211: float
    d3210: float
    d3222: float
    d4410: float
    d4422: float
    d5220: float
    d5232: float
    d5421: float
    d5433: float
    xfact: float
    xlamo: float
    kind: int = 2


@dataclass(frozen=True)
class DeepSpaceTerms:
    """Everything the deep-space branch derives once from the elements."""

    periodics: LunarSolarPeriodics
    dedt: float
    didt: float
    dmdt: float
    dnodt: float
    domdt: float
    resonance: object  # NoResonance, SynchronousResonance or HalfDayResonance
    gsto: float

    @property
    def resonance_kind(self) -> int:
        return self.resonance.kind


class _EpochGeometry(NamedTuple):
    """Intermediate lunar (s*, z*) and solar (ss*, sz*) quantities for init."""

    sinim: float
    cosim: float
    emsq: float
    s1: float
    s2: float
    s3: float
    s4: float
    s5: float
    ss1: float
    ss2: float
    ss3: float
    ss4: float
    ss5: float
    sz1: float
    sz3: float
    sz11: float
    sz13: float
    sz21: float
    sz23: float
    sz31: float
    sz33: float
    z1: float
    z3: float
    z11: float
    z13: float
    z21: float
    z23: float
    z31: float
    z33: float


def lunar_solar_coefficients(
    epoch_days: float, ecco: float, argpo: float, inclo: float, nodeo: float, no: float
) -> Tuple[LunarSolarPeriodics, _EpochGeometry]:
    """
    Compute lunar and solar perturbation coefficients at epoch.

    Args:
        epoch_days: Days since 1950 January 0.0 UT
        ecco, argpo, inclo, nodeo: Mean elements at epoch (rad)
        no: Un-Kozai'd mean motion (rad/min)

    Returns:
        Tuple of (periodic coefficients, epoch geometry used by deep_space_init)
    """
    c1ss = 2.9864797e-6
    c1l = 4.7968065e-7
    zsinis = 0.39785416
    zcosis = 0.91744867
    zcosgs = 0.1945905
    zsings = -0.98088458

    nm = no
    em = ecco
    snodm = math.sin(nodeo)
    cnodm = math.cos(nodeo)
    sinomm = math.sin(argpo)
    cosomm = math.cos(argpo)
    sinim = math.sin(inclo)
    cosim = math.cos(inclo)
    emsq = em * em
    betasq = 1.0 - emsq
    rtemsq = math.sqrt(betasq)

    # Lunar orbit orientation at epoch
    day = epoch_days + 18261.5
    xnodce = math.fmod(4.5236020 - 9.2422029e-4 * day, TWOPI)
    stem = math.sin(xnodce)
    ctem = math.cos(xnodce)
    zcosil = 0.91375164 - 0.03568096 * ctem
    zsinil = math.sqrt(1.0 - zcosil * zcosil)
    zsinhl = 0.089683511 * stem / zsinil
    zcoshl = math.sqrt(1.0 - zsinhl * zsinhl)
    gam = 5.8351514 + 0.0019443680 * day
    zx = 0.39785416 * stem / zsinil
    zy = zcoshl * ctem + 0.91744867 * zsinhl * stem
    zx = math.atan2(zx, zy)
    zx = gam + zx - xnodce
    zcosgl = math.cos(zx)
    zsingl = math.sin(zx)

    # First pass solar terms, second pass lunar terms
    zcosg = zcosgs
    zsing = zsings
    zcosi = zcosis
    zsini = zsinis
    zcosh = cnodm
    zsinh = snodm
    cc = c1ss
    xnoi = 1.0 / nm

    solar = None
    for body in ("sun", "moon"):
        a1 = zcosg * zcosh + zsing * zcosi * zsinh
        a3 = -zsing * zcosh + zcosg * zcosi * zsinh
        a7 = -zcosg * zsinh + zsing * zcosi * zcosh
        a8 = zsing * zsini
        a9 = zsing * zsinh + zcosg * zcosi * zcosh
        a10 = zcosg * zsini
        a2 = cosim * a7 + sinim * a8
        a4 = cosim * a9 + sinim * a10
        a5 = -sinim * a7 + cosim * a8
        a6 = -sinim * a9 + cosim * a10

        x1 = a1 * cosomm + a2 * sinomm
        x2 = a3 * cosomm + a4 * sinomm
        x3 = -a1 * sinomm + a2 * cosomm
        x4 = -a3 * sinomm + a4 * cosomm
        x5 = a5 * sinomm
        x6 = a6 * sinomm
        x7 = a5 * cosomm
        x8 = a6 * cosomm

        z31 = 12.0 * x1 * x1 - 3.0 * x3 * x3
        z32 = 24.0 * x1 * x2 - 6.0 * x3 * x4
        z33 = 12.0 * x2 * x2 - 3.0 * x4 * x4
        z1 = 3.0 * (a1 * a1 + a2 * a2) + z31 * emsq
        z2 = 6.0 * (a1 * a3 + a2 * a4) + z32 * emsq
        z3 = 3.0 * (a3 * a3 + a4 * a4) + z33 * emsq
        z11 = -6.0 * a1 * a5 + emsq * (-24.0 * x1 * x7 - 6.0 * x3 * x5)
        z12 = -6.0 * (a1 * a6 + a3 * a5) + emsq * (
            -24.0 * (x2 * x7 + x1 * x8) - 6.0 * (x3 * x6 + x4 * x5)
        )
        z13 = -6.0 * a3 * a6 + emsq * (-24.0 * x2 * x8 - 6.0 * x4 * x6)
        z21 = 6.0 * a2 * a5 + emsq * (24.0 * x1 * x5 - 6.0 * x3 * x7)
        z22 = 6.0 * (a4 * a5 + a2 * a6) + emsq * (
            24.0 * (x2 * x5 + x1 * x6) - 6.0 * (x4 * x7 + x3 * x8)
        )
        z23 = 6.0 * a4 * a6 + emsq * (24.0 * x2 * x6 - 6.0 * x4 * x8)
        z1 = z1 + z1 + betasq * z31
        z2 = z2 + z2 + betasq * z32
        z3 = z3 + z3 + betasq * z33

        s3 = cc * xnoi
        s2 = -0.5 * s3 / rtemsq
        s4 = s3 * rtemsq
        s1 = -15.0 * em * s4
        s5 = x1 * x3 + x2 * x4
        s6 = x2 * x3 + x1 * x4
        s7 = x2 * x4 - x1 * x3

        if body == "sun":
            solar = dict(
                s1=s1, s2=s2, s3=s3, s4=s4, s5=s5, s6=s6, s7=s7,
                z1=z1, z2=z2, z3=z3, z11=z11, z12=z12, z13=z13,
                z21=z21, z22=z22, z23=z23, z31=z31, z32=z32, z33=z33,
            )
            zcosg = zcosgl
            zsing = zsingl
            zcosi = zcosil
            zsini = zsinil
            zcosh = zcoshl * cnodm + zsinhl * snodm
            zsinh = snodm * zcoshl - cnodm * zsinhl
            cc = c1l

    zmol = math.fmod(4.7199672 + 0.22997150 * day - gam, TWOPI)
    zmos = math.fmod(6.2565837 + 0.017201977 * day, TWOPI)

    ss1, ss2, ss3, ss4 = solar["s1"], solar["s2"], solar["s3"], solar["s4"]

    periodics = LunarSolarPeriodics(
        # solar terms
        se2=2.0 * ss1 * solar["s6"],
        se3=2.0 * ss1 * solar["s7"],
        si2=2.0 * ss2 * solar["z12"],
        si3=2.0 * ss2 * (solar["z13"] - solar["z11"]),
        sl2=-2.0 * ss3 * solar["z2"],
        sl3=-2.0 * ss3 * (solar["z3"] - solar["z1"]),
        sl4=-2.0 * ss3 * (-21.0 - 9.0 * emsq) * ZES,
        sgh2=2.0 * ss4 * solar["z32"],
        sgh3=2.0 * ss4 * (solar["z33"] - solar["z31"]),
        sgh4=-18.0 * ss4 * ZES,
        sh2=-2.0 * ss2 * solar["z22"],
        sh3=-2.0 * ss2 * (solar["z23"] - solar["z21"]),
        # lunar terms
        ee2=2.0 * s1 * s6,
        e3=2.0 * s1 * s7,
        xi2=2.0 * s2 * z12,
        xi3=2.0 * s2 * (z13 - z11),
        xl2=-2.0 * s3 * z2,
        xl3=-2.0 * s3 * (z3 - z1),
        xl4=-2.0 * s3 * (-21.0 - 9.0 * emsq) * ZEL,
        xgh2=2.0 * s4 * z32,
        xgh3=2.0 * s4 * (z33 - z31),
        xgh4=-18.0 * s4 * ZEL,
        xh2=-2.0 * s2 * z22,
        xh3=-2.0 * s2 * (z23 - z21),
        zmol=zmol,
        zmos=zmos,
    )

    geometry = _EpochGeometry(
        sinim=sinim, cosim=cosim, emsq=emsq,
        s1=s1, s2=s2, s3=s3, s4=s4, s5=s5,
        ss1=ss1, ss2=ss2, ss3=ss3, ss4=ss4, ss5=solar["s5"],
        sz1=solar["z1"], sz3=solar["z3"],
        sz11=solar["z11"], sz13=solar["z13"],
        sz21=solar["z21"], sz23=solar["z23"],
        sz31=solar["z31"], sz33=solar["z33"],
        z1=z1, z3=z3, z11=z11, z13=z13, z21=z21, z23=z23, z31=z31, z33=z33,
    )
    return periodics, geometry


def _half_day_coefficients(ecco, eccsq, sinim, cosim, nm, aonv):
    """Geopotential resonance coefficients for 12-hour orbits."""
    root22 = 1.7891679e-6
    root44 = 7.3636953e-9
    root54 = 2.1765803e-9
    root32 = 3.7393792e-7
    root52 = 1.1428639e-7

    cosisq = cosim * cosim
    em = ecco
    emsq = eccsq
    eoc = em * emsq
    g201 = -0.306 - (em - 0.64) * 0.440
    if em <= 0.65:
        g211 = 3.616 - 13.2470 * em + 16.2900 * emsq
        g310 = -19.302 + 117.3900 * em - 228.4190 * emsq + 156.5910 * eoc
        g322 = -18.9068 + 109.7927 * em - 214.6334 * emsq + 146.5816 * eoc
        g410 = -41.122 + 242.6940 * em - 471.0940 * emsq + 313.9530 * eoc
        g422 = -146.407 + 841.8800 * em - 1629.014 * emsq + 1083.4350 * eoc
        g520 = -532.114 + 3017.977 * em - 5740.032 * emsq + 3708.2760 * eoc
    else:
        g211 = -72.099 + 331.819 * em - 508.738 * emsq + 266.724 * eoc
        g310 = -346.844 + 1582.851 * em - 2415.925 * emsq + 1246.113 * eoc
        g322 = -342.585 + 1554.908 * em - 2366.899 * emsq + 1215.972 * eoc
        g410 = -1052.797 + 4758.686 * em - 7193.992 * emsq + 3651.957 * eoc
        g422 = -3581.690 + 16178.110 * em - 24462.770 * emsq + 12422.520 * eoc
        if em > 0.715:
            g520 = -5149.66 + 29936.92 * em - 54087.36 * emsq + 31324.56 * eoc
        else:
            g520 = 1464.74 - 4664.75 * em + 3763.64 * emsq
    if em < 0.7:
        g533 = -919.22770 + 4988.6100 * em - 9064.7700 * emsq + 5542.21 * eoc
        g521 = -822.71072 + 4568.6173 * em - 8491.4146 * emsq + 5337.524 * eoc
        g532 = -853.66600 + 4690.2500 * em - 8624.7700 * emsq + 5341.4 * eoc
    else:
        g533 = -37995.780 + 161616.52 * em - 229838.20 * emsq + 109377.94 * eoc
        g521 = -51752.104 + 218913.95 * em - 309468.16 * emsq + 146349.42 * eoc
        g532 = -40023.880 + 170470.89 * em - 242699.48 * emsq + 115605.82 * eoc

    sini2 = sinim * sinim
    f220 = 0.75 * (1.0 + 2.0 * cosim + cosisq)
    f221 = 1.5 * sini2
    f321 = 1.875 * sinim * (1.0 - 2.0 * cosim - 3.0 * cosisq)
    f322 = -1.875 * sinim * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    f441 = 35.0 * sini2 * f220
    f442 = 39.3750 * sini2 * sini2
    f522 = 9.84375 * sinim * (
        sini2 * (1.0 - 2.0 * cosim - 5.0 * cosisq)
        + 0.33333333 * (-2.0 + 4.0 * cosim + 6.0 * cosisq)
    )
    f523 = sinim * (
        4.92187512 * sini2 * (-2.0 - 4.0 * cosim + 10.0 * cosisq)
        + 6.56250012 * (1.0 + 2.0 * cosim - 3.0 * cosisq)
    )
    f542 = 29.53125 * sinim * (
        2.0 - 8.0 * cosim + cosisq * (-12.0 + 8.0 * cosim + 10.0 * cosisq)
    )
    f543 = 29.53125 * sinim * (
        -2.0 - 8.0 * cosim + cosisq * (12.0 + 8.0 * cosim - 10.0 * cosisq)
    )

    xno2 = nm * nm
    ainv2 = aonv * aonv
    temp1 = 3.0 * xno2 * ainv2
    temp = temp1 * root22
    d2201 = temp * f220 * g201
    d2211 = temp * f221 * g211
    temp1 = temp1 * aonv
    temp = temp1 * root32
    d3210 = temp * f321 * g310
    d3222 = temp * f322 * g322
    temp1 = temp1 * aonv
    temp = 2.0 * temp1 * root44
    d4410 = temp * f441 * g410
    d4422 = temp * f442 * g422
    temp1 = temp1 * aonv
    temp = temp1 * root52
    d5220 = temp * f522 * g520
    d5232 = temp * f523 * g532
    temp = 2.0 * temp1 * root54
    d5421 = temp * f542 * g521
    d5433 = temp * f543 * g533
    return (d2201, d2211, d3210, d3222, d4410, d4422, d5220, d5232, d5421, d5433)


def deep_space_init(
    xke: float,
    geometry: _EpochGeometry,
    periodics: LunarSolarPeriodics,
    ecco: float,
    inclo: float,
    nodeo: float,
    argpo: float,
    mo: float,
    no: float,
    mdot: float,
    nodedot: float,
    xpidot: float,
    gsto: float,
) -> DeepSpaceTerms:
    """
    Derive deep-space secular rates and resonance coefficients.

    Args:
        xke: Gravity model sqrt(mu) in canonical units
        geometry, periodics: Output of ``lunar_solar_coefficients``
        ecco, inclo, nodeo, argpo, mo: Mean elements at epoch
        no: Un-Kozai'd mean motion (rad/min)
        mdot, nodedot, xpidot: Zonal secular rates (rad/min)
        gsto: Greenwich sidereal angle at epoch (rad)
    """
    q22 = 1.7891679e-6
    q31 = 2.1460748e-6
    q33 = 2.2123015e-7

    g = geometry
    sinim = g.sinim
    cosim = g.cosim
    emsq = g.emsq
    em = ecco
    nm = no

    # Resonance band: 1 = one-day, 2 = half-day
    irez = 0
    if 0.0034906585 < nm < 0.0052359877:
        irez = 1
    if 8.26e-3 <= nm <= 9.24e-3 and em >= 0.5:
        irez = 2

    # Solar secular terms
    ses = g.ss1 * ZNS * g.ss5
    sis = g.ss2 * ZNS * (g.sz11 + g.sz13)
    sls = -ZNS * g.ss3 * (g.sz1 + g.sz3 - 14.0 - 6.0 * emsq)
    sghs = g.ss4 * ZNS * (g.sz31 + g.sz33 - 6.0)
    shs = -ZNS * g.ss2 * (g.sz21 + g.sz23)
    if inclo < _LOW_INCLINATION or inclo > math.pi - _LOW_INCLINATION:
        shs = 0.0
    if sinim != 0.0:
        shs = shs / sinim
    sgs = sghs - cosim * shs

    # Lunar secular terms
    dedt = ses + g.s1 * ZNL * g.s5
    didt = sis + g.s2 * ZNL * (g.z11 + g.z13)
    dmdt = sls - ZNL * g.s3 * (g.z1 + g.z3 - 14.0 - 6.0 * emsq)
    sghl = g.s4 * ZNL * (g.z31 + g.z33 - 6.0)
    shll = -ZNL * g.s2 * (g.z21 + g.z23)
    if inclo < _LOW_INCLINATION or inclo > math.pi - _LOW_INCLINATION:
        shll = 0.0
    domdt = sgs + sghl
    dnodt = shs
    if sinim != 0.0:
        domdt = domdt - cosim / sinim * shll
        dnodt = dnodt + shll / sinim

    theta = math.fmod(gsto, TWOPI)
    resonance = NoResonance()
    if irez != 0:
        aonv = math.pow(nm / xke, X2O3)
        if irez == 2:
            coefficients = _half_day_coefficients(ecco, ecco * ecco, sinim, cosim, nm, aonv)
            xlamo = math.fmod(mo + nodeo + nodeo - theta - theta, TWOPI)
            xfact = mdot + dmdt + 2.0 * (nodedot + dnodt - RPTIM) - no
            resonance = HalfDayResonance(*coefficients, xfact=xfact, xlamo=xlamo)
        else:
            g200 = 1.0 + emsq * (-2.5 + 0.8125 * emsq)
            g310 = 1.0 + 2.0 * emsq
            g300 = 1.0 + emsq * (-6.0 + 6.60937 * emsq)
            f220 = 0.75 * (1.0 + cosim) * (1.0 + cosim)
            f311 = 0.9375 * sinim * sinim * (1.0 + 3.0 * cosim) - 0.75 * (1.0 + cosim)
            f330 = 1.0 + cosim
            f330 = 1.875 * f330 * f330 * f330
            del1 = 3.0 * nm * nm * aonv * aonv
            del2 = 2.0 * del1 * f220 * g200 * q22
            del3 = 3.0 * del1 * f330 * g300 * q33 * aonv
            del1 = del1 * f311 * g310 * q31 * aonv
            xlamo = math.fmod(mo + nodeo + argpo - theta, TWOPI)
            xfact = mdot + xpidot - RPTIM + dmdt + domdt + dnodt - no
            resonance = SynchronousResonance(
                del1=del1, del2=del2, del3=del3, xfact=xfact, xlamo=xlamo
            )

    return DeepSpaceTerms(
        periodics=periodics,
        dedt=dedt,
        didt=didt,
        dmdt=dmdt,
        dnodt=dnodt,
        domdt=domdt,
        resonance=resonance,
        gsto=gsto,
    )


def _resonance_rates(resonance, xli, xni, atime, argpo, argpdot):
    """Mean-longitude rate and its first two derivatives at ``atime``."""
    fasx2 = 0.13130908
    fasx4 = 2.8843198
    fasx6 = 0.37448087
    g22 = 5.7686396
    g32 = 0.95240898
    g44 = 1.8014998
    g52 = 1.0508330
    g54 = 4.4108898

    r = resonance
    xldot = xni + r.xfact
    if r.kind == 1:
        xndt = (
            r.del1 * math.sin(xli - fasx2)
            + r.del2 * math.sin(2.0 * (xli - fasx4))
            + r.del3 * math.sin(3.0 * (xli - fasx6))
        )
        xnddt = (
            r.del1 * math.cos(xli - fasx2)
            + 2.0 * r.del2 * math.cos(2.0 * (xli - fasx4))
            + 3.0 * r.del3 * math.cos(3.0 * (xli - fasx6))
        )
    else:
        xomi = argpo + argpdot * atime
        x2omi = xomi + xomi
        x2li = xli + xli
        xndt = (
            r.d2201 * math.sin(x2omi + xli - g22)
            + r.d2211 * math.sin(xli - g22)
            + r.d3210 * math.sin(xomi + xli - g32)
            + r.d3222 * math.sin(-xomi + xli - g32)
            + r.d4410 * math.sin(x2omi + x2li - g44)
            + r.d4422 * math.sin(x2li - g44)
            + r.d5220 * math.sin(xomi + xli - g52)
            + r.d5232 * math.sin(-xomi + xli - g52)
            + r.d5421 * math.sin(xomi + x2li - g54)
            + r.d5433 * math.sin(-xomi + x2li - g54)
        )
        xnddt = (
            r.d2201 * math.cos(x2omi + xli - g22)
            + r.d2211 * math.cos(xli - g22)
            + r.d3210 * math.cos(xomi + xli - g32)
            + r.d3222 * math.cos(-xomi + xli - g32)
            + r.d5220 * math.cos(xomi + xli - g52)
            + r.d5232 * math.cos(-xomi + xli - g52)
            + 2.0 * (
                r.d4410 * math.cos(x2omi + x2li - g44)
                + r.d4422 * math.cos(x2li - g44)
                + r.d5421 * math.cos(xomi + x2li - g54)
                + r.d5433 * math.cos(-xomi + x2li - g54)
            )
        )
    return xldot, xndt, xnddt * xldot


def deep_space_secular(
    terms: DeepSpaceTerms,
    t: float,
    no: float,
    argpo: float,
    argpdot: float,
    em: float,
    argpm: float,
    inclm: float,
    mm: float,
    nodem: float,
) -> Tuple[float, float, float, float, float, float]:
    """
    Apply deep-space secular drift and resonance integration.

    Args:
        terms: Output of ``deep_space_init``
        t: Minutes since epoch
        no: Un-Kozai'd mean motion (rad/min)
        argpo, argpdot: Argument of perigee at epoch and its rate
        em, argpm, inclm, mm, nodem: Zonal-secular mean elements at ``t``

    Returns:
        Tuple of (em, argpm, inclm, mm, nodem, nm)
    """
    theta = math.fmod(terms.gsto + t * RPTIM, TWOPI)
    em = em + terms.dedt * t
    inclm = inclm + terms.didt * t
    argpm = argpm + terms.domdt * t
    nodem = nodem + terms.dnodt * t
    mm = mm + terms.dmdt * t
    nm = no

    resonance = terms.resonance
    if resonance.kind == 0:
        return em, argpm, inclm, mm, nodem, nm

    # Integrate from epoch in fixed steps toward t
    atime = 0.0
    xni = no
    xli = resonance.xlamo
    delt = STEP if t > 0.0 else -STEP
    while True:
        xldot, xndt, xnddt = _resonance_rates(resonance, xli, xni, atime, argpo, argpdot)
        if abs(t - atime) < STEP:
            break
        xli = xli + xldot * delt + xndt * STEP2
        xni = xni + xndt * delt + xnddt * STEP2
        atime = atime + delt

    ft = t - atime
    nm = xni + xndt * ft + xnddt * ft * ft * 0.5
    xl = xli + xldot * ft + xndt * ft * ft * 0.5
    if resonance.kind == 1:
        mm = xl - nodem - argpm + theta
    else:
        mm = xl - 2.0 * nodem + 2.0 * theta
    return em, argpm, inclm, mm, nodem, nm


def lunar_solar_periodics(
    periodics: LunarSolarPeriodics,
    t: float,
    ep: float,
    inclp: float,
    nodep: float,
    argpp: float,
    mp: float,
) -> Tuple[float, float, float, float, float]:
    """
    Apply lunar-solar periodic corrections at ``t`` minutes since epoch.

    Returns:
        Tuple of (ep, inclp, nodep, argpp, mp)
    """
    p = periodics

    # Solar
    zm = p.zmos + ZNS * t
    zf = zm + 2.0 * ZES * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    ses = p.se2 * f2 + p.se3 * f3
    sis = p.si2 * f2 + p.si3 * f3
    sls = p.sl2 * f2 + p.sl3 * f3 + p.sl4 * sinzf
    sghs = p.sgh2 * f2 + p.sgh3 * f3 + p.sgh4 * sinzf
    shs = p.sh2 * f2 + p.sh3 * f3

    # Lunar
    zm = p.zmol + ZNL * t
    zf = zm + 2.0 * ZEL * math.sin(zm)
    sinzf = math.sin(zf)
    f2 = 0.5 * sinzf * sinzf - 0.25
    f3 = -0.5 * sinzf * math.cos(zf)
    sel = p.ee2 * f2 + p.e3 * f3
    sil = p.xi2 * f2 + p.xi3 * f3
    sll = p.xl2 * f2 + p.xl3 * f3 + p.xl4 * sinzf
    sghl = p.xgh2 * f2 + p.xgh3 * f3 + p.xgh4 * sinzf
    shll = p.xh2 * f2 + p.xh3 * f3

    pe = ses + sel
    pinc = sis + sil
    pl = sls + sll
    pgh = sghs + sghl
    ph = shs + shll

    inclp = inclp + pinc
    ep = ep + pe
    sinip = math.sin(inclp)
    cosip = math.cos(inclp)

    if _LYDDANE_LIMIT <= inclp <= math.pi - _LYDDANE_LIMIT:
        ph = ph / sinip
        pgh = pgh - cosip * ph
        argpp = argpp + pgh
        nodep = nodep + ph
        mp = mp + pl
    else:
        # Lyddane modification near the equatorial plane
        sinop = math.sin(nodep)
        cosop = math.cos(nodep)
        alfdp = sinip * sinop
        betdp = sinip * cosop
        dalf = ph * cosop + pinc * cosip * sinop
        dbet = -ph * sinop + pinc * cosip * cosop
        alfdp = alfdp + dalf
        betdp = betdp + dbet
        nodep = math.fmod(nodep, TWOPI)
        xls = mp + argpp + cosip * nodep
        dls = pl + pgh - pinc * nodep * sinip
        xls = xls + dls
        xnoh = nodep
        nodep = math.atan2(alfdp, betdp)
        if abs(xnoh - nodep) > math.pi:
            if nodep < xnoh:
                nodep = nodep + TWOPI
            else:
                nodep = nodep - TWOPI
        mp = mp + pl
        argpp = xls - mp - cosip * nodep

    return ep, inclp, nodep, argpp, mp
