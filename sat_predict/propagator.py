"""
SGP4/SDP4 Propagator

Analytic propagation of two-line mean elements to a TEME position and
velocity, following Vallado et al. (2006), "Revisiting Spacetrack Report #3".

The near-earth/deep-space branch is chosen once, when a propagator is built
from the elements, by the un-Kozai'd period:

- period < 225 min: ``NearEarthPropagator`` (SGP4, full drag terms unless
  perigee is below 220 km)
- period >= 225 min: ``DeepSpacePropagator`` (SDP4, lunar-solar and
  resonance terms)

Failures raise ``PropagationError`` subclasses carrying the classic SGP4
error code:

==== ================================ ========================
code meaning                          exception
==== ================================ ========================
1    mean eccentricity out of range   DegenerateOrbitError
2    mean motion not positive         DegenerateOrbitError
3    perturbed eccentricity out of    DegenerateOrbitError
     range
4    semi-latus rectum negative       DegenerateOrbitError
5    mean semi-major axis below Earth DecayError
6    orbital radius below Earth       DecayError
7    Kepler iteration did not         ConvergenceError
     converge
==== ================================ ========================

Propagators are immutable after construction and safe to share between
threads.
"""

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Optional, Tuple

from sat_predict import config
from sat_predict.config import TWOPI, WGS72, XPDOTP, GravityModel
from sat_predict.coordinates import gstime
from sat_predict.deep_space import (
    DeepSpaceTerms,
    deep_space_init,
    deep_space_secular,
    lunar_solar_coefficients,
    lunar_solar_periodics,
)
from sat_predict.exceptions import (
    ConvergenceError,
    DecayError,
    DegenerateOrbitError,
)
from sat_predict.models import EciVector, OrbitalElements
from sat_predict.time_utils import JD_1950, julian_date, minutes_between

logger = logging.getLogger(__name__)

X2O3 = 2.0 / 3.0

Vector = Tuple[float, float, float]


@dataclass(frozen=True)
class PropagatorState:
    """
    Constants derived once from the mean elements.

    Angles are radians, mean motions rad/min and distances Earth radii.
    ``deep_space`` is set exactly when the period is 225 minutes or more.
    """

    gravity: GravityModel
    epoch_jd: float
    ecco: float
    inclo: float
    nodeo: float
    argpo: float
    mo: float
    bstar: float
    no_kozai: float
    no_unkozai: float
    ao: float
    cosio: float
    sinio: float
    con41: float
    x1mth2: float
    x7thm1: float
    eta: float
    cc1: float
    cc4: float
    cc5: float
    d2: float
    d3: float
    d4: float
    delmo: float
    sinmao: float
    omgcof: float
    xmcof: float
    nodecf: float
    t2cof: float
    t3cof: float
    t4cof: float
    t5cof: float
    mdot: float
    argpdot: float
    nodedot: float
    xlcof: float
    aycof: float
    simplified_drag: bool
    gsto: float
    deep_space: Optional[DeepSpaceTerms] = None

    @property
    def is_deep_space(self) -> bool:
        return self.deep_space is not None

    @property
    def period_minutes(self) -> float:
        return TWOPI / self.no_unkozai

    @classmethod
    def from_elements(
        cls, elements: OrbitalElements, gravity: GravityModel = WGS72
    ) -> "PropagatorState":
        """
        Initialize SGP4 constants for ``elements``.

        Raises:
            DegenerateOrbitError: if the recovered mean motion or semi-latus
                rectum is not positive
        """
        g = gravity
        ecco = elements.eccentricity
        inclo = elements.inclination
        nodeo = elements.raan
        argpo = elements.arg_perigee
        mo = elements.mean_anomaly
        bstar = elements.bstar
        no_kozai = elements.mean_motion / XPDOTP
        epoch_jd = julian_date(elements.epoch)

        # Recover the original mean motion and semi-major axis from the
        # Kozai mean motion
        eccsq = ecco * ecco
        omeosq = 1.0 - eccsq
        rteosq = math.sqrt(omeosq)
        cosio = math.cos(inclo)
        cosio2 = cosio * cosio

        ak = math.pow(g.xke / no_kozai, X2O3)
        d1 = 0.75 * g.j2 * (3.0 * cosio2 - 1.0) / (rteosq * omeosq)
        del_ = d1 / (ak * ak)
        adel = ak * (1.0 - del_ * del_ - del_ * (1.0 / 3.0 + 134.0 * del_ * del_ / 81.0))
        del_ = d1 / (adel * adel)
        no_unkozai = no_kozai / (1.0 + del_)
        if no_unkozai <= 0.0:
            raise DegenerateOrbitError(2, 0.0)

        ao = math.pow(g.xke / no_unkozai, X2O3)
        sinio = math.sin(inclo)
        po = ao * omeosq
        con42 = 1.0 - 5.0 * cosio2
        con41 = -con42 - cosio2 - cosio2
        posq = po * po
        rp = ao * (1.0 - ecco)
        gsto = gstime(epoch_jd)
        if po < 0.0:
            raise DegenerateOrbitError(4, 0.0)

        deep = TWOPI / no_unkozai >= config.DEEP_SPACE_PERIOD_MINUTES

        # Perigees below 220 km use the truncated drag model
        simplified_drag = deep or rp < 220.0 / g.radius_km + 1.0

        # Atmospheric density parameter, adjusted for low perigees
        ss = 78.0 / g.radius_km + 1.0
        qzms2t = math.pow((120.0 - 78.0) / g.radius_km, 4)
        sfour = ss
        qzms24 = qzms2t
        perige = (rp - 1.0) * g.radius_km
        if perige < 156.0:
            sfour = perige - 78.0
            if perige < 98.0:
                sfour = 20.0
            qzms24 = math.pow((120.0 - sfour) / g.radius_km, 4.0)
            sfour = sfour / g.radius_km + 1.0

        pinvsq = 1.0 / posq
        tsi = 1.0 / (ao - sfour)
        eta = ao * ecco * tsi
        etasq = eta * eta
        eeta = ecco * eta
        psisq = abs(1.0 - etasq)
        coef = qzms24 * math.pow(tsi, 4.0)
        coef1 = coef / math.pow(psisq, 3.5)
        cc2 = coef1 * no_unkozai * (
            ao * (1.0 + 1.5 * etasq + eeta * (4.0 + etasq))
            + 0.375 * g.j2 * tsi / psisq * con41 * (8.0 + 3.0 * etasq * (8.0 + etasq))
        )
        cc1 = bstar * cc2
        cc3 = 0.0
        if ecco > 1.0e-4:
            cc3 = -2.0 * coef * tsi * g.j3oj2 * no_unkozai * sinio / ecco
        x1mth2 = 1.0 - cosio2
        cc4 = 2.0 * no_unkozai * coef1 * ao * omeosq * (
            eta * (2.0 + 0.5 * etasq)
            + ecco * (0.5 + 2.0 * etasq)
            - g.j2 * tsi / (ao * psisq) * (
                -3.0 * con41 * (1.0 - 2.0 * eeta + etasq * (1.5 - 0.5 * eeta))
                + 0.75 * x1mth2 * (2.0 * etasq - eeta * (1.0 + etasq)) * math.cos(2.0 * argpo)
            )
        )
        cc5 = 2.0 * coef1 * ao * omeosq * (1.0 + 2.75 * (etasq + eeta) + eeta * etasq)

        # Zonal secular rates
        cosio4 = cosio2 * cosio2
        temp1 = 1.5 * g.j2 * pinvsq * no_unkozai
        temp2 = 0.5 * temp1 * g.j2 * pinvsq
        temp3 = -0.46875 * g.j4 * pinvsq * pinvsq * no_unkozai
        mdot = (
            no_unkozai
            + 0.5 * temp1 * rteosq * con41
            + 0.0625 * temp2 * rteosq * (13.0 - 78.0 * cosio2 + 137.0 * cosio4)
        )
        argpdot = (
            -0.5 * temp1 * con42
            + 0.0625 * temp2 * (7.0 - 114.0 * cosio2 + 395.0 * cosio4)
            + temp3 * (3.0 - 36.0 * cosio2 + 49.0 * cosio4)
        )
        xhdot1 = -temp1 * cosio
        nodedot = xhdot1 + (
            0.5 * temp2 * (4.0 - 19.0 * cosio2) + 2.0 * temp3 * (3.0 - 7.0 * cosio2)
        ) * cosio
        xpidot = argpdot + nodedot
        omgcof = bstar * cc3 * math.cos(argpo)
        xmcof = 0.0
        if ecco > 1.0e-4:
            xmcof = -X2O3 * coef * bstar / eeta
        nodecf = 3.5 * omeosq * xhdot1 * cc1
        t2cof = 1.5 * cc1

        # Avoid the 1/(1 + cos i) singularity at 180 deg inclination
        if abs(cosio + 1.0) > 1.5e-12:
            xlcof = -0.25 * g.j3oj2 * sinio * (3.0 + 5.0 * cosio) / (1.0 + cosio)
        else:
            xlcof = -0.25 * g.j3oj2 * sinio * (3.0 + 5.0 * cosio) / 1.5e-12
        aycof = -0.5 * g.j3oj2 * sinio
        delmotemp = 1.0 + eta * math.cos(mo)
        delmo = delmotemp * delmotemp * delmotemp
        sinmao = math.sin(mo)
        x7thm1 = 7.0 * cosio2 - 1.0

        d2 = d3 = d4 = 0.0
        t3cof = t4cof = t5cof = 0.0
        if not simplified_drag:
            cc1sq = cc1 * cc1
            d2 = 4.0 * ao * tsi * cc1sq
            temp = d2 * tsi * cc1 / 3.0
            d3 = (17.0 * ao + sfour) * temp
            d4 = 0.5 * temp * ao * tsi * (221.0 * ao + 31.0 * sfour) * cc1
            t3cof = d2 + 2.0 * cc1sq
            t4cof = 0.25 * (3.0 * d3 + cc1 * (12.0 * d2 + 10.0 * cc1sq))
            t5cof = 0.2 * (
                3.0 * d4
                + 12.0 * cc1 * d3
                + 6.0 * d2 * d2
                + 15.0 * cc1sq * (2.0 * d2 + cc1sq)
            )

        deep_space = None
        if deep:
            periodics, geometry = lunar_solar_coefficients(
                epoch_jd - JD_1950, ecco, argpo, inclo, nodeo, no_unkozai
            )
            deep_space = deep_space_init(
                g.xke, geometry, periodics,
                ecco, inclo, nodeo, argpo, mo, no_unkozai,
                mdot, nodedot, xpidot, gsto,
            )

        return cls(
            gravity=g,
            epoch_jd=epoch_jd,
            ecco=ecco,
            inclo=inclo,
            nodeo=nodeo,
            argpo=argpo,
            mo=mo,
            bstar=bstar,
            no_kozai=no_kozai,
            no_unkozai=no_unkozai,
            ao=ao,
            cosio=cosio,
            sinio=sinio,
            con41=con41,
            x1mth2=x1mth2,
            x7thm1=x7thm1,
            eta=eta,
            cc1=cc1,
            cc4=cc4,
            cc5=cc5,
            d2=d2,
            d3=d3,
            d4=d4,
            delmo=delmo,
            sinmao=sinmao,
            omgcof=omgcof,
            xmcof=xmcof,
            nodecf=nodecf,
            t2cof=t2cof,
            t3cof=t3cof,
            t4cof=t4cof,
            t5cof=t5cof,
            mdot=mdot,
            argpdot=argpdot,
            nodedot=nodedot,
            xlcof=xlcof,
            aycof=aycof,
            simplified_drag=simplified_drag,
            gsto=gsto,
            deep_space=deep_space,
        )


class MeanElements(NamedTuple):
    """Secular mean elements at one instant, before periodic corrections."""

    em: float
    inclm: float
    nodem: float
    argpm: float
    mm: float
    nm: float
    tempa: float
    tempe: float
    templ: float


class PeriodicElements(NamedTuple):
    """Elements after any lunar-solar periodics, with inclination terms."""

    ep: float
    xincp: float
    nodep: float
    argpp: float
    mp: float
    sinip: float
    cosip: float
    xlcof: float
    aycof: float
    con41: float
    x1mth2: float
    x7thm1: float


def solve_kepler(u, axnl, aynl, tsince=None):
    """
    Solve Kepler's equation in equinoctial form for E + omega.

    Newton iteration with the step limited to 0.95 rad, capped at
    ``config.KEPLER_MAX_ITERATIONS`` passes.

    Returns:
        Tuple of (eo1, sineo1, coseo1), sine and cosine from the last pass

    Raises:
        ConvergenceError: if the correction is still above tolerance
    """
    tolerance = config.KEPLER_TOLERANCE
    max_iterations = config.KEPLER_MAX_ITERATIONS
    eo1 = u
    tem5 = 9999.9
    sineo1 = coseo1 = 0.0
    ktr = 1
    while abs(tem5) >= tolerance and ktr <= max_iterations:
        sineo1 = math.sin(eo1)
        coseo1 = math.cos(eo1)
        tem5 = 1.0 - coseo1 * axnl - sineo1 * aynl
        tem5 = (u - aynl * coseo1 + axnl * sineo1 - eo1) / tem5
        if abs(tem5) >= 0.95:
            tem5 = 0.95 if tem5 > 0.0 else -0.95
        eo1 = eo1 + tem5
        ktr += 1

    if abs(tem5) >= tolerance:
        raise ConvergenceError(
            tsince,
            f"Kepler's equation did not converge in {max_iterations} iterations",
        )
    return eo1, sineo1, coseo1


class Propagator(ABC):
    """
    Base SGP4 propagator.

    Subclasses supply the secular update and the periodic corrections of
    their branch; the drag, Kepler and short-period steps are shared.
    """

    method = ""

    def __init__(self, elements: OrbitalElements, state: PropagatorState):
        self.elements = elements
        self.state = state

    @property
    def gravity(self) -> GravityModel:
        return self.state.gravity

    @property
    def epoch(self) -> datetime:
        return self.elements.epoch

    def propagate(self, instant: datetime) -> EciVector:
        """Propagate to a UTC instant."""
        tsince = minutes_between(self.elements.epoch, instant)
        position, velocity = self.propagate_minutes(tsince)
        return EciVector(time=instant, position=position, velocity=velocity)

    def _zonal_secular(self, t: float) -> MeanElements:
        s = self.state
        t2 = t * t
        return MeanElements(
            em=s.ecco,
            inclm=s.inclo,
            nodem=s.nodeo + s.nodedot * t + s.nodecf * t2,
            argpm=s.argpo + s.argpdot * t,
            mm=s.mo + s.mdot * t,
            nm=s.no_unkozai,
            tempa=1.0 - s.cc1 * t,
            tempe=s.bstar * s.cc4 * t,
            templ=s.t2cof * t2,
        )

    @abstractmethod
    def _secular(self, t: float) -> MeanElements:
        """Mean elements with secular gravity, drag and branch terms at ``t``."""

    @abstractmethod
    def _periodics(self, t, em, inclm, nodem, argpm, mm) -> PeriodicElements:
        """Elements with the branch's periodic corrections applied."""

    def propagate_minutes(self, tsince: float) -> Tuple[Vector, Vector]:
        """
        Propagate ``tsince`` minutes from epoch.

        Returns:
            Tuple of (position km, velocity km/s) in TEME

        Raises:
            DegenerateOrbitError, DecayError, ConvergenceError
        """
        s = self.state
        g = s.gravity
        t = tsince

        mean = self._secular(t)
        em = mean.em
        nm = mean.nm
        if nm <= 0.0:
            raise DegenerateOrbitError(2, t)

        am = math.pow(g.xke / nm, X2O3) * mean.tempa * mean.tempa
        nm = g.xke / math.pow(am, 1.5)
        em = em - mean.tempe

        if am < 1.0:
            raise DecayError(5, t)
        if em >= 1.0 or em < -0.001:
            raise DegenerateOrbitError(1, t)
        if em < 1.0e-6:
            em = 1.0e-6

        mm = mean.mm + s.no_unkozai * mean.templ
        xlm = mm + mean.argpm + mean.nodem
        nodem = math.fmod(mean.nodem, TWOPI)
        argpm = math.fmod(mean.argpm, TWOPI)
        xlm = math.fmod(xlm, TWOPI)
        mm = math.fmod(xlm - argpm - nodem, TWOPI)

        p = self._periodics(t, em, mean.inclm, nodem, argpm, mm)
        ep = p.ep
        nodep = p.nodep
        argpp = p.argpp
        mp = p.mp

        # Long-period periodics
        axnl = ep * math.cos(argpp)
        temp = 1.0 / (am * (1.0 - ep * ep))
        aynl = ep * math.sin(argpp) + temp * p.aycof
        xl = mp + argpp + nodep + temp * p.xlcof * axnl

        u = math.fmod(xl - nodep, TWOPI)
        eo1, sineo1, coseo1 = solve_kepler(u, axnl, aynl, t)

        # Short-period preliminary quantities
        ecose = axnl * coseo1 + aynl * sineo1
        esine = axnl * sineo1 - aynl * coseo1
        el2 = axnl * axnl + aynl * aynl
        pl = am * (1.0 - el2)
        if pl < 0.0:
            raise DegenerateOrbitError(4, t)

        rl = am * (1.0 - ecose)
        rdotl = math.sqrt(am) * esine / rl
        rvdotl = math.sqrt(pl) / rl
        betal = math.sqrt(1.0 - el2)
        temp = esine / (1.0 + betal)
        sinu = am / rl * (sineo1 - aynl - axnl * temp)
        cosu = am / rl * (coseo1 - axnl + aynl * temp)
        su = math.atan2(sinu, cosu)
        sin2u = (cosu + cosu) * sinu
        cos2u = 1.0 - 2.0 * sinu * sinu
        temp = 1.0 / pl
        temp1 = 0.5 * g.j2 * temp
        temp2 = temp1 * temp

        # Short-period periodics
        mrt = rl * (1.0 - 1.5 * temp2 * betal * p.con41) + 0.5 * temp1 * p.x1mth2 * cos2u
        su = su - 0.25 * temp2 * p.x7thm1 * sin2u
        xnode = nodep + 1.5 * temp2 * p.cosip * sin2u
        xinc = p.xincp + 1.5 * temp2 * p.cosip * p.sinip * cos2u
        mvt = rdotl - nm * temp1 * p.x1mth2 * sin2u / g.xke
        rvdot = rvdotl + nm * temp1 * (p.x1mth2 * cos2u + 1.5 * p.con41) / g.xke

        if mrt < 1.0:
            raise DecayError(6, t)

        # Orientation vectors
        sinsu = math.sin(su)
        cossu = math.cos(su)
        snod = math.sin(xnode)
        cnod = math.cos(xnode)
        sini = math.sin(xinc)
        cosi = math.cos(xinc)
        xmx = -snod * cosi
        xmy = cnod * cosi
        ux = xmx * sinsu + cnod * cossu
        uy = xmy * sinsu + snod * cossu
        uz = sini * sinsu
        vx = xmx * cossu - cnod * sinsu
        vy = xmy * cossu - snod * sinsu
        vz = sini * cossu

        radius = g.radius_km
        vkmpersec = radius * g.xke / 60.0
        position = (mrt * ux * radius, mrt * uy * radius, mrt * uz * radius)
        velocity = (
            (mvt * ux + rvdot * vx) * vkmpersec,
            (mvt * uy + rvdot * vy) * vkmpersec,
            (mvt * uz + rvdot * vz) * vkmpersec,
        )
        return position, velocity


class NearEarthPropagator(Propagator):
    """SGP4 for periods under 225 minutes."""

    method = "n"

    def _secular(self, t: float) -> MeanElements:
        mean = self._zonal_secular(t)
        s = self.state
        if s.simplified_drag:
            return mean

        xmdf = s.mo + s.mdot * t
        argpdf = s.argpo + s.argpdot * t
        delomg = s.omgcof * t
        delmtemp = 1.0 + s.eta * math.cos(xmdf)
        delm = s.xmcof * (delmtemp * delmtemp * delmtemp - s.delmo)
        temp = delomg + delm
        mm = xmdf + temp
        t2 = t * t
        t3 = t2 * t
        t4 = t3 * t
        return mean._replace(
            mm=mm,
            argpm=argpdf - temp,
            tempa=mean.tempa - s.d2 * t2 - s.d3 * t3 - s.d4 * t4,
            tempe=mean.tempe + s.bstar * s.cc5 * (math.sin(mm) - s.sinmao),
            templ=mean.templ + s.t3cof * t3 + t4 * (s.t4cof + t * s.t5cof),
        )

    def _periodics(self, t, em, inclm, nodem, argpm, mm) -> PeriodicElements:
        s = self.state
        return PeriodicElements(
            ep=em,
            xincp=inclm,
            nodep=nodem,
            argpp=argpm,
            mp=mm,
            sinip=s.sinio,
            cosip=s.cosio,
            xlcof=s.xlcof,
            aycof=s.aycof,
            con41=s.con41,
            x1mth2=s.x1mth2,
            x7thm1=s.x7thm1,
        )


class DeepSpacePropagator(Propagator):
    """SDP4 for periods of 225 minutes or more."""

    method = "d"

    def _secular(self, t: float) -> MeanElements:
        mean = self._zonal_secular(t)
        s = self.state
        em, argpm, inclm, mm, nodem, nm = deep_space_secular(
            s.deep_space, t, s.no_unkozai, s.argpo, s.argpdot,
            mean.em, mean.argpm, mean.inclm, mean.mm, mean.nodem,
        )
        return mean._replace(
            em=em, argpm=argpm, inclm=inclm, mm=mm, nodem=nodem, nm=nm
        )

    def _periodics(self, t, em, inclm, nodem, argpm, mm) -> PeriodicElements:
        s = self.state
        g = s.gravity
        ep, xincp, nodep, argpp, mp = lunar_solar_periodics(
            s.deep_space.periodics, t, em, inclm, nodem, argpm, mm
        )
        if xincp < 0.0:
            xincp = -xincp
            nodep = nodep + math.pi
            argpp = argpp - math.pi
        if ep < 0.0 or ep > 1.0:
            raise DegenerateOrbitError(3, t)

        sinip = math.sin(xincp)
        cosip = math.cos(xincp)
        aycof = -0.5 * g.j3oj2 * sinip
        if abs(cosip + 1.0) > 1.5e-12:
            xlcof = -0.25 * g.j3oj2 * sinip * (3.0 + 5.0 * cosip) / (1.0 + cosip)
        else:
            xlcof = -0.25 * g.j3oj2 * sinip * (3.0 + 5.0 * cosip) / 1.5e-12
        cosisq = cosip * cosip
        return PeriodicElements(
            ep=ep,
            xincp=xincp,
            nodep=nodep,
            argpp=argpp,
            mp=mp,
            sinip=sinip,
            cosip=cosip,
            xlcof=xlcof,
            aycof=aycof,
            con41=3.0 * cosisq - 1.0,
            x1mth2=1.0 - cosisq,
            x7thm1=7.0 * cosisq - 1.0,
        )


def create_propagator(
    elements: OrbitalElements, gravity: GravityModel = WGS72
) -> Propagator:
    """
    Build the propagator for ``elements``, choosing the branch by period.

    Raises:
        DegenerateOrbitError: if the elements cannot be initialized
    """
    state = PropagatorState.from_elements(elements, gravity)
    if state.is_deep_space:
        propagator = DeepSpacePropagator(elements, state)
    else:
        propagator = NearEarthPropagator(elements, state)
    logger.debug(
        f"Satellite {elements.catalog_number}: period {state.period_minutes:.2f} min, "
        f"using {type(propagator).__name__} with {gravity.name}"
    )
    return propagator


def propagate(
    elements: OrbitalElements, instant: datetime, gravity: GravityModel = WGS72
) -> EciVector:
    """One-shot propagation of ``elements`` to ``instant``."""
    return create_propagator(elements, gravity).propagate(instant)
