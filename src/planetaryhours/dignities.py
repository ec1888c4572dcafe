"""Static essential dignity table for the seven classical planets."""

from dataclasses import dataclass

from planetaryhours.models import Dignity, Planet, ZodiacSign

S = ZodiacSign


@dataclass(frozen=True)
class DignitySigns:
    """Signs in which one planet is dignified or debilitated."""

    domicile: frozenset[ZodiacSign]
    exaltation: frozenset[ZodiacSign]
    detriment: frozenset[ZodiacSign]
    fall: frozenset[ZodiacSign]


@dataclass(frozen=True)
class DignityInfo:
    """Display text for a dignity."""

    name: str
    description: str
    effect: str


@dataclass(frozen=True)
class DignityReading:
    """Result of ``describe``: the status plus a sentence about it."""

    planet: Planet
    sign: ZodiacSign
    status: Dignity
    description: str

    def to_dict(self) -> dict[str, object]:
        info = DIGNITY_INFO[self.status]
        return {
            "planet": self.planet.value,
            "sign": self.sign.value,
            "status": self.status.value,
            "description": self.description,
            "dignity": {
                "name": info.name,
                "description": info.description,
                "effect": info.effect,
            },
        }


def _signs(*signs: ZodiacSign) -> frozenset[ZodiacSign]:
    return frozenset(signs)


DIGNITY_TABLE: dict[Planet, DignitySigns] = {
    Planet.SUN: DignitySigns(
        domicile=_signs(S.LEO),
        exaltation=_signs(S.ARIES),
        detriment=_signs(S.AQUARIUS),
        fall=_signs(S.LIBRA),
    ),
    Planet.MOON: DignitySigns(
        domicile=_signs(S.CANCER),
        exaltation=_signs(S.TAURUS),
        detriment=_signs(S.CAPRICORN),
        fall=_signs(S.SCORPIO),
    ),
    # Virgo is both domicile and exaltation, Pisces both detriment and fall;
    # the lookup order in status() decides.
    Planet.MERCURY: DignitySigns(
        domicile=_signs(S.GEMINI, S.VIRGO),
        exaltation=_signs(S.VIRGO),
        detriment=_signs(S.SAGITTARIUS, S.PISCES),
        fall=_signs(S.PISCES),
    ),
    Planet.VENUS: DignitySigns(
        domicile=_signs(S.TAURUS, S.LIBRA),
        exaltation=_signs(S.PISCES),
        detriment=_signs(S.SCORPIO, S.ARIES),
        fall=_signs(S.VIRGO),
    ),
    Planet.MARS: DignitySigns(
        domicile=_signs(S.ARIES, S.SCORPIO),
        exaltation=_signs(S.CAPRICORN),
        detriment=_signs(S.LIBRA, S.TAURUS),
        fall=_signs(S.CANCER),
    ),
    Planet.JUPITER: DignitySigns(
        domicile=_signs(S.SAGITTARIUS, S.PISCES),
        exaltation=_signs(S.CANCER),
        detriment=_signs(S.GEMINI, S.VIRGO),
        fall=_signs(S.CAPRICORN),
    ),
    Planet.SATURN: DignitySigns(
        domicile=_signs(S.CAPRICORN, S.AQUARIUS),
        exaltation=_signs(S.LIBRA),
        detriment=_signs(S.CANCER, S.LEO),
        fall=_signs(S.ARIES),
    ),
}

DIGNITY_INFO: dict[Dignity, DignityInfo] = {
    Dignity.DOMICILE: DignityInfo(
        name="Rulership (Domicile)",
        description="A planet in the sign it rules",
        effect="The planet is at its strongest and most comfortable",
    ),
    Dignity.EXALTATION: DignityInfo(
        name="Exaltation",
        description="A planet in the sign of its exaltation",
        effect="The planet is elevated and empowered",
    ),
    Dignity.DETRIMENT: DignityInfo(
        name="Detriment",
        description="A planet in the sign opposite to its rulership",
        effect="The planet is uncomfortable and challenged",
    ),
    Dignity.FALL: DignityInfo(
        name="Fall",
        description="A planet in the sign opposite to its exaltation",
        effect="The planet is weakened and diminished",
    ),
    Dignity.PEREGRINE: DignityInfo(
        name="Peregrine",
        description="A planet in a sign where it has no essential dignity",
        effect="The planet is neutral, neither strengthened nor weakened",
    ),
}

_PHRASES: dict[Dignity, str] = {
    Dignity.DOMICILE: "is in its own sign of",
    Dignity.EXALTATION: "is exalted in",
    Dignity.DETRIMENT: "is in detriment in",
    Dignity.FALL: "is in fall in",
    Dignity.PEREGRINE: "is peregrine in",
}


def status(planet: Planet, sign: ZodiacSign) -> Dignity:
    """Essential dignity of ``planet`` in ``sign``.

    Checked in the order domicile, exaltation, detriment, fall. Planets
    outside the classical seven are always peregrine.
    """
    if not planet.is_classical:
        return Dignity.PEREGRINE
    signs = DIGNITY_TABLE[planet]
    if sign in signs.domicile:
        return Dignity.DOMICILE
    if sign in signs.exaltation:
        return Dignity.EXALTATION
    if sign in signs.detriment:
        return Dignity.DETRIMENT
    if sign in signs.fall:
        return Dignity.FALL
    return Dignity.PEREGRINE


def describe(planet: Planet, sign: ZodiacSign) -> DignityReading:
    """Status plus a sentence such as "mars is exalted in Capricorn"."""
    dignity = status(planet, sign)
    return DignityReading(
        planet=planet,
        sign=sign,
        status=dignity,
        description=f"{planet.value} {_PHRASES[dignity]} {sign.value}",
    )
