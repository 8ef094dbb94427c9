"""
Chart-based size recommendation (backs the simulated size provider).

A SizeChart covers one garment half ("upper": tops, jackets, the top of a
full outfit; "lower": trousers, skirts) for one brand.  Each size lists a
(lo, hi) body range in cm per measurement it constrains.

A measurement scores 1 inside its range and falls off linearly to 0 over
``tolerance_cm`` on either side.  Before scoring, the body value is shifted by
the fit preference (tight -2 cm, loose +3 cm) and every range is widened
about its centre by the fabric stretch factor.  A size scores the weighted
mean over the measurements the body actually has; a size without data for
one of them scores it 0.5.

The recommendation is the best upper and best lower size, with confidence
the mean of the two winning scores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

import numpy as np

from uzerimde.config import config
from uzerimde.models.schemas import (
    BodyMeasurements,
    BrandSizes,
    FitPreference,
    SizeRecommendation,
)

logger = logging.getLogger(__name__)

scfg = config.sizing

UPPER = "upper"
LOWER = "lower"

Range = tuple[float, float]


@dataclass(frozen=True)
class SizeChart:
    garment: str  # UPPER | LOWER
    brand: str
    weights: dict[str, float]  # measurement name → weight
    sizes: dict[str, dict[str, Range]]  # size label → measurement → (lo, hi) cm
    tolerance_cm: float = 4.0


@dataclass
class SizeScore:
    size_label: str
    score: float
    per_measurement: dict[str, float] = field(default_factory=dict)


def _table(garment: str, weights: dict[str, float], rows: list[tuple]) -> SizeChart:
    """Chart from rows of (label, range per weighted measurement in order)."""
    names = tuple(weights)
    return SizeChart(
        garment=garment,
        brand="generic",
        weights=weights,
        sizes={label: dict(zip(names, ranges)) for label, *ranges in rows},
    )


# ── Generic charts ─────────────────────────────────────────────────────

_GENERIC_UPPER = _table(
    UPPER,
    {"chest": 0.40, "waist": 0.20, "shoulders": 0.25, "neck_circumference": 0.15},
    [
        # size    chest       waist       shoulders   neck
        ("XS",  (82, 88),   (68, 74),   (40, 42),   (35, 37)),
        ("S",   (88, 94),   (74, 80),   (42, 44),   (37, 38)),
        ("M",   (94, 100),  (80, 86),   (44, 46),   (38, 40)),
        ("L",   (100, 106), (86, 92),   (46, 48),   (40, 42)),
        ("XL",  (106, 114), (92, 100),  (48, 50),   (42, 44)),
        ("XXL", (114, 122), (100, 108), (50, 53),   (44, 46)),
    ],
)

_GENERIC_LOWER = _table(
    LOWER,
    {"waist": 0.40, "hips": 0.30, "inseam": 0.30},
    [
        # size   waist      hips        inseam
        ("28",  (70, 74),  (86, 90),   (76, 82)),
        ("30",  (74, 78),  (90, 94),   (76, 82)),
        ("32",  (78, 82),  (94, 98),   (78, 84)),
        ("34",  (82, 88),  (98, 102),  (78, 84)),
        ("36",  (88, 94),  (102, 108), (80, 86)),
        ("38",  (94, 100), (108, 114), (80, 86)),
    ],
)

_CHARTS: dict[tuple[str, str], SizeChart] = {
    (UPPER, "generic"): _GENERIC_UPPER,
    (LOWER, "generic"): _GENERIC_LOWER,
}


def get_size_chart(garment: str, brand: str = "generic") -> SizeChart:
    """The brand's chart for a garment half, or the generic one."""
    return _CHARTS.get((garment, brand)) or _CHARTS[(garment, "generic")]


def register_size_chart(chart: SizeChart) -> None:
    _CHARTS[(chart.garment, chart.brand)] = chart


def registered_brands() -> list[str]:
    return sorted({brand for _, brand in _CHARTS if brand != "generic"})


# ── Scoring ────────────────────────────────────────────────────────────

def membership(value, lo, hi, tolerance: float):
    """1 inside [lo, hi], linear down to 0 at ``tolerance`` outside it."""
    dist = np.maximum(lo - value, 0.0) + np.maximum(value - hi, 0.0)
    return np.clip(1.0 - dist / tolerance, 0.0, 1.0)


def fit_offset(fit: FitPreference) -> float:
    if fit == FitPreference.tight:
        return scfg.fit_offset_tight_cm
    if fit == FitPreference.loose:
        return scfg.fit_offset_loose_cm
    return 0.0


def stretch_range(rng: Range, stretch: float) -> Range:
    centre = (rng[0] + rng[1]) / 2
    half = (rng[1] - rng[0]) / 2 * stretch
    return centre - half, centre + half


def score_sizes(
    measurements: BodyMeasurements,
    chart: SizeChart,
    fit_preference: FitPreference = FitPreference.regular,
    stretch_factor: float = 1.0,
) -> list[SizeScore]:
    """Every size of the chart, best first; equal scores keep chart order."""
    stretch = stretch_factor if stretch_factor > 0 else scfg.default_stretch_factor

    names = [
        n for n in chart.weights
        if (getattr(measurements, n, None) or 0) > 0
    ]
    if not names:
        return [SizeScore(label, 0.0) for label in chart.sizes]

    body = np.array([getattr(measurements, n) for n in names], dtype=float) + fit_offset(fit_preference)
    weights = np.array([chart.weights[n] for n in names], dtype=float)

    scores: list[SizeScore] = []
    for label, ranges in chart.sizes.items():
        per = np.full(len(names), 0.5)
        for i, name in enumerate(names):
            if name in ranges:
                lo, hi = stretch_range(ranges[name], stretch)
                per[i] = membership(body[i], lo, hi, chart.tolerance_cm)

        overall = float(np.dot(weights, per) / weights.sum())
        scores.append(SizeScore(
            label,
            round(overall, 4),
            {n: round(float(s), 4) for n, s in zip(names, per)},
        ))

    scores.sort(key=lambda s: s.score, reverse=True)
    return scores


def _best(scores: list[SizeScore]) -> tuple[str, float]:
    if not scores or scores[0].score <= 0:
        return "", 0.0
    return scores[0].size_label, scores[0].score


def _best_for(
    garment: str,
    measurements: BodyMeasurements,
    brand: str,
    fit: FitPreference,
    stretch_factor: float,
) -> tuple[str, float]:
    return _best(score_sizes(measurements, get_size_chart(garment, brand), fit, stretch_factor))


def recommend_sizes(
    measurements: BodyMeasurements,
    fit_preference: FitPreference | None = None,
    stretch_factor: float = 1.0,
    brand: str = "generic",
) -> SizeRecommendation:
    """
    Upper and lower size for a body, plus the sizes every other registered
    brand chart gives.  Shoe sizes need foot length, which no chart carries.
    """
    fit = fit_preference or FitPreference(scfg.default_fit)

    upper_size, upper_score = _best_for(UPPER, measurements, brand, fit, stretch_factor)
    lower_size, lower_score = _best_for(LOWER, measurements, brand, fit, stretch_factor)

    brand_specific = {
        other: BrandSizes(
            upper_size=_best_for(UPPER, measurements, other, fit, stretch_factor)[0],
            lower_size=_best_for(LOWER, measurements, other, fit, stretch_factor)[0],
        )
        for other in registered_brands()
        if other != brand
    }

    confidence = round((upper_score + lower_score) / 2, 2)
    if confidence < 0.5:
        logger.warning(
            "Low size confidence %.2f (upper=%s, lower=%s)",
            confidence, upper_size or "-", lower_size or "-",
        )

    return SizeRecommendation(
        upper_size=upper_size,
        lower_size=lower_size,
        shoe_size="",
        fit=fit,
        confidence=confidence,
        brand_specific=brand_specific or None,
    )
