"""
Brand compliance rules: brand color presence and text safe zone.

Issuance and verification both call evaluate_compliance so their verdicts
are directly comparable.
"""

import math
from typing import Iterable, List, Optional, Sequence, Tuple

import structlog

from addna import config
from addna.models.certificate import ComplianceLevel, ComplianceSummary
from addna.models.features import TextRegion

logger = structlog.get_logger()


def color_distance(c1: Sequence[float], c2: Sequence[float]) -> float:
    """Euclidean distance in RGB space."""
    return math.sqrt(sum((a - b) ** 2 for a, b in zip(c1, c2)))


def min_brand_distance(colors: Iterable[Sequence[float]],
                       brand_colors: Iterable[Sequence[float]]) -> float:
    """Smallest distance over all (palette, brand) pairs; inf for an empty palette."""
    brand_colors = list(brand_colors)
    return min(
        (color_distance(color, brand) for color in colors for brand in brand_colors),
        default=math.inf,
    )


def check_color_rule(colors: Iterable[Sequence[float]],
                     brand_colors: Optional[Iterable[Sequence[float]]] = None) -> Tuple[ComplianceLevel, List[str]]:
    if brand_colors is None:
        brand_colors = config.BRAND_COLORS

    distance = min_brand_distance(colors, brand_colors)

    if distance <= config.COLOR_PASS_DISTANCE:
        return ComplianceLevel.PASS, ["Brand color strongly present"]
    elif distance <= config.COLOR_WARN_DISTANCE:
        return ComplianceLevel.WARN, ["Brand color weak / subtle"]
    return ComplianceLevel.FAIL, ["No brand color detected"]


def min_text_margin(regions: Iterable[TextRegion], width: int, height: int) -> Optional[float]:
    """Smallest distance from any text box to any image edge, None without text."""
    margins = [
        min(region.x0, region.y0, width - region.x1, height - region.y1)
        for region in regions
    ]
    return min(margins) if margins else None


def check_safe_zone(regions: Iterable[TextRegion], width: int, height: int) -> Tuple[ComplianceLevel, List[str]]:
    margin = min_text_margin(regions, width, height)

    if margin is None:
        return ComplianceLevel.PASS, ["No text detected"]
    if margin >= config.SAFE_ZONE_PASS_MARGIN:
        return ComplianceLevel.PASS, ["Comfortable safe zone"]
    elif margin >= config.SAFE_ZONE_WARN_MARGIN:
        return ComplianceLevel.WARN, ["Text close to edge"]
    return ComplianceLevel.FAIL, ["Text too close to edge"]


def evaluate_compliance(colors: Iterable[Sequence[float]],
                        regions: Iterable[TextRegion],
                        width: int,
                        height: int,
                        brand_colors: Optional[Iterable[Sequence[float]]] = None) -> ComplianceSummary:
    color_level, color_notes = check_color_rule(colors, brand_colors)
    zone_level, zone_notes = check_safe_zone(regions, width, height)

    logger.debug("Compliance evaluated", color_rule=color_level.value, safe_zone=zone_level.value)
    return ComplianceSummary(
        color_rule=color_level,
        safe_zone=zone_level,
        notes=color_notes + zone_notes,
    )
