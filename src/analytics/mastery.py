from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from src.analytics.scoring import round_half_up
from src.core.errors import ConfigurationError
from src.models.performance import MasteryRecord
from src.schemas.performance import LevelBand, LevelInfo


def build_level_bands(raw_bands: Sequence[Mapping[str, Any]]) -> List[LevelBand]:
    """Validate the configured band table.

    Bands must be listed in ascending order of ``min``, each starting one point
    after the previous band ends, and only the last band may leave ``max`` open.
    """
    if not raw_bands:
        raise ConfigurationError("At least one level band is required")
    bands: List[LevelBand] = []
    for index, raw in enumerate(raw_bands):
        is_last = index == len(raw_bands) - 1
        max_points = raw.get("max")
        if max_points is None and not is_last:
            raise ConfigurationError(f"Only the top level band may be open-ended ({raw.get('label')})")
        band = LevelBand(
            label=str(raw["label"]),
            min_points=int(raw["min"]),
            max_points=None if is_last else int(max_points),
        )
        if band.max_points is not None and band.max_points < band.min_points:
            raise ConfigurationError(f"Level band {band.label} has max below min")
        if bands and band.min_points <= bands[-1].min_points:
            raise ConfigurationError("Level bands must be in ascending point order")
        if bands and band.min_points != bands[-1].max_points + 1:
            raise ConfigurationError(
                f"Level band {band.label} must start right after {bands[-1].label} ends"
            )
        bands.append(band)
    return bands


def normalize_points(points: Optional[float]) -> int:
    if not points:
        return 0
    return max(0, round_half_up(points))


def get_level_info(points: Optional[float], bands: Sequence[LevelBand]) -> LevelInfo:
    safe_points = normalize_points(points)
    band = _find_band(safe_points, bands)
    if band.max_points is None:
        return LevelInfo(level=band.label, progress=100, points_to_next=0)

    span = max(1, band.max_points - band.min_points)
    progress = round_half_up(((safe_points - band.min_points) / span) * 100)
    return LevelInfo(
        level=band.label,
        progress=min(100, max(0, progress)),
        points_to_next=max(0, band.max_points - safe_points + 1),
    )


def _find_band(points: int, bands: Sequence[LevelBand]) -> LevelBand:
    for band in bands:
        if band.max_points is None:
            if points >= band.min_points:
                return band
        elif band.min_points <= points <= band.max_points:
            return band
    return bands[0]


def merge_mastery_records(
    records: Iterable[MasteryRecord],
) -> Dict[Tuple[str, str], MasteryRecord]:
    """Collapse duplicate (profile, skill category) rows.

    Mastery counters are cumulative, so each counter keeps its highest value.
    """
    merged: Dict[Tuple[str, str], MasteryRecord] = {}
    for record in records:
        key = (record.profile_id, record.skill_category_id)
        existing = merged.get(key)
        if existing is None:
            merged[key] = record
            continue
        merged[key] = MasteryRecord(
            profile_id=record.profile_id,
            skill_category_id=record.skill_category_id,
            progress=max(existing.progress, record.progress),
            achievements_completed=max(existing.achievements_completed, record.achievements_completed),
            points_earned=max(existing.points_earned, record.points_earned),
        )
    return merged
