"""Dataset-level statistics for Summary_All.csv.

Every row has seven cells: section, metric_name, value_a..value_d, notes.
Standard deviations are population deviations (0 for fewer than two values).
"""

from collections import Counter, defaultdict
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np

from floodshape.metadata import SEASONS
from floodshape.models import ImageRecord

Row = List[str]

SUMMARY_HEADER = ["section", "metric_name", "value_a", "value_b", "value_c", "value_d", "notes"]

OUTLIER_SIGMA = 3.0
XY_Z_THRESHOLD = 1.0
MIN_SEASON_COUNT = 30
MIN_COMBO_COUNT = 10

DECISION_RULE = (
    "score = w_raw*z_raw_mean + w_bd*z_black_diameter + w_wd*z_white_diameter"
    " + w_season + w_pol + w_black_shape + w_white_shape;"
    " z_feature = (x - mean_all)/std_all; P(FLOODING=true) = 1/(1+exp(-score))."
)


def row(section: str, name: str, a="", b="", c="", d="", notes: str = "") -> Row:
    return [section, name, _cell(a), _cell(b), _cell(c), _cell(d), notes]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float):
        return repr(value)
    return str(value)


def mean(values: Sequence[float]) -> float:
    return float(np.mean(values)) if len(values) else 0.0


def stddev(values: Sequence[float]) -> float:
    return float(np.std(values)) if len(values) > 1 else 0.0


def median(values: Sequence[float]) -> float:
    return float(np.median(values)) if len(values) else 0.0


def filter_by_zscore(values: Sequence[float], center: float, std: float, z: float) -> List[float]:
    """Keep values within z standard deviations of center (all of them when std is 0)."""
    if std == 0.0:
        return list(values)
    return [v for v in values if abs(v - center) <= z * std]


def cohens_d(group_a: Sequence[float], group_b: Sequence[float]) -> float:
    """Effect size with pooled std; 0 when a group has fewer than 2 values or no spread."""
    n1, n2 = len(group_a), len(group_b)
    if n1 < 2 or n2 < 2:
        return 0.0
    var1, var2 = stddev(group_a) ** 2, stddev(group_b) ** 2
    pooled = np.sqrt(((n1 - 1) * var1 + (n2 - 1) * var2) / (n1 + n2 - 2))
    if pooled == 0.0:
        return 0.0
    return float((mean(group_a) - mean(group_b)) / pooled)


def mode_raw(counts: Dict[int, int]) -> Optional[int]:
    """RAW value with the highest total count, ignoring RAW 0; lowest value on ties."""
    best: Optional[Tuple[int, int]] = None
    for raw, count in counts.items():
        if raw == 0 or count <= 0:
            continue
        if best is None or count > best[1] or (count == best[1] and raw < best[0]):
            best = (raw, count)
    return None if best is None else best[0]


def _split(records: Sequence[ImageRecord], attr: str) -> Tuple[List[float], List[float]]:
    true_vals = [float(getattr(r, attr)) for r in records if r.flooding]
    false_vals = [float(getattr(r, attr)) for r in records if not r.flooding]
    return true_vals, false_vals


def _season(record: ImageRecord) -> str:
    return record.season or "Unknown"


def build_stats_section(records: Sequence[ImageRecord]) -> List[Row]:
    true_all, false_all = _split(records, "raw_mean")
    mean_true, mean_false = mean(true_all), mean(false_all)
    std_true, std_false = stddev(true_all), stddev(false_all)

    true_post = filter_by_zscore(true_all, mean_true, std_true, OUTLIER_SIGMA)
    false_post = filter_by_zscore(false_all, mean_false, std_false, OUTLIER_SIGMA)

    true_nonzero = [v for v in true_post if v != 0.0]
    false_nonzero = [v for v in false_post if v != 0.0]

    # Pixel counts pooled over the images kept after outlier removal.
    raw_counts: Dict[bool, Counter] = {True: Counter(), False: Counter()}
    bounds = {
        True: (mean_true, OUTLIER_SIGMA * std_true if std_true else float("inf")),
        False: (mean_false, OUTLIER_SIGMA * std_false if std_false else float("inf")),
    }
    for record in records:
        center, limit = bounds[record.flooding]
        if abs(record.raw_mean - center) > limit:
            continue
        raw_counts[record.flooding].update(record.histogram)

    return [
        row("STATS", "count_images_all", len(true_all), len(false_all),
            notes="True/false image counts, pre-mean (no outlier removal)."),
        row("STATS", "count_images_post_mean", len(true_post), len(false_post),
            notes="Images retained for post-mean (|x-mean| <= 3*std within each group)."),
        row("STATS", "mean_raw_pre", mean_true, mean_false,
            notes="Pre-mean raw_mean across all images (zeros ignored at pixel level)."),
        row("STATS", "std_raw_pre", std_true, std_false,
            notes="Pre-std raw_mean across all images."),
        row("STATS", "post_mean_raw", mean(true_post), mean(false_post),
            notes="Post-mean raw_mean after 3-sigma outlier removal (pixel-level zeros ignored)."),
        row("STATS", "post_std_raw", stddev(true_post), stddev(false_post),
            notes="Post-std raw_mean after 3-sigma outlier removal."),
        row("STATS", "post_median_raw",
            median(true_nonzero) if true_nonzero else "",
            median(false_nonzero) if false_nonzero else "",
            notes="Post-median raw_mean after 3-sigma removal; zeros excluded from median calculation."),
        row("STATS", "post_mode_raw", mode_raw(raw_counts[True]), mode_raw(raw_counts[False]),
            notes="Post-mode RAW value: highest total pixel count across post-mean images; RAW_00000 is skipped."),
        row("STATS", "cohens_d_post_mean_raw", cohens_d(true_post, false_post),
            notes="Effect size on post-mean data: (mean_true - mean_false) / pooled_std."),
    ]


def build_seasons_section(records: Sequence[ImageRecord]) -> List[Row]:
    counts = defaultdict(lambda: [0, 0])
    for record in records:
        counts[_season(record)][0 if record.flooding else 1] += 1

    out = []
    for season in SEASONS:
        n_true, n_false = counts[season]
        total = n_true + n_false
        rate = n_true / total if total else 0.0
        out.append(row("SEASONS", season, n_true, n_false, rate,
                       notes="True_rate = count_true / (count_true + count_false) for this season."))
    return out


def _shape_counts(records: Sequence[ImageRecord], side: str) -> Dict[str, List[int]]:
    counts: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for record in records:
        shape = getattr(record, side).shape or "none"
        counts[shape][0 if record.flooding else 1] += 1
    return counts


def build_shapes_section(records: Sequence[ImageRecord]) -> List[Row]:
    out = [row("SHAPES", "NOTE",
               notes="Each image contributes one black and one white largest component (after filters and fallback).")]
    for side, prefix in (("dark", "black"), ("bright", "white")):
        counts = _shape_counts(records, side)
        for shape in sorted(counts):
            n_true, n_false = counts[shape]
            out.append(row("SHAPES", f"{prefix}_{shape}", n_true, n_false,
                           notes=f"Largest {prefix}-component shape = {shape}"))
    return out


def _smoothed_rate(n_true: int, n_false: int) -> float:
    # One extra false observation per group.
    return n_true / float(n_true + n_false + 1)


def build_weights_section(records: Sequence[ImageRecord]) -> List[Row]:
    overall = sum(1 for r in records if r.flooding) / float(len(records)) if records else 0.0
    out = []

    numeric: Tuple[Tuple[str, Callable[[ImageRecord], float], str], ...] = (
        ("raw_mean", lambda r: r.raw_mean,
         "Numeric weight: Cohen's d on raw_mean (per-image mean over non-zero pixels)."),
        ("black_diameter", lambda r: r.dark.diameter, "Numeric weight: Cohen's d on black diameter."),
        ("white_diameter", lambda r: r.bright.diameter, "Numeric weight: Cohen's d on white diameter."),
    )
    for name, feature, notes in numeric:
        values = [feature(r) for r in records]
        true_vals = [feature(r) for r in records if r.flooding]
        false_vals = [feature(r) for r in records if not r.flooding]
        out.append(row("WEIGHTS", name, cohens_d(true_vals, false_vals), mean(values), stddev(values),
                       notes=notes))

    seasons = defaultdict(lambda: [0, 0])
    for record in records:
        seasons[_season(record)][0 if record.flooding else 1] += 1
    for season in SEASONS:
        n_true, n_false = seasons[season]
        if n_true + n_false + 1 < MIN_SEASON_COUNT:
            weight = 0.0
        else:
            weight = _smoothed_rate(n_true, n_false) - overall
        out.append(row("WEIGHTS", f"season_{season}", weight, "", overall,
                       notes="Season weight = true_rate(season) - overall_true_rate "
                             "(0 when the season sample size is below 30)."))

    pols = defaultdict(lambda: [0, 0])
    for record in records:
        pols[record.polarization or "OTHER"][0 if record.flooding else 1] += 1
    for pol in sorted(pols):
        n_true, n_false = pols[pol]
        out.append(row("WEIGHTS", f"pol_{pol}", _smoothed_rate(n_true, n_false) - overall, "", overall,
                       notes="Polarization weight = true_rate(pol) - overall_true_rate."))

    for side, prefix in (("dark", "black"), ("bright", "white")):
        counts = _shape_counts(records, side)
        for shape in sorted(counts):
            n_true, n_false = counts[shape]
            out.append(row("WEIGHTS", f"{prefix}_shape_{shape}", _smoothed_rate(n_true, n_false) - overall,
                           "", overall,
                           notes=f"{prefix.capitalize()} shape weight = true_rate(shape) - overall_true_rate."))
    return out


def build_xy_table_section(records: Sequence[ImageRecord]) -> List[Row]:
    """Empirical flood probability per season/polarization/shape combination.

    Only images with |z(raw_mean)| <= 1 are counted, and only combinations
    with at least 10 such images are listed.
    """
    out = [row("XY_TABLE", "COLUMNS", "total_images", "prob_true_percent", "count_true", "count_false",
               notes="metric_name encodes season, polarization, black_shape, white_shape; "
                     "counts cover images within |z_raw_mean| <= 1.")]

    values = [r.raw_mean for r in records if not np.isnan(r.raw_mean)]
    if not values:
        return out
    center, std = mean(values), float(np.std(values))
    if std == 0.0:
        return out

    combos: Dict[str, List[int]] = defaultdict(lambda: [0, 0])
    for record in records:
        if np.isnan(record.raw_mean) or abs((record.raw_mean - center) / std) > XY_Z_THRESHOLD:
            continue
        key = (
            f"season={_season(record)},pol={record.polarization},"
            f"black_shape={record.dark.shape or 'none'},white_shape={record.bright.shape or 'none'}"
        )
        combos[key][0 if record.flooding else 1] += 1

    for key in sorted(combos):
        n_true, n_false = combos[key]
        total = n_true + n_false
        if total < MIN_COMBO_COUNT:
            continue
        out.append(row("XY_TABLE", key, total, 100.0 * n_true / total, n_true, n_false))
    return out


def build_summary_rows(records: Sequence[ImageRecord]) -> List[Row]:
    """All Summary_All.csv rows, header included."""
    rows = [list(SUMMARY_HEADER)]
    if not records:
        rows.append(row("NOTE", "no_data", notes="No images produced data rows; summary is empty."))
        return rows

    rows.extend(build_stats_section(records))
    rows.extend(build_seasons_section(records))
    rows.extend(build_shapes_section(records))
    rows.extend(build_weights_section(records))
    rows.extend(build_xy_table_section(records))
    rows.append(row("DECISION_RULE", "score_formula", notes=DECISION_RULE))
    return rows
