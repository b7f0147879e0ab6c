"""Points and grade-boundary tables.

The built-in tables are the RQF BTEC National (2016) unit points and the
Extended Diploma (1080 GLH) boundaries. Alternative qualification schemes
can be loaded from JSON, e.g.

    {
      "name": "Extended Diploma",
      "points_table": {"60": {"U": 0, "P": 6, "M": 10, "D": 16}},
      "boundaries": [
        {"min_points": 90, "grade": "PPP", "ucas_points": 48},
        {"min_points": 0, "grade": "U", "ucas_points": 0}
      ]
    }

Boundary rows are kept in file order. They must already be strictly
descending and end with a zero threshold.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Dict, Tuple, Union

from pydantic import BaseModel, ConfigDict, field_validator

from .models import Grade, GradeBoundary

logger = logging.getLogger(__name__)


# Points per grade based on unit size (GLH)
POINTS_TABLE: Dict[int, Dict[Grade, int]] = {
    60: {Grade.U: 0, Grade.P: 6, Grade.M: 10, Grade.D: 16},
    90: {Grade.U: 0, Grade.P: 9, Grade.M: 15, Grade.D: 24},
    120: {Grade.U: 0, Grade.P: 12, Grade.M: 20, Grade.D: 32},
}

# Extended Diploma (1080 GLH), highest threshold first
GRADE_BOUNDARIES_1080: Tuple[GradeBoundary, ...] = (
    GradeBoundary(260, "D*D*D*", 168),
    GradeBoundary(250, "D*D*D", 160),
    GradeBoundary(230, "D*DD", 152),
    GradeBoundary(210, "DDD", 144),
    GradeBoundary(190, "DDM", 128),
    GradeBoundary(170, "DMM", 112),
    GradeBoundary(150, "MMM", 96),
    GradeBoundary(130, "MMP", 80),
    GradeBoundary(110, "MPP", 64),
    GradeBoundary(90, "PPP", 48),
    GradeBoundary(0, "U", 0),
)


class GradingScheme(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = "BTEC National Extended Diploma (1080 GLH)"
    points_table: Dict[int, Dict[Grade, int]]
    boundaries: Tuple[GradeBoundary, ...]

    @field_validator("points_table")
    @classmethod
    def _check_points(cls, table):
        if not table:
            raise ValueError("points_table must define at least one GLH value")
        for glh, mapping in table.items():
            missing = set(Grade) - set(mapping)
            if missing:
                names = sorted(g.value for g in missing)
                raise ValueError(f"GLH {glh}: missing points for grades {names}")
            if any(v < 0 for v in mapping.values()):
                raise ValueError(f"GLH {glh}: points must be non-negative")
            if mapping[Grade.U] != 0:
                raise ValueError(f"GLH {glh}: grade U must score 0 points")
            ordered = [mapping[g] for g in (Grade.U, Grade.P, Grade.M, Grade.D)]
            if any(lo >= hi for lo, hi in zip(ordered, ordered[1:])):
                raise ValueError(f"GLH {glh}: points must strictly increase U < P < M < D")
        return table

    @field_validator("boundaries")
    @classmethod
    def _check_boundaries(cls, rows):
        if not rows:
            raise ValueError("boundaries must contain at least one row")
        for upper, lower in zip(rows, rows[1:]):
            if lower.min_points >= upper.min_points:
                raise ValueError(
                    f"boundaries must be strictly descending "
                    f"({upper.grade}={upper.min_points}, {lower.grade}={lower.min_points})"
                )
        if rows[-1].min_points != 0:
            raise ValueError("the last boundary row must have min_points 0")
        if any(r.ucas_points < 0 for r in rows):
            raise ValueError("UCAS points must be non-negative")
        return rows

    @property
    def glh_values(self) -> Tuple[int, ...]:
        return tuple(sorted(self.points_table))

    @property
    def zero_grade(self) -> str:
        return self.boundaries[-1].grade


@lru_cache(maxsize=1)
def default_scheme() -> GradingScheme:
    return GradingScheme(points_table=POINTS_TABLE, boundaries=GRADE_BOUNDARIES_1080)


def scheme_to_dict(scheme: GradingScheme) -> dict:
    return {
        "name": scheme.name,
        "points_table": {
            str(glh): {g.value: pts for g, pts in mapping.items()}
            for glh, mapping in scheme.points_table.items()
        },
        "boundaries": [
            {"min_points": b.min_points, "grade": b.grade, "ucas_points": b.ucas_points}
            for b in scheme.boundaries
        ],
    }


def load_scheme(path: Union[str, Path]) -> GradingScheme:
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    scheme = GradingScheme.model_validate(data)
    logger.info(
        "Loaded grading scheme %r from %s (%d GLH sizes, %d boundaries)",
        scheme.name, path, len(scheme.points_table), len(scheme.boundaries),
    )
    return scheme


def save_scheme(scheme: GradingScheme, path: Union[str, Path]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(scheme_to_dict(scheme), indent=2), encoding="utf-8")
    return out
