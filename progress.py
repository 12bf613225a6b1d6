# progress.py — O(1) running statistics per account (no history re-scan)
#
# Each series keeps its own average AND its own sample count, so a GTO result
# never reweights the ICM average (and vice versa). Writes are versioned CAS,
# so two results recorded at once both land instead of one overwriting the other.

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

import db
from errors import ContentionError

CAS_ATTEMPTS = 8

# series -> (average column, sample-count column)
SERIES: Dict[str, tuple] = {
    "gto": ("gto_accuracy", "gto_samples"),
    "icm": ("icm_score", "icm_samples"),
    "win_rate": ("win_rate", "win_rate_samples"),
    "preflop": ("preflop_accuracy", "preflop_samples"),
    "postflop": ("postflop_accuracy", "postflop_samples"),
    "betting_size": ("betting_size_accuracy", "betting_size_samples"),
}

CORRECT_SAMPLE = 100.0
INCORRECT_SAMPLE = 0.0


def running_average(previous: float, n: int, sample: float) -> float:
    """Fold one sample into a mean of n prior samples: (prev*n + sample) / (n+1)."""
    n = max(0, int(n))
    return (float(previous) * n + float(sample)) / (n + 1)


def _pct(x: Any) -> float:
    # numeric(5,2) columns may come back as strings
    try:
        return float(x or 0.0)
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class ProgressRecord:
    user_id: str
    total_sessions: int = 0
    gto_accuracy: float = 0.0
    gto_samples: int = 0
    icm_score: float = 0.0
    icm_samples: int = 0
    win_rate: float = 0.0
    win_rate_samples: int = 0
    preflop_accuracy: float = 0.0
    preflop_samples: int = 0
    postflop_accuracy: float = 0.0
    postflop_samples: int = 0
    betting_size_accuracy: float = 0.0
    betting_size_samples: int = 0
    version: int = 0
    updated_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ProgressRecord":
        kwargs: Dict[str, Any] = {
            "user_id": str(row.get("user_id") or ""),
            "total_sessions": int(row.get("total_sessions") or 0),
            "version": int(row.get("version") or 0),
            "updated_at": row.get("updated_at"),
        }
        for avg_col, count_col in SERIES.values():
            kwargs[avg_col] = _pct(row.get(avg_col))
            kwargs[count_col] = int(row.get(count_col) or 0)
        return cls(**kwargs)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def zero_progress_row() -> Dict[str, Any]:
    row: Dict[str, Any] = {"total_sessions": 0, "version": 0}
    for avg_col, count_col in SERIES.values():
        row[avg_col] = 0.0
        row[count_col] = 0
    return row


class ProgressAggregator:
    """Sole writer of user_progress."""

    def __init__(self, sb=None):
        self.sb = sb

    def get_progress(self, account_id: str) -> ProgressRecord:
        """Creates the all-zero record on first access."""
        row = db.ensure_progress_row(account_id, zero_progress_row(), sb=self.sb)
        return ProgressRecord.from_row(row)

    def record_sample(
        self,
        account_id: str,
        series: str,
        sample: float,
        *,
        count_session: bool = False,
    ) -> ProgressRecord:
        """
        Fold a 0-100 sample into one series. Only that series' average/count change
        (plus total_sessions when count_session). Averages persist rounded to 2dp.
        """
        if series not in SERIES:
            raise ValueError(f"Unknown progress series: {series!r}")
        avg_col, count_col = SERIES[series]
        sample = min(100.0, max(0.0, float(sample)))

        for _ in range(CAS_ATTEMPTS):
            current = self.get_progress(account_id)
            n = getattr(current, count_col)

            updates = {
                avg_col: round(running_average(getattr(current, avg_col), n, sample), 2),
                count_col: n + 1,
            }
            if count_session:
                updates["total_sessions"] = current.total_sessions + 1

            row = db.cas_progress_row(account_id, current.version, updates, sb=self.sb)
            if row:
                return ProgressRecord.from_row(row)

        print(f"[progress.record_sample] CAS attempts exhausted user_id={account_id} series={series}")
        raise ContentionError("Could not update progress: record kept changing.")

    def record_outcome(self, account_id: str, scenario_type: str, is_correct: bool) -> ProgressRecord:
        """One scenario decision: 100 (correct) or 0 into the type's series, +1 total_sessions."""
        if scenario_type not in ("gto", "icm"):
            raise ValueError(f"Invalid scenario type: {scenario_type!r}")
        sample = CORRECT_SAMPLE if is_correct else INCORRECT_SAMPLE
        return self.record_sample(account_id, scenario_type, sample, count_session=True)
