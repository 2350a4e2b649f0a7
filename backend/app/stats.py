from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from app.models.quiz_models import AttemptRecord

WEAK_AREA_THRESHOLD = 0.7


@dataclass
class CategoryStats:
    attempted: int = 0
    correct: int = 0

    @property
    def ratio(self) -> float:
        return self.correct / self.attempted if self.attempted else 0.0


@dataclass
class StatisticsSnapshot:
    total_attempted: int = 0
    correct_count: int = 0
    # insertion order = first time a category shows up in history
    category_accuracy: Dict[str, CategoryStats] = field(default_factory=dict)


def compute_statistics(history: Iterable[AttemptRecord]) -> StatisticsSnapshot:
    """Single pass over the full attempt history. Pure; recompute whenever history changes."""
    snapshot = StatisticsSnapshot()
    for record in history:
        snapshot.total_attempted += 1
        stats = snapshot.category_accuracy.setdefault(record.category, CategoryStats())
        stats.attempted += 1
        if record.is_correct:
            snapshot.correct_count += 1
            stats.correct += 1
    return snapshot


def accuracy_percent(correct: int, attempted: int) -> int:
    if attempted == 0:
        return 0
    return round(correct / attempted * 100)


def overall_accuracy(snapshot: StatisticsSnapshot) -> int:
    return accuracy_percent(snapshot.correct_count, snapshot.total_attempted)


def is_weak(stats: CategoryStats) -> bool:
    # 7/10 is not weak, 6/10 is
    return stats.attempted > 0 and stats.correct / stats.attempted < WEAK_AREA_THRESHOLD


def weak_areas(snapshot: StatisticsSnapshot) -> List[str]:
    return [name for name, stats in snapshot.category_accuracy.items() if is_weak(stats)]


def chart_rows(snapshot: StatisticsSnapshot) -> List[Dict]:
    """Per-category rows for the parent dashboard bar chart."""
    return [
        {
            "name": name,
            "attempted": stats.attempted,
            "correct": stats.correct,
            "accuracy": accuracy_percent(stats.correct, stats.attempted),
            "weak": is_weak(stats),
        }
        for name, stats in snapshot.category_accuracy.items()
    ]


def today_count(history: Iterable[AttemptRecord], now: Optional[datetime] = None) -> int:
    """Answers given on the current local calendar day (the dashboard's daily streak card)."""
    today = (now or datetime.now()).date()
    return sum(1 for r in history if datetime.fromtimestamp(r.timestamp / 1000).date() == today)
