"""
Feedback Evaluator Service

Maps swing metrics to a 0-100 composite score and one short coaching
message. Deterministic and total: every metrics record gets a result.
"""

from ..domain.analysis import FeedbackCategory, FeedbackResult, SwingMetrics


FEEDBACK_TEMPLATES: dict[FeedbackCategory, str] = {
    FeedbackCategory.POWERFUL: "Powerful swing! Keep that rhythm going.",
    FeedbackCategory.GOOD: "Good swing! Rotate your shoulders more to focus the power.",
    FeedbackCategory.LOW_ROTATION: "Not enough rotation. Turn your shoulders fully into the shot.",
    FeedbackCategory.SLOW_SWING: "Swing is too slow. Accelerate through contact.",
    FeedbackCategory.UNEVEN_RHYTHM: "Rhythm is uneven. Relax your shoulders and swing smoothly.",
}


class FeedbackEvaluator:
    """
    Scores a swing and picks a feedback category.

    Weights: rotation 40%, speed 30%, extension 20%, rhythm 10%.
    Each metric is capped to its typical range before weighting.
    """

    SHOULDER_TURN_CAP = 80.0
    ARM_SPEED_CAP = 100.0
    DISTANCE_CAP = 120.0
    RHYTHM_CAP = 100.0

    WEIGHTS = {
        "rotation": 40,
        "speed": 30,
        "extension": 20,
        "rhythm": 10,
    }

    POWERFUL_SCORE = 85
    GOOD_SCORE = 70
    MIN_ROTATION_RATIO = 0.5
    MIN_SPEED_RATIO = 0.4

    @staticmethod
    def _ratio(value: float, cap: float) -> float:
        return min(max(value, 0.0), cap) / cap

    @classmethod
    def ratios(cls, metrics: SwingMetrics) -> dict[str, float]:
        """Each metric normalized to 0-1 against its cap."""
        return {
            "rotation": cls._ratio(metrics.max_shoulder_turn, cls.SHOULDER_TURN_CAP),
            "speed": cls._ratio(metrics.peak_arm_speed, cls.ARM_SPEED_CAP),
            "extension": cls._ratio(metrics.contact_metrics.distance_from_core, cls.DISTANCE_CAP),
            "rhythm": cls._ratio(metrics.swing_rhythm, cls.RHYTHM_CAP),
        }

    @classmethod
    def calculate_score(cls, metrics: SwingMetrics) -> int:
        ratios = cls.ratios(metrics)
        weighted_sum = sum(ratios[name] * weight for name, weight in cls.WEIGHTS.items())
        return round(weighted_sum)

    @classmethod
    def select_category(cls, score: int, metrics: SwingMetrics) -> FeedbackCategory:
        """Ordered decision table, first match wins."""
        ratios = cls.ratios(metrics)
        if score > cls.POWERFUL_SCORE:
            return FeedbackCategory.POWERFUL
        elif score > cls.GOOD_SCORE:
            return FeedbackCategory.GOOD
        elif ratios["rotation"] < cls.MIN_ROTATION_RATIO:
            return FeedbackCategory.LOW_ROTATION
        elif ratios["speed"] < cls.MIN_SPEED_RATIO:
            return FeedbackCategory.SLOW_SWING
        else:
            return FeedbackCategory.UNEVEN_RHYTHM

    @classmethod
    def evaluate(cls, metrics: SwingMetrics) -> FeedbackResult:
        score = cls.calculate_score(metrics)
        category = cls.select_category(score, metrics)
        return FeedbackResult(
            score=score,
            category=category,
            feedback=FEEDBACK_TEMPLATES[category],
        )
