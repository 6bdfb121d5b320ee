"""Baseline hazard and step-function helpers shared by engine adapters."""

from typing import Dict, Hashable, Optional, Sequence, Tuple

import numpy as np


def breslow_estimator(
    risk_scores: np.ndarray,
    event_times: np.ndarray,
    event_indicators: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """Estimate the baseline cumulative hazard using Breslow's method.

    Args:
        risk_scores: Linear predictors (log-hazard ratios).
            Shape: (n_samples,)
        event_times: Observed survival times.
            Shape: (n_samples,)
        event_indicators: Event indicators.
            Shape: (n_samples,)

    Returns:
        Tuple of (unique event times, cumulative hazard at those times).
        Both are empty when there are no events.
    """
    risk_scores = np.asarray(risk_scores, dtype=float).ravel()
    event_times = np.asarray(event_times, dtype=float).ravel()
    event_indicators = np.asarray(event_indicators).ravel().astype(bool)

    event_times_unique = np.unique(event_times[event_indicators])
    if len(event_times_unique) == 0:
        return event_times_unique, np.zeros(0)

    # Shift for numerical stability; the shift cancels in exp(lp) * H0.
    shift = risk_scores.max()
    exp_risks = np.exp(risk_scores - shift)

    increments = np.zeros(len(event_times_unique))
    for i, t in enumerate(event_times_unique):
        events_at_t = np.sum((event_times == t) & event_indicators)
        risk_sum = np.sum(exp_risks[event_times >= t])
        if risk_sum > 0:
            increments[i] = events_at_t / risk_sum

    return event_times_unique, np.cumsum(increments) * np.exp(-shift)


def evaluate_step_function(
    x: np.ndarray,
    y: np.ndarray,
    time_points: Sequence[float],
    before: float = 0.0,
) -> np.ndarray:
    """Evaluate a right-continuous step function at arbitrary times.

    Times before ``x[0]`` take ``before``; times past ``x[-1]`` keep the
    last value.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    time_points = np.asarray(time_points, dtype=float)

    idx = np.searchsorted(x, time_points, side="right") - 1
    values = np.full(len(time_points), before, dtype=float)
    inside = idx >= 0
    values[inside] = y[idx[inside]]
    return values


def evaluate_sksurv_functions(functions, time_points: Sequence[float], before: float = 1.0) -> np.ndarray:
    """Evaluate scikit-survival ``StepFunction`` objects.

    ``StepFunction.__call__`` rejects times outside the training domain, so
    the function is evaluated directly from its knots.

    Returns:
        Array of shape (n_functions, n_times).
    """
    rows = []
    for fn in functions:
        values = fn.a * np.asarray(fn.y, dtype=float) + fn.b
        rows.append(evaluate_step_function(fn.x, values, time_points, before=before))
    return np.vstack(rows) if rows else np.zeros((0, len(time_points)))


def restricted_mean_time(time_grid: np.ndarray, survival: np.ndarray) -> np.ndarray:
    """Area under step survival curves from 0 to the last grid time.

    Args:
        time_grid: Increasing positive times where the curves step.
        survival: Survival probabilities at ``time_grid``.
            Shape: (n_samples, n_times)

    Returns:
        Restricted mean survival time per sample.
    """
    time_grid = np.asarray(time_grid, dtype=float)
    survival = np.atleast_2d(np.asarray(survival, dtype=float))
    if len(time_grid) == 0:
        return np.zeros(survival.shape[0])

    widths = np.diff(time_grid)
    area = np.full(survival.shape[0], time_grid[0])
    if len(widths):
        area = area + survival[:, :-1] @ widths
    return area


class StratifiedBreslow:
    """Per-stratum Breslow baselines for a fixed vector of linear predictors.

    An unstratified model is the single-stratum case (``labels=None``).
    """

    def __init__(
        self,
        risk_scores: np.ndarray,
        event_times: np.ndarray,
        event_indicators: np.ndarray,
        labels: Optional[np.ndarray] = None,
    ):
        risk_scores = np.asarray(risk_scores, dtype=float).ravel()
        event_times = np.asarray(event_times, dtype=float).ravel()
        event_indicators = np.asarray(event_indicators).ravel()
        if labels is None:
            labels = np.zeros(len(risk_scores), dtype=int)
        labels = np.asarray(labels)

        self.baselines: Dict[Hashable, Tuple[np.ndarray, np.ndarray]] = {}
        for label in np.unique(labels):
            mask = labels == label
            self.baselines[label] = breslow_estimator(
                risk_scores[mask], event_times[mask], event_indicators[mask]
            )

    def cumulative_hazard(self, labels: Optional[np.ndarray], time_points: Sequence[float]) -> np.ndarray:
        """Baseline cumulative hazard per row. Shape: (n_rows, n_times)."""
        if labels is None:
            (only,) = self.baselines.values()
            return evaluate_step_function(*only, time_points)[np.newaxis, :]

        labels = np.asarray(labels)
        result = np.zeros((len(labels), len(time_points)))
        for label in np.unique(labels):
            if label not in self.baselines:
                raise ValueError(
                    f"Stratum {label!r} was not seen when the model was fit. "
                    f"Known strata: {sorted(self.baselines, key=str)}"
                )
            result[labels == label] = evaluate_step_function(*self.baselines[label], time_points)
        return result

    def survival(
        self,
        risk_scores: np.ndarray,
        time_points: Sequence[float],
        labels: Optional[np.ndarray] = None,
    ) -> np.ndarray:
        """Survival probabilities. Shape: (n_rows, n_times)."""
        hazard = self.cumulative_hazard(labels, time_points)
        exp_risks = np.exp(np.asarray(risk_scores, dtype=float).ravel())
        return np.exp(-hazard * exp_risks[:, np.newaxis])
