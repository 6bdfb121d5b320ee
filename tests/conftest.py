"""Shared pytest fixtures for survbridge tests."""

import numpy as np
import pandas as pd
import pytest


@pytest.fixture
def random_seed():
    """Fixed random seed for reproducibility."""
    return 42


@pytest.fixture
def lung(random_seed):
    """Lung-cancer-like data: status coded 1 (censored) / 2 (dead)."""
    np.random.seed(random_seed)
    n_samples = 150

    age = np.round(np.random.normal(62, 9, n_samples))
    sex = np.random.choice([1, 2], size=n_samples)
    ph_ecog = np.random.choice([0.0, 1.0, 2.0], size=n_samples, p=[0.3, 0.5, 0.2])
    inst = np.random.choice([1, 2, 3], size=n_samples)

    risk = 0.03 * (age - 62) - 0.5 * (sex - 1) + 0.4 * ph_ecog
    event_time = np.random.exponential(scale=300 * np.exp(-risk))
    censor_time = np.random.exponential(scale=600, size=n_samples)

    return pd.DataFrame(
        {
            "time": np.ceil(np.minimum(event_time, censor_time)),
            "status": np.where(event_time <= censor_time, 2, 1),
            "age": age,
            "sex": sex,
            "ph.ecog": ph_ecog,
            "inst": inst,
        }
    )


@pytest.fixture
def bladder(random_seed):
    """Bladder-recurrence-like data: 0/1 events and a categorical treatment."""
    np.random.seed(random_seed + 1)
    n_samples = 120

    rx = np.random.choice(["placebo", "thiotepa"], size=n_samples)
    number = np.random.randint(1, 8, size=n_samples).astype(float)
    size = np.random.randint(1, 6, size=n_samples).astype(float)
    enum = np.random.choice([1, 2, 3, 4], size=n_samples)

    risk = 0.2 * number - 0.4 * (rx == "thiotepa")
    event_time = np.random.exponential(scale=30 * np.exp(-risk))
    censor_time = np.random.uniform(5, 60, size=n_samples)

    return pd.DataFrame(
        {
            "stop": np.ceil(np.minimum(event_time, censor_time)),
            "event": (event_time <= censor_time).astype(int),
            "rx": rx,
            "number": number,
            "size": size,
            "enum": enum,
        }
    )


@pytest.fixture
def lung_with_missing(lung):
    """Lung data with missing predictor values in rows 2 and 5."""
    data = lung.copy()
    data.loc[[2, 5], "ph.ecog"] = np.nan
    return data


@pytest.fixture
def eval_grid():
    """Evaluation times inside the follow-up of the lung fixture."""
    return [100.0, 200.0, 300.0, 400.0]
