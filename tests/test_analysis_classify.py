import math

import numpy as np
import pandas as pd

from bfda.analysis.classify import (
    LOWER,
    N_MAX,
    UNCLASSIFIED,
    UPPER,
    classify_trajectories,
    classify_trajectory,
)

LOG3 = (math.log(1 / 3), math.log(3))


def test_first_crossing_wins():
    outcome, i = classify_trajectory(np.array([10, 20, 30]), np.array([0.5, 1.3, 2.0]), LOG3, n_max=30)
    assert outcome == UPPER
    assert i == 1


def test_lower_crossing():
    outcome, i = classify_trajectory(np.array([10, 20, 30]), np.array([-0.2, -0.4, -1.2]), LOG3, n_max=30)
    assert outcome == LOWER
    assert i == 2


def test_crossing_then_returning_inside_is_still_a_boundary_hit():
    outcome, i = classify_trajectory(np.array([10, 20, 30]), np.array([0.1, 1.5, 0.2]), LOG3, n_max=30)
    assert outcome == UPPER
    assert i == 1


def test_ceiling_survival_requires_row_at_n_max():
    outcome, i = classify_trajectory(np.array([10, 20, 30]), np.array([0.1, -0.3, 0.6]), LOG3, n_max=30)
    assert outcome == N_MAX
    assert i == 2

    outcome, i = classify_trajectory(np.array([10, 20]), np.array([0.1, -0.3]), LOG3, n_max=30)
    assert outcome == UNCLASSIFIED
    assert i is None


def test_touching_the_boundary_counts_as_crossing():
    outcome, _ = classify_trajectory(np.array([10, 20]), np.array([0.0, LOG3[1]]), LOG3, n_max=20)
    assert outcome == UPPER


def test_classify_trajectories_sorts_rows_within_id_and_keeps_id_order():
    sim = pd.DataFrame(
        {
            "id": ["b", "b", "b", "a", "a"],
            "n": [30, 10, 20, 20, 10],
            "logBF": [2.0, 0.5, 1.3, -0.1, 0.2],
            "boundary": 3.0,
            "p_value": [0.01, 0.4, 0.04, 0.6, 0.5],
        }
    )
    endpoints, unclassified = classify_trajectories(sim, LOG3, n_max=20)

    assert list(endpoints["id"]) == ["b", "a"]
    assert list(endpoints["outcome"]) == [UPPER, N_MAX]
    assert list(endpoints["n"]) == [20, 20]
    assert endpoints["p_value"].iloc[0] == 0.04
    assert unclassified == []
