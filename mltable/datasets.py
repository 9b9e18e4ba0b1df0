"""Synthetic team survey data shaped like the teamstate example dataset."""

import pandas as pd
import numpy as np


def make_team_survey(n_teams: int = 10, team_size: int = 10, seed: int = 42) -> pd.DataFrame:
    """
    Build a team survey with the teamstate column layout.

    Columns (1-based positions): 1 Team, 2 Member, 3 Gender, 4 Age,
    5-14 PA1-PA10, 15-24 NA1-NA10, 25-28 PS1-PS4. Items are 1-7 ratings
    driven by a shared team factor so that group-level correlations exist.
    """
    rng = np.random.default_rng(seed)
    n = n_teams * team_size

    team_index = np.repeat(np.arange(n_teams), team_size)
    team_effect = rng.normal(0, 1, n_teams)[team_index]

    positive = team_effect + rng.normal(0, 1, n)
    negative = -0.5 * positive + rng.normal(0, 1, n)
    safety = 0.8 * team_effect + rng.normal(0, 0.7, n)

    def items(latent, n_items):
        raw = 4 + latent[:, None] + rng.normal(0, 0.8, (n, n_items))
        return np.clip(np.round(raw), 1, 7).astype(int)

    data = pd.DataFrame({
        'Team': [f"T{k + 1:02d}" for k in team_index],
        'Member': np.arange(1, n + 1),
        'Gender': rng.integers(0, 2, n),
        'Age': rng.normal(38, 10, n).round().astype(int),
    })
    for prefix, latent, n_items in [('PA', positive, 10), ('NA', negative, 10), ('PS', safety, 4)]:
        block = items(latent, n_items)
        for k in range(n_items):
            data[f"{prefix}{k + 1}"] = block[:, k]

    return data
