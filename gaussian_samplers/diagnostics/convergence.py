"""
Monte-Carlo convergence diagnostics.

The samplers return a single final iterate per call, so the diagnostics
here work on a batch of independent final iterates (one row per call)
and compare its first two moments with the target N(mu, Q^{-1}).
"""

from dataclasses import asdict, dataclass
from typing import Dict, Tuple

import numpy as np
import pandas as pd

from ..core.gaussian import GaussianDistribution


@dataclass
class MomentSummary:
    """Moment agreement between a batch of samples and the target."""
    name: str
    n_samples: int
    max_abs_mean_error: float
    max_mean_zscore: float
    relative_covariance_error: float


def empirical_moments(samples: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Empirical mean and covariance.

    Args:
        samples: Array of shape (n_samples, dimension)

    Returns:
        Tuple of (mean, covariance)
    """
    samples = np.atleast_2d(samples)
    return np.mean(samples, axis=0), np.atleast_2d(np.cov(samples.T))


def relative_covariance_error(samples: np.ndarray, covariance: np.ndarray) -> float:
    """Relative Frobenius error ||C_hat - C|| / ||C|| of the empirical covariance."""
    _, empirical = empirical_moments(samples)
    return float(np.linalg.norm(empirical - covariance) / np.linalg.norm(covariance))


def summarize(samples: np.ndarray, target: GaussianDistribution, name: str = "") -> MomentSummary:
    """Summarize how well a batch of samples matches the target moments."""
    samples = np.atleast_2d(samples)
    n = samples.shape[0]
    covariance = target.covariance()
    mean, _ = empirical_moments(samples)
    error = mean - target.mean_vector
    std_error = np.sqrt(np.diag(covariance) / n)
    return MomentSummary(
        name=name,
        n_samples=n,
        max_abs_mean_error=float(np.max(np.abs(error))),
        max_mean_zscore=float(np.max(np.abs(error) / std_error)),
        relative_covariance_error=relative_covariance_error(samples, covariance),
    )


def moment_report(samples: np.ndarray, target: GaussianDistribution) -> pd.DataFrame:
    """
    Per-coordinate comparison of empirical and target moments.

    Returns:
        DataFrame indexed by coordinate with empirical/target mean and
        variance, the standardized mean error and the variance ratio
    """
    samples = np.atleast_2d(samples)
    n = samples.shape[0]
    mean, cov = empirical_moments(samples)
    target_var = np.diag(target.covariance())
    df = pd.DataFrame({
        "empirical_mean": mean,
        "target_mean": target.mean_vector,
        "mean_zscore": (mean - target.mean_vector) / np.sqrt(target_var / n),
        "empirical_var": np.diag(cov),
        "target_var": target_var,
    })
    df["var_ratio"] = df["empirical_var"] / df["target_var"]
    df.index.name = "coordinate"
    return df


def compare_samplers(results: Dict[str, np.ndarray], target: GaussianDistribution) -> pd.DataFrame:
    """
    Tabulate moment agreement for several samplers on the same target.

    Args:
        results: Mapping sampler name -> samples of shape (n_samples, dimension)
        target: Target distribution

    Returns:
        DataFrame with one row per sampler, sorted by covariance error
    """
    rows = [asdict(summarize(samples, target, name)) for name, samples in results.items()]
    df = pd.DataFrame(rows)
    if df.empty:
        return df
    return df.sort_values("relative_covariance_error").reset_index(drop=True)
