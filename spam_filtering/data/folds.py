"""
Deterministic k-fold partitioning for cross-validation.

The default policy assigns contiguous blocks in corpus order: fold i
gets rows [i*n//k, (i+1)*n//k). Nothing is shuffled, so two runs over
the same corpus always validate on the same rows.

Stratification is opt-in. It uses scikit-learn's StratifiedKFold without
shuffling, which keeps the ham/spam ratio of every fold close to the
corpus ratio while staying deterministic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Union

import numpy as np
from sklearn.model_selection import StratifiedKFold

from spam_filtering.exceptions import ConfigurationError


ArrayLike = Union[Sequence[int], np.ndarray]


@dataclass(frozen=True, eq=False)
class FoldAssignment:
    """Mapping from row index to fold id in [0, k)."""

    fold_ids: np.ndarray
    k: int

    @property
    def n(self) -> int:
        return int(len(self.fold_ids))

    def validation_indices(self, fold: int) -> np.ndarray:
        """Rows validated in the given fold."""
        self._check_fold(fold)
        return np.flatnonzero(self.fold_ids == fold)

    def training_indices(self, fold: int) -> np.ndarray:
        """Rows trained on in the given fold (the complement of its validation rows)."""
        self._check_fold(fold)
        return np.flatnonzero(self.fold_ids != fold)

    def fold_sizes(self) -> List[int]:
        return [int(size) for size in np.bincount(self.fold_ids, minlength=self.k)]

    def _check_fold(self, fold: int) -> None:
        if not 0 <= fold < self.k:
            raise IndexError(f"Fold index {fold} out of range for k={self.k}")


def validate_fold_count(n: int, k: int) -> None:
    """
    Raise ConfigurationError unless 2 <= k <= n.

    Parameters
    ----------
    n : int
        Number of samples.
    k : int
        Requested number of folds.
    """
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)):
        raise ConfigurationError(f"Number of folds must be an integer, got {k!r}")
    if k < 2:
        raise ConfigurationError(f"Number of folds must be at least 2, got {k}")
    if k > n:
        raise ConfigurationError(
            f"Number of folds ({k}) cannot exceed the number of samples ({n})"
        )


def partition(
    n: int,
    k: int,
    labels: Optional[ArrayLike] = None,
    stratify: bool = False,
) -> FoldAssignment:
    """
    Split n row indices into k disjoint validation folds.

    Parameters
    ----------
    n : int
        Number of samples.
    k : int
        Number of folds, 2 <= k <= n.
    labels : Optional[ArrayLike]
        Class labels, required when stratify is True.
    stratify : bool
        If True, balance classes across folds instead of using contiguous
        blocks.

    Returns
    -------
    FoldAssignment
        One fold id per row index.

    Raises
    ------
    ConfigurationError
        If k is out of range, or stratification is requested without
        labels of length n.
    """
    validate_fold_count(n, k)

    if stratify:
        return _stratified_partition(n, k, labels)

    fold_ids = np.empty(n, dtype=int)
    for fold in range(k):
        start = fold * n // k
        stop = (fold + 1) * n // k
        fold_ids[start:stop] = fold

    return FoldAssignment(fold_ids=fold_ids, k=k)


def _stratified_partition(n: int, k: int, labels: Optional[ArrayLike]) -> FoldAssignment:
    if labels is None:
        raise ConfigurationError("Stratified partitioning requires labels")

    y = np.asarray(labels)
    if len(y) != n:
        raise ConfigurationError(
            f"Stratified partitioning got {len(y)} labels for {n} samples"
        )

    splitter = StratifiedKFold(n_splits=k, shuffle=False)
    fold_ids = np.empty(n, dtype=int)
    try:
        for fold, (_, validation_idx) in enumerate(splitter.split(np.zeros(n), y)):
            fold_ids[validation_idx] = fold
    except ValueError as exc:
        # sklearn refuses when no class has at least k members.
        raise ConfigurationError(f"Cannot stratify {n} samples into {k} folds: {exc}") from exc

    return FoldAssignment(fold_ids=fold_ids, k=k)
