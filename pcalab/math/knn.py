"""
k-nearest-neighbour classification for pcalab.

This module provides a classifier that returns the proportion of votes
for each class among the k nearest training points, along with
confusion matrix and accuracy summaries of its predictions.
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, List, Optional
from sklearn.neighbors import KNeighborsClassifier
from sklearn.metrics import confusion_matrix as sk_confusion_matrix

from pcalab.utils.general import as_2d_array

logger = logging.getLogger(__name__)


class KNN3:
    """
    k-nearest-neighbour classifier with class vote proportions.

    Neighbours are found by Euclidean distance with uniform weights.
    """

    def __init__(self, k: int = 5):
        """
        Initialize the classifier.

        Args:
            k: Number of neighbours
        """
        if int(k) != k or k < 1:
            raise ValueError(f"k must be a positive integer, got {k}")
        self.k = int(k)
        self._model: Optional[KNeighborsClassifier] = None
        self.classes_: Optional[np.ndarray] = None
        self.n_features_: Optional[int] = None

    def fit(self, x: Any, y: Any) -> 'KNN3':
        """
        Store the training data.

        Args:
            x: Training data (observations x features)
            y: Class labels, one per observation

        Returns:
            self
        """
        x = as_2d_array(x)
        y = np.asarray(y)
        if y.ndim != 1 or len(y) != x.shape[0]:
            raise ValueError(f"Got {x.shape[0]} observations but {len(y)} labels")
        if self.k > x.shape[0]:
            raise ValueError(f"k={self.k} is larger than the {x.shape[0]} training points")
        if not np.all(np.isfinite(x)):
            raise ValueError("Training data must be finite")

        self._model = KNeighborsClassifier(n_neighbors=self.k, weights='uniform',
                                           algorithm='auto', metric='euclidean')
        self._model.fit(x, y)
        self.classes_ = self._model.classes_
        self.n_features_ = x.shape[1]

        logger.debug(f"Fitted KNN3(k={self.k}) on {x.shape[0]} points, "
                     f"{len(self.classes_)} classes")
        return self

    def _check_input(self, x: Any) -> np.ndarray:
        if self._model is None:
            raise RuntimeError("KNN3 must be fit before predicting")
        x = as_2d_array(x)
        if x.shape[1] != self.n_features_:
            raise ValueError(
                f"Got {x.shape[1]} features, classifier was fit on {self.n_features_}"
            )
        return x

    def predict_proba(self, x: Any) -> pd.DataFrame:
        """
        Proportion of neighbour votes for each class.

        Args:
            x: Data to classify

        Returns:
            DataFrame with one row per observation and one column per class
        """
        x = self._check_input(x)
        proba = self._model.predict_proba(x)
        return pd.DataFrame(proba, columns=list(self.classes_))

    def predict(self, x: Any) -> np.ndarray:
        """
        Predict the class with the most neighbour votes.

        Ties go to the class that sorts first.

        Args:
            x: Data to classify

        Returns:
            Array of predicted labels
        """
        proba = self.predict_proba(x).values
        return self.classes_[np.argmax(proba, axis=1)]


def _labels(y_pred: Any, y_true: Any) -> List[Any]:
    y_pred = np.asarray(y_pred)
    y_true = np.asarray(y_true)
    if y_pred.shape != y_true.shape:
        raise ValueError(f"Got {len(y_pred)} predictions for {len(y_true)} reference labels")
    return list(np.unique(np.concatenate([y_pred, y_true])))


def confusion_matrix(y_pred: Any, y_true: Any) -> pd.DataFrame:
    """
    Cross-tabulate predictions against reference labels.

    Args:
        y_pred: Predicted labels
        y_true: Reference labels

    Returns:
        DataFrame with predictions as rows and references as columns
    """
    labels = _labels(y_pred, y_true)
    # sklearn puts the reference in rows
    counts = sk_confusion_matrix(np.asarray(y_true), np.asarray(y_pred), labels=labels)
    table = pd.DataFrame(counts.T, index=labels, columns=labels)
    table.index.name = 'Prediction'
    table.columns.name = 'Reference'
    return table


def accuracy(y_pred: Any, y_true: Any) -> float:
    """
    Fraction of predictions that match the reference labels.

    Args:
        y_pred: Predicted labels
        y_true: Reference labels

    Returns:
        Accuracy in [0, 1]
    """
    _labels(y_pred, y_true)
    y_true = np.asarray(y_true)
    if len(y_true) == 0:
        raise ValueError("Cannot compute accuracy of zero predictions")
    return float(np.mean(np.asarray(y_pred) == y_true))


def class_summary(y_pred: Any, y_true: Any) -> pd.DataFrame:
    """
    Per-class sensitivity and specificity.

    Args:
        y_pred: Predicted labels
        y_true: Reference labels

    Returns:
        DataFrame indexed by class with 'Sensitivity', 'Specificity'
        and 'Prevalence' columns
    """
    table = confusion_matrix(y_pred, y_true).values
    total = table.sum()
    tp = np.diag(table)
    ref_pos = table.sum(axis=0)
    pred_pos = table.sum(axis=1)
    fp = pred_pos - tp
    tn = total - ref_pos - fp

    with np.errstate(divide='ignore', invalid='ignore'):
        sensitivity = np.where(ref_pos > 0, tp / ref_pos, np.nan)
        neg = total - ref_pos
        specificity = np.where(neg > 0, tn / neg, np.nan)

    return pd.DataFrame({
        'Sensitivity': sensitivity,
        'Specificity': specificity,
        'Prevalence': ref_pos / total if total else np.zeros_like(ref_pos, dtype=float)
    }, index=_labels(y_pred, y_true))
