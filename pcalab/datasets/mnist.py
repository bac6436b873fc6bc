"""
Loaders for handwritten digit images.

Three sources are supported:

* ``openml``: the full MNIST set (70000 28x28 images) downloaded through
  scikit-learn's OpenML fetcher, split into the usual 60000 training and
  10000 test images.
* ``digits``: scikit-learn's bundled 8x8 digits (1797 images), split
  75/25. Needs no network access.
* a path to an ``.npz`` file with ``train_images``, ``train_labels``,
  ``test_images`` and ``test_labels`` arrays.
"""

import os
import logging
import numpy as np
from typing import Any, Dict, Optional
from sklearn import datasets
from sklearn.model_selection import train_test_split

logger = logging.getLogger(__name__)

MNIST_N_TRAIN = 60000
NPZ_KEYS = ('train_images', 'train_labels', 'test_images', 'test_labels')


def _split(images: np.ndarray, labels: np.ndarray,
           train_idx: np.ndarray, test_idx: np.ndarray) -> Dict[str, Dict[str, np.ndarray]]:
    return {
        'train': {'images': images[train_idx], 'labels': labels[train_idx]},
        'test': {'images': images[test_idx], 'labels': labels[test_idx]}
    }


def _load_openml(data_home: Optional[str]) -> Dict[str, Dict[str, np.ndarray]]:
    logger.info("Fetching mnist_784 from OpenML")
    images, labels = datasets.fetch_openml('mnist_784', version=1, return_X_y=True,
                                           as_frame=False, data_home=data_home)
    images = np.asarray(images, dtype=float)
    labels = np.asarray(labels).astype(int)
    idx = np.arange(len(labels))
    return _split(images, labels, idx[:MNIST_N_TRAIN], idx[MNIST_N_TRAIN:])


def _load_digits(seed: int) -> Dict[str, Dict[str, np.ndarray]]:
    bunch = datasets.load_digits()
    images = np.asarray(bunch.data, dtype=float)
    labels = np.asarray(bunch.target, dtype=int)
    train_idx, test_idx = train_test_split(np.arange(len(labels)), test_size=0.25,
                                           random_state=seed, stratify=labels)
    return _split(images, labels, np.sort(train_idx), np.sort(test_idx))


def _load_npz(path: str) -> Dict[str, Dict[str, np.ndarray]]:
    if not os.path.exists(path):
        raise FileNotFoundError(f"MNIST file not found: {path}")
    with np.load(path) as npz:
        missing = [key for key in NPZ_KEYS if key not in npz.files]
        if missing:
            raise ValueError(f"{path} is missing arrays: {missing}")
        train_images = np.asarray(npz['train_images'], dtype=float)
        test_images = np.asarray(npz['test_images'], dtype=float)
        result = {
            'train': {'images': train_images.reshape(len(train_images), -1),
                      'labels': np.asarray(npz['train_labels']).astype(int)},
            'test': {'images': test_images.reshape(len(test_images), -1),
                     'labels': np.asarray(npz['test_labels']).astype(int)}
        }
    for part in ('train', 'test'):
        if len(result[part]['images']) != len(result[part]['labels']):
            raise ValueError(f"{path}: {part} images and labels differ in length")
    return result


def _subsample(part: Dict[str, np.ndarray], n: Optional[int],
               rng: np.random.Generator, name: str) -> Dict[str, np.ndarray]:
    if n is None:
        return part
    available = len(part['labels'])
    if not 1 <= n <= available:
        raise ValueError(f"Requested {n} {name} images, only {available} available")
    idx = np.sort(rng.choice(available, size=n, replace=False))
    return {'images': part['images'][idx], 'labels': part['labels'][idx]}


def load_mnist(source: str = 'digits',
               n_train: Optional[int] = None,
               n_test: Optional[int] = None,
               seed: int = 1988,
               data_home: Optional[str] = None) -> Dict[str, Any]:
    """
    Load digit images as flattened pixel rows.

    Args:
        source: 'digits', 'openml', or a path to an .npz file
        n_train: Random subsample size for the training set (all if None)
        n_test: Random subsample size for the test set (all if None)
        seed: Seed for the split and the subsamples
        data_home: Cache directory for the OpenML download

    Returns:
        Dictionary {'train': {'images', 'labels'}, 'test': {'images', 'labels'}}
    """
    if source == 'openml':
        data = _load_openml(data_home)
    elif source == 'digits':
        data = _load_digits(seed)
    elif isinstance(source, str) and source.endswith('.npz'):
        data = _load_npz(source)
    else:
        raise ValueError(f"Unknown MNIST source: {source!r}")

    rng = np.random.default_rng(seed)
    data['train'] = _subsample(data['train'], n_train, rng, 'training')
    data['test'] = _subsample(data['test'], n_test, rng, 'test')

    logger.info(f"Loaded {len(data['train']['labels'])} training and "
                f"{len(data['test']['labels'])} test images from {source}")
    return data
