import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy.spatial.distance import cdist
from sklearn.preprocessing import StandardScaler
from tqdm import tqdm

MAPPING_COLUMNS = [
    'doc_id', 'unit', 'x', 'y', 'x_jitter', 'y_jitter',
    'dominant_topic', 'dominant_probability', 'unit_topic_weight'
]

def scale_features(features: np.ndarray) -> np.ndarray:
    """Zero mean, unit variance per column (constant columns become 0)."""
    return StandardScaler().fit_transform(np.asarray(features, dtype=float))

def grid_coordinates(xdim: int, ydim: int, topo: str = 'hexagonal') -> np.ndarray:
    """
    Unit coordinates, row by row starting at the bottom left.

    Hexagonal grids shift every odd row half a unit to the right and pack
    rows sqrt(3)/2 apart, so all six neighbours sit at distance 1.
    """
    if topo not in ('hexagonal', 'rectangular'):
        raise ValueError(f"Unknown grid topology: {topo}")

    coords = []
    for row in range(ydim):
        for col in range(xdim):
            if topo == 'hexagonal':
                coords.append((col + 0.5 * (row % 2), row * np.sqrt(3) / 2))
            else:
                coords.append((float(col), float(row)))
    return np.array(coords)

class SelfOrganizingMap:
    """
    Online Kohonen map on a fixed 2-D grid.

    Training visits the rows in a fresh random order on every pass. The
    learning rate decays linearly from alpha[0] to alpha[1] and the
    neighbourhood radius from radius[0] to radius[1] over all updates. Units
    closer to the winner than the current radius move towards the input
    (bubble neighbourhood); the winner itself always moves.
    """

    def __init__(self, xdim: int = 6, ydim: int = 6, topo: str = 'hexagonal'):
        if xdim <= 0 or ydim <= 0:
            raise ValueError("Grid dimensions must be positive")
        self.xdim = xdim
        self.ydim = ydim
        self.topo = topo
        self.grid = grid_coordinates(xdim, ydim, topo)
        self.unit_distances = cdist(self.grid, self.grid)
        self.codes: Optional[np.ndarray] = None
        self.changes: Optional[np.ndarray] = None

    @property
    def n_units(self) -> int:
        return self.xdim * self.ydim

    def default_radius(self) -> Tuple[float, float]:
        return float(np.quantile(self.unit_distances, 2 / 3)), 0.0

    def train(self, data: np.ndarray, passes: int = 500, alpha: Tuple[float, float] = (0.05, 0.01),
              radius: Optional[Tuple[float, float]] = None, seed: Optional[int] = None,
              progress: bool = False) -> np.ndarray:
        """
        Train the codebook on ``data`` (rows = objects).

        Returns:
            The mean distance of each object to its winning unit, one value
            per pass. Compare these series to judge whether more passes help.
        """
        data = np.asarray(data, dtype=float)
        if data.ndim != 2 or len(data) == 0:
            raise ValueError("SOM training data must be a non-empty 2-D array")
        if passes <= 0:
            raise ValueError("passes must be positive")

        rng = np.random.RandomState(seed)
        n_objects = len(data)
        start = rng.choice(n_objects, size=self.n_units, replace=n_objects < self.n_units)
        codes = data[start].copy()

        radius_start, radius_end = radius if radius is not None else self.default_radius()
        alpha_start, alpha_end = alpha
        total_updates = passes * n_objects
        changes = np.zeros(passes)

        step = 0
        for current_pass in tqdm(range(passes), desc="SOM training", disable=not progress):
            pass_distance = 0.0
            for index in rng.permutation(n_objects):
                fraction = step / total_updates
                learning_rate = alpha_start - (alpha_start - alpha_end) * fraction
                threshold = radius_start - (radius_start - radius_end) * fraction
                if threshold < 1.0:
                    threshold = 0.5

                sample = data[index]
                squared = np.sum((codes - sample) ** 2, axis=1)
                winner = int(np.argmin(squared))
                pass_distance += np.sqrt(squared[winner])

                neighbours = self.unit_distances[winner] < threshold
                codes[neighbours] += learning_rate * (sample - codes[neighbours])
                step += 1
            changes[current_pass] = pass_distance / n_objects

        self.codes = codes
        self.changes = changes
        logging.info(
            f"Trained {self.xdim}x{self.ydim} {self.topo} SOM for {passes} passes, "
            f"final mean distance {changes[-1]:.4f}"
        )
        return changes

    def map(self, data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Winner-take-all assignment of every row to its nearest unit.

        Ties go to the lowest unit index, so the mapping is deterministic.

        Returns:
            (unit index per row, distance to that unit)
        """
        if self.codes is None:
            raise RuntimeError("SOM has not been trained")
        data = np.atleast_2d(np.asarray(data, dtype=float))
        distances = cdist(data, self.codes)
        units = np.argmin(distances, axis=1)
        return units, distances[np.arange(len(data)), units]

@dataclass(frozen=True, eq=False)
class SomMapping:
    table: pd.DataFrame
    changes: np.ndarray

def project_documents(result, som: SelfOrganizingMap, features: np.ndarray,
                      jitter: float = 0.3, seed: Optional[int] = None) -> SomMapping:
    """
    Build the per-document export table for a trained map.

    Args:
        result: TopicModelResult whose documents are being mapped.
        som: Map trained on ``features``.
        features: Scaled topic-probability rows, one per document of ``result``.
        jitter: Half-width of the uniform offset added to node coordinates.
        seed: Seed for the jitter, so plots stay stable between runs.
    """
    features = np.asarray(features, dtype=float)
    if features.shape != result.doc_topic.shape:
        raise ValueError(
            f"Feature shape {features.shape} does not match document-topic shape {result.doc_topic.shape}"
        )

    units, _ = som.map(features)
    coords = som.grid[units]
    offsets = np.random.RandomState(seed).uniform(-jitter, jitter, size=coords.shape)
    dominant = result.dominant_topics()
    rows = np.arange(len(units))

    table = pd.DataFrame({
        'doc_id': list(result.doc_ids),
        'unit': units,
        'x': coords[:, 0],
        'y': coords[:, 1],
        'x_jitter': coords[:, 0] + offsets[:, 0],
        'y_jitter': coords[:, 1] + offsets[:, 1],
        'dominant_topic': dominant,
        'dominant_probability': result.doc_topic[rows, dominant],
        'unit_topic_weight': som.codes[units, dominant]
    }, columns=MAPPING_COLUMNS)
    return SomMapping(table=table, changes=som.changes.copy())

def compare_training_budgets(data: np.ndarray, budgets: Sequence[int], xdim: int = 6, ydim: int = 6,
                             topo: str = 'hexagonal', seed: Optional[int] = None,
                             **train_kwargs) -> Dict[int, np.ndarray]:
    """Train one map per pass budget from the same seed; return each change series."""
    series = {}
    for passes in budgets:
        som = SelfOrganizingMap(xdim, ydim, topo)
        series[passes] = som.train(data, passes=passes, seed=seed, **train_kwargs)
    return series

def export_mapping(mapping: SomMapping, path: Union[str, Path]) -> None:
    """Write the flat mapping table for the external visualization tool."""
    mapping.table.to_csv(path, index=False)
    logging.info(f"SOM mapping exported to {path}")
