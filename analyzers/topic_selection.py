import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from tqdm import tqdm

from analyzers.statistics import StatisticalAnalyzer
from analyzers.topic_models import TopicModelAdapter
from analyzers.weighting import DocumentTermMatrix
from configs.topic_config import TOPIC_CONFIG

SCORE_COLUMNS = ['topic_count', 'metric', 'score', 'orientation']
FAILURE_COLUMNS = ['topic_count', 'metric', 'error']

@dataclass(frozen=True)
class MetricFailure:
    topic_count: int
    metric: str
    error: str

@dataclass(frozen=True, eq=False)
class TopicCountSweep:
    """
    Scores of every metric at every candidate topic count.

    Nothing here picks a final k: the curves are meant to be inspected,
    looking for where the minimizing and maximizing metrics meet or level off.
    """
    scores: pd.DataFrame
    failures: Tuple[MetricFailure, ...] = field(default_factory=tuple)

    def to_wide(self) -> pd.DataFrame:
        """One row per topic count, one column per metric."""
        if self.scores.empty:
            return pd.DataFrame()
        return self.scores.pivot(index='topic_count', columns='metric', values='score').sort_index()

    def normalized(self) -> pd.DataFrame:
        """Min-max scale every metric to [0, 1] so the curves share an axis."""
        frame = self.scores.copy()
        if frame.empty:
            return frame
        grouped = frame.groupby('metric')['score']
        low = grouped.transform('min')
        span = grouped.transform('max') - low
        frame['score'] = ((frame['score'] - low) / span.where(span != 0)).fillna(0.0)
        return frame

    def failures_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [(f.topic_count, f.metric, f.error) for f in self.failures],
            columns=FAILURE_COLUMNS
        )

class TopicCountEvaluator:
    """
    Orchestrates one model fit per candidate topic count and scores it with
    the topic-count heuristics.

    Args:
        model: Estimation procedure used for every fit.
        metrics: Metric names from TOPIC_CONFIG['metrics'] (all by default).
        seed: Seed passed to every fit so that sweeps reproduce.
        progress: Show a tqdm progress bar.
    """

    def __init__(self, model: TopicModelAdapter, metrics: Optional[Sequence[str]] = None,
                 seed: Optional[int] = None, progress: bool = False):
        self.model = model
        self.orientations: Dict[str, str] = TOPIC_CONFIG['metrics']
        self.metrics = list(metrics) if metrics is not None else list(self.orientations)
        unknown = [m for m in self.metrics if m not in self.orientations]
        if unknown:
            raise ValueError(f"Unknown metrics: {', '.join(unknown)}")
        self.seed = seed
        self.progress = progress
        self.analyzer = StatisticalAnalyzer()

    def evaluate(self, matrix: DocumentTermMatrix, topic_counts: Iterable[int]) -> TopicCountSweep:
        """
        Fit and score every candidate count.

        A failing fit records one failure per metric for that count; a
        failing metric records just itself. Either way the sweep moves on.
        """
        rows: List[Dict] = []
        failures: List[MetricFailure] = []
        topic_counts = list(topic_counts)

        for k in tqdm(topic_counts, desc="Topic count sweep", disable=not self.progress):
            try:
                result = self.model.fit(matrix, k, self.seed)
            except Exception as e:
                logging.error(f"Fit with {self.model.name} failed for k={k}: {str(e)}")
                failures.extend(MetricFailure(k, metric, str(e)) for metric in self.metrics)
                continue

            for metric in self.metrics:
                try:
                    score = self.analyzer.compute(metric, result, matrix)
                except Exception as e:
                    logging.error(f"Metric {metric} failed for k={k}: {str(e)}")
                    failures.append(MetricFailure(k, metric, str(e)))
                    continue
                rows.append({
                    'topic_count': k,
                    'metric': metric,
                    'score': score,
                    'orientation': self.orientations[metric]
                })
            logging.debug(f"k={k}: scored {self.model.name} fit")

        if failures:
            logging.warning(f"{len(failures)} metric score(s) could not be computed")
        return TopicCountSweep(pd.DataFrame(rows, columns=SCORE_COLUMNS), tuple(failures))

def candidate_topic_counts(min_topics: int, max_topics: int, step: int = 1) -> List[int]:
    """Inclusive range of candidate topic counts."""
    if step <= 0:
        raise ValueError("step must be positive")
    return list(range(min_topics, max_topics + 1, step))
