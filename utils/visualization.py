import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
import seaborn as sns
from wordcloud import WordCloud
import numpy as np
import pandas as pd
from typing import Dict, List
from pathlib import Path

class VisualizationGenerator:
    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        plt.close('all')  # Ensure all figures are closed

    def generate_topic_count_plot(self, normalized_scores: pd.DataFrame) -> str:
        """Min-max scaled metric curves, minimizing metrics on top, maximizing below"""
        output_path = self.output_dir / "topic_count_metrics.png"

        try:
            plt.close('all')

            fig, axes = plt.subplots(2, 1, figsize=(10, 8), sharex=True)
            panels = [('minimize', 'Minimize'), ('maximize', 'Maximize')]
            for ax, (orientation, title) in zip(axes, panels):
                subset = normalized_scores[normalized_scores['orientation'] == orientation]
                if not subset.empty:
                    sns.lineplot(data=subset, x='topic_count', y='score', hue='metric',
                                 marker='o', ax=ax)
                ax.set_title(title)
                ax.set_ylabel('Scaled score')
            axes[-1].set_xlabel('Number of topics')

            plt.tight_layout()
            plt.savefig(output_path, dpi=300, bbox_inches='tight')
            return str(output_path)

        finally:
            plt.close('all')

    def generate_tfidf_distribution(self, tf_idf: pd.Series, threshold: float) -> str:
        """Histogram of tf-idf values with the cutoff marked"""
        output_path = self.output_dir / "tfidf_distribution.png"

        try:
            plt.close('all')

            fig, ax = plt.subplots(figsize=(10, 6))
            sns.histplot(tf_idf, bins=50, color='#4a90e2', ax=ax)
            ax.axvline(threshold, color='#f16a6a', linestyle='--', label=f'Cutoff ({threshold:.4f})')
            ax.set_title('tf-idf Distribution')
            ax.set_xlabel('tf-idf')
            ax.legend()

            plt.tight_layout()
            plt.savefig(output_path, dpi=300, bbox_inches='tight')
            return str(output_path)

        finally:
            plt.close('all')

    def generate_som_training_plot(self, changes: Dict[int, np.ndarray], suffix: str = "") -> str:
        """Mean distance to the winning unit per pass, one line per pass budget"""
        output_path = self.output_dir / f"som_training_progress{suffix}.png"

        try:
            plt.close('all')

            fig, ax = plt.subplots(figsize=(10, 6))
            for passes, series in sorted(changes.items()):
                ax.plot(np.arange(1, len(series) + 1), series, label=f'{passes} passes')
            ax.set_title('SOM Training Progress')
            ax.set_xlabel('Pass')
            ax.set_ylabel('Mean distance to closest unit')
            ax.legend()

            plt.tight_layout()
            plt.savefig(output_path, dpi=300, bbox_inches='tight')
            return str(output_path)

        finally:
            plt.close('all')

    def generate_som_mapping_plot(self, mapping: pd.DataFrame, grid: np.ndarray, suffix: str = "") -> str:
        """Documents on the map (jittered), coloured by dominant topic"""
        output_path = self.output_dir / f"som_mapping{suffix}.png"

        try:
            plt.close('all')

            fig, ax = plt.subplots(figsize=(10, 9))
            ax.scatter(grid[:, 0], grid[:, 1], s=900, facecolors='none', edgecolors='#d1d1d1')
            sns.scatterplot(data=mapping, x='x_jitter', y='y_jitter', hue='dominant_topic',
                            palette='tab20', s=25, ax=ax, legend='full')
            ax.set_title('Documents by Dominant Topic')
            ax.set_aspect('equal')
            ax.axis('off')

            plt.tight_layout()
            plt.savefig(output_path, dpi=300, bbox_inches='tight')
            return str(output_path)

        finally:
            plt.close('all')

    def generate_topic_wordclouds(self, top_terms: pd.DataFrame, prefix: str = "topic") -> List[str]:
        """One word cloud per topic, sized by term weight"""
        paths = []

        try:
            for topic, group in top_terms.groupby('topic'):
                plt.close('all')
                output_path = self.output_dir / f"{prefix}_{topic}_wordcloud.png"

                wordcloud = WordCloud(
                    width=800,
                    height=400,
                    background_color='white',
                    prefer_horizontal=0.7
                ).generate_from_frequencies(dict(zip(group['term'], group['weight'])))

                plt.figure(figsize=(10, 6))
                plt.imshow(wordcloud, interpolation='bilinear')
                plt.title(f'Topic {topic}')
                plt.axis('off')
                plt.savefig(output_path, dpi=150, bbox_inches='tight')
                paths.append(str(output_path))
            return paths

        finally:
            plt.close('all')
