import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

import pandas as pd

from analyzers.ingestion import document_texts, load_publications, select_publications
from analyzers.som import (
    SelfOrganizingMap,
    compare_training_budgets,
    export_mapping,
    project_documents,
    scale_features,
)
from analyzers.statistics import topic_entropy
from analyzers.topic_models import (
    TopicModelResult,
    build_topic_model,
    coherence_quality,
    compare_top_terms,
)
from analyzers.topic_selection import TopicCountEvaluator, candidate_topic_counts
from analyzers.weighting import DocumentTermMatrix, TermWeightingEngine
from config import get_config
from configs.models import ModelConfig
from utils.report_generator import generate_pdf_report
from utils.text_processing import load_stop_words, normalize_documents
from utils.visualization import VisualizationGenerator

def parse_arguments(config: Dict[str, Any], argv: List[str] = None):
    """
    Parse command line arguments for the publication topic analysis.

    Defaults come from config.py; every flag overrides one setting.

    Returns:
        An argparse.Namespace with the parsed arguments.
    """
    parser = argparse.ArgumentParser(description='Publication Topic Analysis')
    parser.add_argument('-i', '--input', type=str, default=config['input_file'],
                        help='Spreadsheet (.xlsx) or CSV of publication records')
    parser.add_argument('-o', '--output', type=str, default=config['output_folder'],
                        help='Folder for tables, plots, the log and the report')
    parser.add_argument('--min-topics', type=int, default=config['min_topics'],
                        help='Smallest candidate number of topics')
    parser.add_argument('--max-topics', type=int, default=config['max_topics'],
                        help='Largest candidate number of topics (inclusive)')
    parser.add_argument('--topic-step', type=int, default=config['topic_step'],
                        help='Step between candidate topic counts')
    parser.add_argument('--skip-sweep', action='store_true',
                        help='Do not run the topic-count sweep')
    parser.add_argument('-m', '--sweep-model',
                        choices=list(ModelConfig.SUPPORTED_MODELS.keys()),
                        default='gibbs',
                        help=('Estimation procedure used for the topic-count sweep. gibbs samples token by '
                              'token in Python, about 6 minutes per k for 100k tokens at the default '
                              '300 sweeps; vem is much faster on large corpora'))
    parser.add_argument('-k', '--topics', type=int, nargs='+', default=[],
                        help='Topic count(s) chosen from the sweep; both procedures are fitted at each')
    parser.add_argument('--som-model',
                        choices=list(ModelConfig.SUPPORTED_MODELS.keys()),
                        default='vem',
                        help='Whose document-topic distributions are projected on the SOM')
    parser.add_argument('--seed', type=int, default=config['random_seed'],
                        help='Seed for every stochastic stage')
    parser.add_argument('--cutoff-quantile', type=float, default=config['tfidf_cutoff_quantile'],
                        help='Keep tf-idf entries strictly above this quantile (0.5 = median)')
    parser.add_argument('--som-passes', type=int, default=config['som_passes'],
                        help='Training passes for the exported SOM')
    parser.add_argument('--som-budgets', type=int, nargs='+', default=list(config['som_budgets']),
                        help='Pass budgets compared in the SOM training progress plot')
    parser.add_argument('--no-report', action='store_true',
                        help='Skip plots and the PDF report')
    parser.add_argument('-l', '--list-models', action='store_true',
                        help='List available topic model procedures')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')
    args = parser.parse_args(argv)

    if args.min_topics < 2 or args.min_topics > args.max_topics:
        parser.error("--min-topics must be at least 2 and not exceed --max-topics")
    if any(k < 2 for k in args.topics):
        parser.error("--topics values must be at least 2")
    if not 0 <= args.cutoff_quantile < 1:
        parser.error("--cutoff-quantile must be in [0, 1)")
    if args.topic_step <= 0:
        parser.error("--topic-step must be positive")
    if args.som_passes <= 0:
        parser.error("--som-passes must be positive")
    if any(passes <= 0 for passes in args.som_budgets):
        parser.error("--som-budgets values must be positive")
    return args

def model_params(key: str, config: Dict[str, Any], progress: bool = False) -> Dict[str, Any]:
    """Constructor arguments of a procedure, taken from the configuration."""
    if key == 'vem':
        return {
            'passes': config['lda_passes'],
            'iterations': config['lda_iterations'],
            'workers': config['lda_workers'],
            'top_n': config['top_terms']
        }
    return {
        'burn_in': config['gibbs_burn_in'],
        'iterations': config['gibbs_iterations'],
        'thin': config['gibbs_thin'],
        'beta': config['gibbs_beta'],
        'top_n': config['top_terms'],
        'progress': progress
    }

def prepare_corpus(input_path: str, config: Dict[str, Any], cutoff_quantile: float):
    """
    Ingestion, normalization and term weighting.

    Returns:
        (selected publications, all weights, retained weights, document-term matrix)
    """
    publications = load_publications(input_path)
    selected = select_publications(
        publications,
        language=config['language_code'],
        article_types=config['journal_article_types']
    )
    texts = document_texts(selected)

    tokens = normalize_documents(zip(texts['doc_id'], texts['text']), load_stop_words())
    engine = TermWeightingEngine(cutoff_quantile=cutoff_quantile)
    weights, retained, matrix = engine.run(tokens)
    return selected, weights, retained, matrix

def save_model_outputs(result: TopicModelResult, output_dir: Path, top_n: int) -> pd.DataFrame:
    label = f"{result.procedure}_k{result.topic_count}"
    terms = result.top_terms_frame(top_n)
    terms.to_csv(output_dir / f"topics_{label}.csv", index=False)
    result.doc_topic_frame().to_csv(output_dir / f"doc_topics_{label}.csv", index=False)

    coherence = f"{result.coherence:.4f}" if result.coherence is not None else "n/a"
    quality = coherence_quality(result.coherence)
    logging.info(f"{label}: coherence={coherence} ({quality}), log-likelihood={result.log_likelihood}")
    for topic, words in result.top_terms(top_n).items():
        logging.info(f"  {label} topic {topic}: {' '.join(words)}")
    return terms

def fit_models(matrix: DocumentTermMatrix, k: int, seed: int, config: Dict[str, Any],
               output_dir: Path) -> Dict[str, TopicModelResult]:
    """Fit every procedure at k and write their tables; failures skip that procedure."""
    results = {}
    for key in ModelConfig.SUPPORTED_MODELS:
        model = build_topic_model(key, **model_params(key, config))
        try:
            results[key] = model.fit(matrix, k, seed)
        except Exception as e:
            logging.error(f"Fitting {key} with k={k} failed: {str(e)}", exc_info=True)
            continue

        save_model_outputs(results[key], output_dir, config['top_terms'])
        if coherence_quality(results[key].coherence) == 'poor':
            logging.warning(f"{key} k={k}: poor coherence {results[key].coherence:.4f}, inspect the topics")

    if 'vem' in results and 'gibbs' in results:
        agreement = compare_top_terms(results['vem'], results['gibbs'], config['top_terms'])
        agreement.to_csv(output_dir / f"top_term_agreement_k{k}.csv", index=False)
        logging.info(f"k={k}: mean top-term Jaccard overlap {agreement['jaccard'].mean():.3f}")
    return results

def run_pipeline(args, config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Run the full analysis:
      1. Load, select and deduplicate publication records.
      2. Normalize text and weight terms (tf-idf with quantile cutoff).
      3. Sweep candidate topic counts and export the four metric series.
      4. Fit both procedures at each chosen topic count.
      5. Train the SOM on the chosen model's document-topic distributions
         and export the per-document mapping.
    """
    output_dir = Path(args.output)
    selected, weights, retained, matrix = prepare_corpus(args.input, config, args.cutoff_quantile)

    weights.to_csv(output_dir / 'tfidf_weights.csv', index=False)
    matrix.to_frame().to_csv(output_dir / 'document_term_matrix.csv')

    summary = {
        'Selected records': len(selected),
        'Weighted entries': len(weights),
        'Retained entries': len(retained),
        'Documents in matrix': matrix.n_docs,
        'Terms in matrix': matrix.n_terms
    }
    figures = []
    topic_terms = {}
    wide_scores = pd.DataFrame()

    viz = None if args.no_report else VisualizationGenerator(output_dir)
    if viz is not None and not weights.empty:
        threshold = float(weights['tf_idf'].quantile(args.cutoff_quantile))
        figures.append(viz.generate_tfidf_distribution(weights['tf_idf'], threshold))

    # Topic count sweep
    if not args.skip_sweep:
        sweep_model = build_topic_model(args.sweep_model, **model_params(args.sweep_model, config))
        evaluator = TopicCountEvaluator(sweep_model, seed=args.seed, progress=True)
        sweep = evaluator.evaluate(
            matrix, candidate_topic_counts(args.min_topics, args.max_topics, args.topic_step)
        )
        sweep.scores.to_csv(output_dir / 'topic_count_scores.csv', index=False)
        sweep.failures_frame().to_csv(output_dir / 'topic_count_failures.csv', index=False)
        wide_scores = sweep.to_wide()
        if not wide_scores.empty:
            logging.info(f"Topic count metrics:\n{wide_scores.to_string()}")
        if viz is not None and not sweep.scores.empty:
            figures.insert(0, viz.generate_topic_count_plot(sweep.normalized()))

    # Final fits and SOM at each chosen topic count
    for k in args.topics:
        results = fit_models(matrix, k, args.seed, config, output_dir)
        for key, result in results.items():
            topic_terms[f"{key} k={k}"] = result.top_terms_frame(config['top_terms'])
            summary[f"Topic entropy ({key} k={k})"] = topic_entropy(result.doc_topic)

        if args.som_model not in results:
            logging.warning(f"No {args.som_model} model for k={k}; skipping the SOM")
            continue

        result = results[args.som_model]
        features = scale_features(result.doc_topic)
        som = SelfOrganizingMap(config['som_xdim'], config['som_ydim'], 'hexagonal')
        som.train(features, passes=args.som_passes, seed=args.seed, progress=True)
        mapping = project_documents(result, som, features, jitter=config['som_jitter'], seed=args.seed)
        export_mapping(mapping, output_dir / f"som_mapping_k{k}.csv")

        budgets = compare_training_budgets(
            features, args.som_budgets, config['som_xdim'], config['som_ydim'], seed=args.seed
        )
        pd.DataFrame({
            f"passes_{passes}": pd.Series(series) for passes, series in budgets.items()
        }).to_csv(output_dir / f"som_changes_k{k}.csv", index_label='pass')

        if viz is not None:
            figures.append(viz.generate_som_training_plot(budgets, suffix=f"_k{k}"))
            figures.append(viz.generate_som_mapping_plot(mapping.table, som.grid, suffix=f"_k{k}"))
            figures.extend(viz.generate_topic_wordclouds(
                topic_terms[f"{args.som_model} k={k}"], prefix=f"{args.som_model}_k{k}_topic"
            ))

    if viz is not None:
        with viz:
            generate_pdf_report(
                str(output_dir / 'analysis_report.pdf'),
                summary,
                wide_scores,
                topic_terms,
                figures
            )

    return {
        'summary': summary,
        'topic_count_scores': wide_scores,
        'topic_terms': topic_terms
    }

def main(argv: List[str] = None):
    """
    Main entry point for the command-line usage.
    Performs:
      1. Configuration validation and argument parsing
      2. Optional listing of topic model procedures
      3. Logging setup (console + analysis.log in the output folder)
      4. The analysis pipeline
    """
    config = get_config()
    args = parse_arguments(config, argv)

    if args.list_models:
        print("\nAvailable topic model procedures:")
        for key, description in ModelConfig.list_available_models().items():
            print(f"  {key}: {description}")
        return

    os.makedirs(args.output, exist_ok=True)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(os.path.join(args.output, 'analysis.log'))
        ],
        force=True
    )

    try:
        logging.info(f"Analyzing {args.input} -> {args.output}")
        run_pipeline(args, config)
        logging.info("Processing complete.")
    except Exception as e:
        logging.error(f"Error in main execution: {str(e)}", exc_info=True)
        sys.exit(1)

if __name__ == "__main__":
    main()
