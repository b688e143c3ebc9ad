#!/usr/bin/env python3
"""
Run the bankruptcy model benchmark over the dataset variants.

Usage:
  python scripts/run_experiments.py --data-dir data --output-dir results
  python scripts/run_experiments.py --config configs/quick.yaml --variants original balanced --models random_forest adaboost
"""
import argparse
import logging
import sys

# importing the package limits native threads before numpy, xgboost and lightgbm load
from bankruptcy.config import DEFAULT_MODELS, VARIANTS, load_config
from bankruptcy.experiment import ExperimentRunner
from bankruptcy.model import MODEL_NAMES

logger = logging.getLogger("run_experiments")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Grid-search and evaluate classifiers on the bankruptcy dataset variants")
    ap.add_argument('--config', default=None, help='Optional YAML config file')
    ap.add_argument('--data-dir', default=None, help='Directory holding the training and test spreadsheets')
    ap.add_argument('--output-dir', default=None, help='Where to write metrics, plots and models')
    ap.add_argument('--variants', nargs='+', choices=VARIANTS, default=None,
                    help=f'Dataset variants to run (default: {" ".join(VARIANTS)})')
    ap.add_argument('--models', nargs='+', choices=MODEL_NAMES, default=None,
                    help=f'Models to train (default: {" ".join(DEFAULT_MODELS)})')
    ap.add_argument('--n-jobs', type=int, default=None, help='Grid-search workers (-1 for all cores)')
    ap.add_argument('--weighting', choices=['balanced', 'ratio', 'none'], default=None,
                    help='Class-imbalance weighting scheme')
    ap.add_argument('--no-plots', action='store_true', help='Skip ROC / confusion matrix plots')
    ap.add_argument('--save-models', action='store_true', help='Save fitted model bundles')
    ap.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s - %(message)s")

    try:
        config = load_config(
            args.config,
            data_dir=args.data_dir,
            output_dir=args.output_dir,
            variants=args.variants,
            models=args.models,
            n_jobs=args.n_jobs,
            weighting=args.weighting,
            save_plots=False if args.no_plots else None,
            save_models=True if args.save_models else None,
        )
        summary = ExperimentRunner(config).run()
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    if summary.empty:
        logger.warning("No variants or models selected; nothing was trained")
        return 0

    print("\nSummary (best AUC first):")
    print(summary[["variant", "model", "auc", "threshold", "sensitivity", "specificity"]].to_string(index=False))
    return 0


if __name__ == '__main__':
    sys.exit(main())
