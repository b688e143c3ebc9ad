#!/usr/bin/env python3
"""
Predict CLI for a saved bankruptcy model bundle.
Usage:
  python scripts/predict_cli.py --bundle results/original/random_forest.joblib --in data/new_companies.xlsx --out predictions.csv
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np
import pandas as pd

from bankruptcy.data_processing import DataProcessor
from bankruptcy.model import ModelTrainer

logger = logging.getLogger("predict_cli")


def predict(bundle: dict, df: pd.DataFrame, threshold: Optional[float] = None) -> pd.DataFrame:
    cols = bundle.get('feature_columns')
    if cols is None:
        raise ValueError("Bundle has no feature_columns; re-save the model with its training columns")

    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"Input is missing model columns: {missing}")

    X = df[cols]
    if X.isnull().any().any():
        imputer = bundle.get('imputer')
        if imputer is None:
            raise ValueError("Input has missing values but the bundle has no training imputer")
        logger.info(f"Filling {int(X.isnull().sum().sum())} missing values with training statistics")
        X = pd.DataFrame(imputer.transform(X), columns=cols, index=X.index)

    tau = float(bundle['threshold'] if threshold is None else threshold)
    proba = ModelTrainer.predict_proba(bundle['model'], X)

    out = df.copy()
    out['prob_bankrupt'] = proba
    out['pred_label'] = (proba >= tau).astype(int)
    return out


def main(argv=None) -> int:
    ap = argparse.ArgumentParser()
    ap.add_argument('--bundle', required=True, help='Path to a .joblib bundle written by --save-models')
    ap.add_argument('--in', dest='in_path', required=True, help='Input spreadsheet or CSV with the model features')
    ap.add_argument('--out', required=True, help='Where to write predictions CSV')
    ap.add_argument('--threshold', type=float, default=None, help='Override the bundle threshold')
    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    try:
        bundle = ModelTrainer.load_model(args.bundle)
        df = DataProcessor().load_table(args.in_path)
        out_df = predict(bundle, df, args.threshold)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    Path(args.out).parent.mkdir(parents=True, exist_ok=True)
    out_df.to_csv(args.out, index=False)
    n_pos = int(np.sum(out_df['pred_label']))
    print(f"Saved {args.out} ({n_pos} of {len(out_df)} predicted bankrupt)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
