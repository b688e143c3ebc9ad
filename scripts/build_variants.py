#!/usr/bin/env python3
"""
Derive the four training tables and two test tables from one source table.

Usage:
  python scripts/build_variants.py --in data/bankruptcy.xlsx --out-dir data --k-features 20
"""
import argparse
import logging
import sys
from pathlib import Path

from sklearn.model_selection import train_test_split

from bankruptcy.data_processing import DataProcessor

logger = logging.getLogger("build_variants")


def parse_args(argv=None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Build original / balanced / selected dataset variants")
    ap.add_argument('--in', dest='in_path', required=True, help='Source table (.xlsx or .csv) with a label column')
    ap.add_argument('--out-dir', required=True, help='Directory for the generated spreadsheets')
    ap.add_argument('--label-column', default='class')
    ap.add_argument('--k-features', type=int, default=20, help='Number of features kept in the selected variants')
    ap.add_argument('--balance-method', default='undersample', choices=['undersample', 'oversample', 'smote'])
    ap.add_argument('--selection-method', default='f_classif', choices=['f_classif', 'mutual_info'])
    ap.add_argument('--test-size', type=float, default=0.2)
    ap.add_argument('--seed', type=int, default=42)
    ap.add_argument('--format', default='xlsx', choices=['xlsx', 'csv'])
    return ap.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")

    processor = DataProcessor(label_column=args.label_column, random_state=args.seed)
    try:
        df = processor.load_table(args.in_path)
        _, y = processor.prepare_features_target(df)
        train_df, test_df = train_test_split(
            df, test_size=args.test_size, random_state=args.seed, stratify=y
        )
        tables = processor.build_variants(
            train_df, test_df,
            k_features=args.k_features,
            balance_method=args.balance_method,
            selection_method=args.selection_method
        )
    except (FileNotFoundError, ValueError) as exc:
        logger.error("%s", exc)
        return 2

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    for name, table in tables.items():
        path = out_dir / f"{name}.{args.format}"
        if args.format == 'xlsx':
            table.to_excel(path, index=False)
        else:
            table.to_csv(path, index=False)
        logger.info(f"Wrote {path} ({table.shape[0]} rows, {table.shape[1] - 1} features)")
    return 0


if __name__ == '__main__':
    sys.exit(main())
