"""CLI for fitting a model specification and writing predictions."""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from ..fitting import fit
from ..predictions import PRED_COLUMN, unnest
from ..specs import ModelSpec

logger = logging.getLogger(__name__)


def _numbers(text: Optional[str]) -> Optional[List[float]]:
    """Parse a comma-separated list of numbers."""
    if text is None:
        return None
    return [float(value) for value in text.split(",") if value.strip()]


def run_prediction(
    spec_path: Path,
    formula: str,
    data_path: Path,
    new_data_path: Optional[Path] = None,
    type_: Optional[str] = None,
    time: Optional[List[float]] = None,
    quantile: Optional[List[float]] = None,
    penalty: Optional[List[float]] = None,
) -> pd.DataFrame:
    """Fit a specification on a CSV file and predict.

    Args:
        spec_path: JSON model specification.
        formula: Model formula.
        data_path: Training CSV.
        new_data_path: CSV to predict; defaults to the training data.
        type_: Prediction type.
        time: Evaluation times.
        quantile: Quantile levels.
        penalty: Penalty values; more than one switches to multi_predict.

    Returns:
        Predictions in long format (nested types are unnested).
    """
    spec = ModelSpec.from_json(spec_path)
    data = pd.read_csv(data_path)
    new_data = pd.read_csv(new_data_path) if new_data_path else data
    logger.info("Loaded %d training rows from %s", len(data), data_path)

    model_fit = fit(spec, formula, data)

    if penalty is not None and len(penalty) > 1:
        predictions = model_fit.multi_predict(
            new_data, type=type_, penalty=penalty, time=time, quantile=quantile
        )
    else:
        predictions = model_fit.predict(
            new_data,
            type=type_,
            time=time,
            quantile=quantile,
            penalty=penalty[0] if penalty else None,
        )

    if PRED_COLUMN in predictions.columns:
        return unnest(predictions)
    return predictions


def main() -> int:
    """Main entry point for predict CLI.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="survbridge-predict",
        description="Fit a JSON model specification on a CSV file and write predictions.",
    )

    parser.add_argument("--spec", type=Path, required=True, help="Path to model specification JSON")
    parser.add_argument("--formula", type=str, required=True, help='e.g. "Surv(time, status) ~ age"')
    parser.add_argument("--data", type=Path, required=True, help="Training data CSV")
    parser.add_argument("--new-data", type=Path, default=None, help="CSV to predict (default: training data)")
    parser.add_argument(
        "--type",
        type=str,
        choices=["time", "linear_pred", "survival", "hazard", "quantile"],
        default="time",
        help="Prediction type (default: time)",
    )
    parser.add_argument("--time", type=str, default=None, help="Comma-separated eval times")
    parser.add_argument("--quantile", type=str, default=None, help="Comma-separated quantile levels")
    parser.add_argument("--penalty", type=str, default=None, help="Comma-separated penalty values")
    parser.add_argument("--output", type=Path, default=None, help="Output CSV (default: stdout)")

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=True,
        help="Enable verbose logging",
    )

    parser.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress non-error output",
    )

    args = parser.parse_args()

    level = logging.ERROR if args.quiet else (logging.INFO if args.verbose else logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(message)s")

    for path in (args.spec, args.data, args.new_data):
        if path is not None and not path.exists():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1

    try:
        predictions = run_prediction(
            spec_path=args.spec,
            formula=args.formula,
            data_path=args.data,
            new_data_path=args.new_data,
            type_=args.type,
            time=_numbers(args.time),
            quantile=_numbers(args.quantile),
            penalty=_numbers(args.penalty),
        )
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        predictions.to_csv(args.output, index=False)
        logger.info("Wrote %d prediction rows to %s", len(predictions), args.output)
    else:
        predictions.to_csv(sys.stdout, index=False)

    return 0


if __name__ == "__main__":
    sys.exit(main())
