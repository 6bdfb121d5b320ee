"""CLI for rewriting and validating model formulas."""

import argparse
import json
import sys

from ..errors import ConfigurationError
from ..formula import (
    check_strata_remaining,
    drop_strata,
    find_strata,
    parse_expression,
    parse_formula,
)


def rewrite(text: str) -> dict:
    """Remove top-level strata terms from a formula or right-hand side.

    Args:
        text: ``Surv(time, event) ~ rhs`` or a bare right-hand side.

    Returns:
        Dictionary with the input, the rewritten formula and the extracted
        strata variables.

    Raises:
        ConfigurationError: If the text does not parse or a strata term is
            left after rewriting.
    """
    if "~" in text:
        formula = parse_formula(text)
        rhs = formula.rhs
        rewritten = formula.with_rhs(drop_strata(rhs))
        remaining = rewritten.rhs
    else:
        rhs = parse_expression(text)
        rewritten = drop_strata(rhs)
        remaining = rewritten

    check_strata_remaining(remaining)
    return {
        "input": text,
        "formula": str(rewritten),
        "strata": find_strata(rhs),
    }


def main() -> int:
    """Main entry point for formula CLI.

    Returns:
        Exit code.
    """
    parser = argparse.ArgumentParser(
        prog="survbridge-formula",
        description="Remove top-level strata() terms from a formula and check none remain.",
    )

    parser.add_argument(
        "formula",
        type=str,
        help='Formula, e.g. "Surv(time, status) ~ age + strata(sex)"',
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )

    args = parser.parse_args()

    try:
        result = rewrite(args.formula)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(result["formula"])
        if result["strata"]:
            print(f"strata: {', '.join(result['strata'])}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
