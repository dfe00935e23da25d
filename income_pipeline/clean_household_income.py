# =============================================================================
# CLEAN US HOUSEHOLD INCOME
# =============================================================================
# - Load raw income and statistics tables
# - Deduplicate income places, normalize categorical values, audit join keys
# - Write analysis-ready tables to the clean directory; raw data is untouched
# - Designed for a single deterministic run; exits non-zero on any error


import sys
from typing import Dict, List, Tuple
import pandas as pd

from income_pipeline.audit_key_integrity import audit_key_integrity
from income_pipeline.deduplicate_records import deduplicate_income_table
from income_pipeline.normalize_categories import normalize_income_table
from income_pipeline.pipeline_config import (
    CLEAN_DATA_PATH,
    DEDUP_BATCH_SIZE,
    DEDUP_STRATEGY,
    INCOME_TABLE,
    RAW_DATA_BASE_PATH,
    STATISTICS_TABLE,
)
from income_pipeline.pipeline_report import (
    exit_code,
    init_report,
    load_logical_table,
    log_error,
    write_table,
)


def run_pipeline(income_df: pd.DataFrame,
                 statistics_df: pd.DataFrame,
                 report: Dict[str, List[str]],
                 strategy: str = DEDUP_STRATEGY,
                 batch_size: int = DEDUP_BATCH_SIZE
                 ) -> Tuple[pd.DataFrame, Dict[str, List]]:
    """
    Deduplicate, normalize and audit. Raises PreconditionError when the
    income table cannot be deduplicated deterministically.
    """

    deduplicated = deduplicate_income_table(income_df, report, strategy, batch_size)
    clean_income = normalize_income_table(deduplicated, report)
    audit = audit_key_integrity(clean_income, statistics_df, report)

    return clean_income, audit


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    income_df = load_logical_table(RAW_DATA_BASE_PATH, INCOME_TABLE, report)
    statistics_df = load_logical_table(RAW_DATA_BASE_PATH, STATISTICS_TABLE, report)

    if income_df is None or statistics_df is None:
        sys.exit(1)

    try:
        clean_income, _ = run_pipeline(income_df, statistics_df, report)

    except ValueError as e:
        log_error(f'Pipeline aborted: {e}', report)

        sys.exit(1)

    if report['errors']:
        sys.exit(1)

    write_table(clean_income, CLEAN_DATA_PATH, INCOME_TABLE, report)
    write_table(statistics_df, CLEAN_DATA_PATH, STATISTICS_TABLE, report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
