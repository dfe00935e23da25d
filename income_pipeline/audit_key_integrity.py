# =============================================================================
# AUDIT KEY INTEGRITY BETWEEN INCOME AND STATISTICS
# =============================================================================
# - Statistics must carry one row per business key
# - Report keys present on one side of the income/statistics join only
# - Never modify either table: findings go to the run report


import sys
from typing import Dict, List
import pandas as pd

from income_pipeline.deduplicate_records import find_duplicate_keys
from income_pipeline.pipeline_config import (
    CLEAN_DATA_PATH,
    INCOME_TABLE,
    RAW_DATA_BASE_PATH,
    STATISTICS_TABLE,
    TABLE_CONFIG,
)
from income_pipeline.pipeline_report import (
    exit_code,
    init_report,
    load_logical_table,
    log_error,
    log_info,
    log_warning,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

JOIN_KEY = TABLE_CONFIG[STATISTICS_TABLE]['business_key']

SAMPLE_SIZE = 10


# ------------------------------------------------------------
# ANTI-JOINS
# ------------------------------------------------------------

def find_missing_keys(left: pd.DataFrame,
                      right: pd.DataFrame,
                      key: str = JOIN_KEY
                      ) -> List:
    """
    Keys of `left` with no matching row in `right`, unique and sorted.
    Null keys never match and are not reported.
    """

    unmatched = ~left[key].isin(right[key].dropna())
    missing = left.loc[unmatched, key].dropna().drop_duplicates().sort_values()

    return missing.tolist()


# ------------------------------------------------------------
# CROSS-TABLE VALIDATIONS
# ------------------------------------------------------------

def audit_key_integrity(income_df: pd.DataFrame,
                        statistics_df: pd.DataFrame,
                        report: Dict[str, List[str]],
                        key: str = JOIN_KEY
                        ) -> Dict[str, List]:
    """
    Cross-table validations.

    Duplicated statistics keys would fan out the income join and are errors.
    Keys missing on either side only shrink the join and are warnings.
    """

    for table_name, df in ((INCOME_TABLE, income_df), (STATISTICS_TABLE, statistics_df)):
        if key not in df.columns:
            log_error(f'{table_name}: missing join key column `{key}`', report)

            return {
                'income_only': [],
                'statistics_only': [],
                'statistics_duplicates': []
            }

    duplicates = find_duplicate_keys(statistics_df, key)[key].tolist()
    if duplicates:
        log_error(
            f'{STATISTICS_TABLE}: {len(duplicates)} duplicated `{key}` value(s), '
            f'e.g. {duplicates[:SAMPLE_SIZE]}',
            report
            )

    else:
        log_info(f'{STATISTICS_TABLE}: no duplicated `{key}` values', report)

    income_only = find_missing_keys(income_df, statistics_df, key)
    if income_only:
        log_warning(
            f'{INCOME_TABLE}: {len(income_only)} `{key}` value(s) missing from {STATISTICS_TABLE}, '
            f'e.g. {income_only[:SAMPLE_SIZE]}',
            report
            )

    statistics_only = find_missing_keys(statistics_df, income_df, key)
    if statistics_only:
        log_warning(
            f'{STATISTICS_TABLE}: {len(statistics_only)} `{key}` value(s) missing from {INCOME_TABLE}, '
            f'e.g. {statistics_only[:SAMPLE_SIZE]}',
            report
            )

    return {
        'income_only': income_only,
        'statistics_only': statistics_only,
        'statistics_duplicates': duplicates
    }


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    income_df = load_logical_table(CLEAN_DATA_PATH, INCOME_TABLE, report)
    statistics_df = load_logical_table(RAW_DATA_BASE_PATH, STATISTICS_TABLE, report)

    if income_df is not None and statistics_df is not None:
        audit_key_integrity(income_df, statistics_df, report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
