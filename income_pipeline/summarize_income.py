# =============================================================================
# SUMMARIZE HOUSEHOLD INCOME
# =============================================================================
# - Aggregate land and water area by state
# - Compare average mean/median income by state, place type and city
# - Output report tables safe for direct BI consumption


import sys
from typing import Dict, List, Optional
import pandas as pd

from income_pipeline.pipeline_config import (
    CLEAN_DATA_PATH,
    INCOME_TABLE,
    REPORT_DATA_PATH,
    REPORT_LIMIT,
    STATE_RANK_LIMIT,
    STATISTICS_TABLE,
    TABLE_CONFIG,
    TYPE_MIN_ROWS,
)
from income_pipeline.pipeline_report import (
    exit_code,
    init_report,
    load_logical_table,
    log_error,
    write_table,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

JOIN_KEY = TABLE_CONFIG[STATISTICS_TABLE]['business_key']

AREA_ORDERINGS = ('sum_land', 'sum_water')
INCOME_ORDERINGS = ('avg_mean', 'avg_median')

DECIMALS = 1


# ------------------------------------------------------------
# AREA
# ------------------------------------------------------------

def area_by_state(df: pd.DataFrame,
                  order_by: str = 'sum_land',
                  limit: Optional[int] = REPORT_LIMIT
                  ) -> pd.DataFrame:
    """
    Total land and water area per state, largest first.
    """

    if order_by not in AREA_ORDERINGS:
        raise ValueError(f'order_by must be one of {AREA_ORDERINGS}, got {order_by!r}')

    areas = df.assign(
        ALand=pd.to_numeric(df['ALand'], errors='coerce'),
        AWater=pd.to_numeric(df['AWater'], errors='coerce'),
    )

    summary = (
        areas
        .groupby('State_Name', as_index=False)
        .agg(sum_land=('ALand', 'sum'), sum_water=('AWater', 'sum'))
        .sort_values([order_by, 'State_Name'], ascending=[False, True], kind='mergesort')
        .reset_index(drop=True)
    )

    return summary if limit is None else summary.head(limit)


# ------------------------------------------------------------
# INCOME
# ------------------------------------------------------------

def join_income_statistics(income_df: pd.DataFrame,
                           statistics_df: pd.DataFrame,
                           drop_zero_mean: bool = True,
                           key: str = JOIN_KEY
                           ) -> pd.DataFrame:
    """
    Inner join of income places with their statistics.

    Rows with Mean == 0 or null are placeholders and dropped by default.
    Overlapping statistics columns are suffixed with `_stats`.
    """

    joined = income_df.merge(statistics_df, on=key, how='inner', suffixes=('', '_stats'))

    if drop_zero_mean:
        joined = joined[joined['Mean'].ne(0) & joined['Mean'].notna()]

    return joined.reset_index(drop=True)


def income_by_state(joined: pd.DataFrame,
                    order_by: str = 'avg_mean',
                    ascending: bool = False,
                    limit: Optional[int] = None
                    ) -> pd.DataFrame:
    if order_by not in INCOME_ORDERINGS:
        raise ValueError(f'order_by must be one of {INCOME_ORDERINGS}, got {order_by!r}')

    summary = (
        joined
        .groupby('State_Name', as_index=False)
        .agg(avg_mean=('Mean', 'mean'), avg_median=('Median', 'mean'))
        .round({'avg_mean': DECIMALS, 'avg_median': DECIMALS})
        .sort_values([order_by, 'State_Name'], ascending=[ascending, True], kind='mergesort')
        .reset_index(drop=True)
    )

    return summary if limit is None else summary.head(limit)


def income_by_type(joined: pd.DataFrame,
                   min_rows: Optional[int] = None
                   ) -> pd.DataFrame:
    """
    Average income per place type with sample sizes.

    When min_rows is set, only types with more than min_rows rows are kept.
    """

    summary = (
        joined
        .groupby('Type', as_index=False)
        .agg(n_rows=('Mean', 'size'), avg_mean=('Mean', 'mean'), avg_median=('Median', 'mean'))
        .round({'avg_mean': DECIMALS, 'avg_median': DECIMALS})
    )

    if min_rows is not None:
        summary = summary[summary['n_rows'] > min_rows]

    return (
        summary
        .sort_values(['avg_mean', 'Type'], ascending=[False, True], kind='mergesort')
        .reset_index(drop=True)
    )


def income_by_city(joined: pd.DataFrame) -> pd.DataFrame:
    return (
        joined
        .groupby(['State_Name', 'City'], as_index=False)
        .agg(avg_mean=('Mean', 'mean'))
        .round({'avg_mean': DECIMALS})
        .sort_values(['avg_mean', 'State_Name', 'City'], ascending=[False, True, True], kind='mergesort')
        .reset_index(drop=True)
    )


# ------------------------------------------------------------
# REPORTS
# ------------------------------------------------------------

def build_reports(income_df: pd.DataFrame,
                  statistics_df: pd.DataFrame,
                  limit: int = REPORT_LIMIT,
                  type_min_rows: int = TYPE_MIN_ROWS,
                  rank_limit: int = STATE_RANK_LIMIT
                  ) -> Dict[str, pd.DataFrame]:
    joined = join_income_statistics(income_df, statistics_df)

    # City drill-down keeps zero-mean rows, matching the exploratory query it replaces
    joined_all = join_income_statistics(income_df, statistics_df, drop_zero_mean=False)

    return {
        'land_by_state': area_by_state(income_df, 'sum_land', limit),
        'water_by_state': area_by_state(income_df, 'sum_water', limit),
        'bottom_states_by_mean': income_by_state(joined, 'avg_mean', ascending=True, limit=rank_limit),
        'top_states_by_mean': income_by_state(joined, 'avg_mean', ascending=False, limit=rank_limit),
        'states_by_median': income_by_state(joined, 'avg_median', ascending=False),
        'states_by_median_ascending': income_by_state(joined, 'avg_median', ascending=True),
        'income_by_type': income_by_type(joined),
        'income_by_type_well_represented': income_by_type(joined, min_rows=type_min_rows),
        'income_by_city': income_by_city(joined_all),
    }


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    income_df = load_logical_table(CLEAN_DATA_PATH, INCOME_TABLE, report)
    statistics_df = load_logical_table(CLEAN_DATA_PATH, STATISTICS_TABLE, report)

    if income_df is not None and statistics_df is not None:
        try:
            reports = build_reports(income_df, statistics_df)

        except KeyError as e:
            log_error(f'Report aggregation failed: missing column {e}', report)
            reports = {}

        for report_name, summary in reports.items():
            write_table(summary, REPORT_DATA_PATH, report_name, report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
