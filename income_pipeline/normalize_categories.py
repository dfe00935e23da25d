# =============================================================================
# NORMALIZE CATEGORICAL VALUES
# =============================================================================
# - Correct known misspellings of state names and place types
# - Surface ambiguous labels without rewriting them
# - Fill the documented missing Place value from surrounding context
# - Report land/water area placeholders (zero, blank, null)


import sys
from typing import Dict, Iterable, List, Tuple
import pandas as pd

from income_pipeline.deduplicate_records import PreconditionError, find_duplicate_keys
from income_pipeline.pipeline_config import (
    CLEAN_DATA_PATH,
    DEDUPLICATED_DATA_PATH,
    INCOME_TABLE,
)
from income_pipeline.pipeline_report import (
    exit_code,
    init_report,
    load_logical_table,
    log_error,
    log_info,
    log_warning,
    write_table,
)


# ------------------------------------------------------------
# LOOKUP TABLES
# ------------------------------------------------------------

STATE_NAME_CORRECTIONS = {
    'georia': 'Georgia',
    'alabama': 'Alabama',
}

TYPE_CORRECTIONS = {
    'Boroughs': 'Borough',
}

# Not applied: CPD may be a typo of CDP (Census Designated Place), unconfirmed
UNRESOLVED_TYPE_MAPPINGS = {
    'CPD': 'CDP',
}

PLACE_FILL_RULES = [
    ({'County': 'Autauga County', 'City': 'Vinemont'}, 'Autaugaville'),
]

AREA_COLUMNS = ('ALand', 'AWater')


# ------------------------------------------------------------
# SUBSTITUTIONS
# ------------------------------------------------------------

def apply_corrections(df: pd.DataFrame,
                      column: str,
                      mapping: Dict[str, str]
                      ) -> Tuple[pd.DataFrame, int]:
    """
    Replace exact raw values in `column` with their corrected value.

    Returns a new frame and the number of cells changed.
    """

    if column not in df.columns:

        return df, 0

    mask = df[column].isin(list(mapping))
    corrected = df.copy()
    corrected.loc[mask, column] = corrected.loc[mask, column].map(mapping)

    return corrected, int(mask.sum())


def flag_unresolved_values(df: pd.DataFrame,
                           column: str,
                           mapping: Dict[str, str]
                           ) -> Dict[str, int]:
    if column not in df.columns:

        return {}

    counts = df.loc[df[column].isin(list(mapping)), column].value_counts()

    return {str(value): int(count) for value, count in counts.items()}


def fill_place_values(df: pd.DataFrame,
                      rules: List[Tuple[Dict[str, str], str]] = PLACE_FILL_RULES,
                      target: str = 'Place'
                      ) -> Tuple[pd.DataFrame, int]:
    """
    Set `target` on rows matching every column/value pair of a rule.
    """

    filled = df.copy()
    total = 0

    for conditions, value in rules:
        if target not in filled.columns or any(c not in filled.columns for c in conditions):

            continue

        mask = pd.Series(True, index=filled.index)
        for column, expected in conditions.items():
            mask &= filled[column] == expected

        filled.loc[mask, target] = value
        total += int(mask.sum())

    return filled, total


# ------------------------------------------------------------
# ANOMALY CHECKS
# ------------------------------------------------------------

def find_area_anomalies(df: pd.DataFrame,
                        columns: Iterable[str] = AREA_COLUMNS
                        ) -> Dict[str, int]:
    """
    Count rows per area column holding a placeholder: 0, blank or null.
    """

    anomalies = {}

    for column in columns:
        if column not in df.columns:

            continue

        values = df[column]
        is_null = values.isnull()
        is_blank = values.astype(str).str.strip() == ''
        is_zero = pd.to_numeric(values, errors='coerce') == 0

        anomalies[column] = int((is_null | is_blank | is_zero).sum())

    return anomalies


# ------------------------------------------------------------
# STAGE
# ------------------------------------------------------------

def normalize_income_table(df: pd.DataFrame,
                           report: Dict[str, List[str]]
                           ) -> pd.DataFrame:
    normalized, state_fixes = apply_corrections(df, 'State_Name', STATE_NAME_CORRECTIONS)
    log_info(f'{INCOME_TABLE}: corrected {state_fixes} `State_Name` value(s)', report)

    normalized, type_fixes = apply_corrections(normalized, 'Type', TYPE_CORRECTIONS)
    log_info(f'{INCOME_TABLE}: corrected {type_fixes} `Type` value(s)', report)

    for raw_value, count in flag_unresolved_values(normalized, 'Type', UNRESOLVED_TYPE_MAPPINGS).items():
        log_warning(
            f'{INCOME_TABLE}: {count} `Type` value(s) {raw_value!r} left unchanged, '
            f'possibly {UNRESOLVED_TYPE_MAPPINGS[raw_value]!r}; confirm with source',
            report
            )

    normalized, place_fills = fill_place_values(normalized)
    log_info(f'{INCOME_TABLE}: filled {place_fills} `Place` value(s)', report)

    for column, count in find_area_anomalies(normalized).items():
        if count > 0:
            log_info(f'{INCOME_TABLE}: {count} placeholder value(s) (0/blank/null) in `{column}`', report)

    return normalized


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def main() -> None:
    report = init_report()

    df = load_logical_table(DEDUPLICATED_DATA_PATH, INCOME_TABLE, report)

    if df is not None:
        try:
            duplicate_keys = find_duplicate_keys(df)

            if not duplicate_keys.empty:
                log_error(f'{INCOME_TABLE}: {len(duplicate_keys)} business key(s) still duplicated, '
                          f'run deduplicate_records first', report)

            else:
                normalized = normalize_income_table(df, report)
                write_table(normalized, CLEAN_DATA_PATH, INCOME_TABLE, report)

        except PreconditionError as e:
            log_error(f'{INCOME_TABLE}: normalization aborted: {e}', report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
