# =============================================================================
# DEDUPLICATE RECORDS BY BUSINESS KEY
# =============================================================================
# - Keep exactly one record per business key: the one with the smallest sequence id
# - Offer a single in-memory pass and a bounded-batch removal pass (fixed point)
# - Apply the same bounded-batch removal directly against a SQLite store
# - Fail fast when sequence ids cannot break ties deterministically


import re
import sys
import sqlite3
from typing import Dict, List, Tuple
import pandas as pd

from income_pipeline.pipeline_config import (
    DEDUP_BATCH_SIZE,
    DEDUP_STRATEGIES,
    DEDUP_STRATEGY,
    DEDUPLICATED_DATA_PATH,
    INCOME_TABLE,
    RAW_DATA_BASE_PATH,
    TABLE_CONFIG,
)
from income_pipeline.pipeline_report import (
    exit_code,
    init_report,
    load_logical_table,
    log_error,
    log_info,
    write_table,
)


# ------------------------------------------------------------
# CONFIGURATIONS
# ------------------------------------------------------------

BUSINESS_KEY = TABLE_CONFIG[INCOME_TABLE]['business_key']
SEQUENCE_ID = TABLE_CONFIG[INCOME_TABLE]['sequence_id']

SQL_IDENTIFIER = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class PreconditionError(ValueError):
    """Table cannot be deduplicated deterministically."""


# ------------------------------------------------------------
# FATAL VALIDATION
# ------------------------------------------------------------

def validate_sequence_ids(df: pd.DataFrame,
                          sequence_id: str = SEQUENCE_ID,
                          business_key: str = BUSINESS_KEY
                          ) -> None:
    """
    Sequence id must be present, non-null and unique.
    Business key must be present and non-null.

    Any violation halts deduplication.
    """

    missing_columns = [c for c in (sequence_id, business_key) if c not in df.columns]
    if missing_columns:
        raise PreconditionError(f'missing column(s): {missing_columns}')

    null_sequence_count = int(df[sequence_id].isnull().sum())
    if null_sequence_count > 0:
        raise PreconditionError(
            f'{null_sequence_count} row(s) with null `{sequence_id}`'
            )

    duplicate_sequence_count = int(df[sequence_id].duplicated().sum())
    if duplicate_sequence_count > 0:
        raise PreconditionError(
            f'{duplicate_sequence_count} duplicated `{sequence_id}` value(s)'
            )

    null_key_count = int(df[business_key].isnull().sum())
    if null_key_count > 0:
        raise PreconditionError(
            f'{null_key_count} row(s) with null `{business_key}`'
            )


# ------------------------------------------------------------
# DUPLICATE INSPECTION
# ------------------------------------------------------------

def find_duplicate_keys(df: pd.DataFrame,
                        business_key: str = BUSINESS_KEY
                        ) -> pd.DataFrame:
    """
    Business keys that appear more than once, with their row counts.
    """

    if business_key not in df.columns:
        raise PreconditionError(f'missing column(s): {[business_key]}')

    counts = df.groupby(business_key).size().reset_index(name='cnt')

    return counts[counts['cnt'] > 1].reset_index(drop=True)


def label_duplicate_rows(df: pd.DataFrame,
                         business_key: str = BUSINESS_KEY,
                         sequence_id: str = SEQUENCE_ID
                         ) -> pd.DataFrame:
    """
    Number each row within its business key group by ascending sequence id.

    row_num == 1 marks the survivor; anything greater is a duplicate.
    """

    validate_sequence_ids(df, sequence_id, business_key)

    labelled = df[[sequence_id, business_key]].sort_values(sequence_id, kind='mergesort')
    labelled['row_num'] = labelled.groupby(business_key).cumcount() + 1

    return labelled.reset_index(drop=True)


# ------------------------------------------------------------
# DEDUPLICATION
# ------------------------------------------------------------

def deduplicate(df: pd.DataFrame,
                business_key: str = BUSINESS_KEY,
                sequence_id: str = SEQUENCE_ID
                ) -> pd.DataFrame:
    """
    Keep the row with the smallest sequence id for every business key.

    Returns a new frame ordered by sequence id. The input is not modified.
    """

    validate_sequence_ids(df, sequence_id, business_key)

    ordered = df.sort_values(sequence_id, kind='mergesort')
    survivors = ordered.drop_duplicates(subset=[business_key], keep='first')

    return survivors.reset_index(drop=True)


def find_removal_batch(df: pd.DataFrame,
                       batch_size: int,
                       business_key: str = BUSINESS_KEY,
                       sequence_id: str = SEQUENCE_ID
                       ) -> List:
    """
    Sequence ids of rows shadowed by a row with the same business key and a
    smaller sequence id, ascending, at most batch_size of them.
    """

    if df.empty:

        return []

    group_min = df.groupby(business_key)[sequence_id].transform('min')
    shadowed = df.loc[df[sequence_id] > group_min, sequence_id].sort_values()

    return shadowed.head(batch_size).tolist()


def deduplicate_in_batches(df: pd.DataFrame,
                           batch_size: int = DEDUP_BATCH_SIZE,
                           business_key: str = BUSINESS_KEY,
                           sequence_id: str = SEQUENCE_ID
                           ) -> Tuple[pd.DataFrame, int]:
    """
    Remove shadowed rows in bounded batches until a pass removes nothing.

    Returns the surviving rows ordered by sequence id and the number of
    passes run, the final zero-removal pass included.
    """

    if batch_size < 1:
        raise ValueError(f'batch_size must be >= 1, got {batch_size}')

    validate_sequence_ids(df, sequence_id, business_key)

    remaining = df
    passes = 0

    while True:
        batch = find_removal_batch(remaining, batch_size, business_key, sequence_id)
        passes += 1

        if not batch:

            break

        remaining = remaining[~remaining[sequence_id].isin(batch)]

    survivors = remaining.sort_values(sequence_id, kind='mergesort')

    return survivors.reset_index(drop=True), passes


def deduplicate_with_strategy(df: pd.DataFrame,
                              strategy: str = DEDUP_STRATEGY,
                              batch_size: int = DEDUP_BATCH_SIZE,
                              business_key: str = BUSINESS_KEY,
                              sequence_id: str = SEQUENCE_ID
                              ) -> pd.DataFrame:

    if strategy == 'grouped':

        return deduplicate(df, business_key, sequence_id)

    if strategy == 'batched':
        survivors, _ = deduplicate_in_batches(df, batch_size, business_key, sequence_id)

        return survivors

    raise ValueError(f'unknown dedup strategy {strategy!r}, expected one of {DEDUP_STRATEGIES}')


# ------------------------------------------------------------
# LIVE STORE DEDUPLICATION
# ------------------------------------------------------------

def _check_identifiers(*names: str) -> None:
    for name in names:
        if not SQL_IDENTIFIER.match(name):
            raise ValueError(f'not a plain SQL identifier: {name!r}')


def validate_sqlite_table(conn: sqlite3.Connection,
                          table: str,
                          business_key: str = BUSINESS_KEY,
                          sequence_id: str = SEQUENCE_ID
                          ) -> None:
    """
    Same preconditions as validate_sequence_ids, checked inside the store.
    """

    _check_identifiers(table, business_key, sequence_id)

    try:
        total, sequence_count, distinct_sequence_count, key_count = conn.execute(
            f'SELECT COUNT(*), COUNT("{sequence_id}"), '
            f'COUNT(DISTINCT "{sequence_id}"), COUNT("{business_key}") '
            f'FROM "{table}"'
        ).fetchone()
    except sqlite3.OperationalError as e:
        raise PreconditionError(f'{table}: {e}') from e

    if sequence_count != total:
        raise PreconditionError(
            f'{table}: {total - sequence_count} row(s) with null `{sequence_id}`'
            )

    if distinct_sequence_count != sequence_count:
        raise PreconditionError(
            f'{table}: {sequence_count - distinct_sequence_count} duplicated `{sequence_id}` value(s)'
            )

    if key_count != total:
        raise PreconditionError(
            f'{table}: {total - key_count} row(s) with null `{business_key}`'
            )


def deduplicate_sqlite_table(conn: sqlite3.Connection,
                             table: str,
                             batch_size: int = DEDUP_BATCH_SIZE,
                             business_key: str = BUSINESS_KEY,
                             sequence_id: str = SEQUENCE_ID
                             ) -> int:
    """
    Delete shadowed rows from a SQLite table in bounded batches.

    Each batch is one DELETE committed atomically. Runs until a batch
    deletes zero rows and returns the total number of rows deleted.
    Re-running on an already deduplicated table deletes nothing.
    """

    if batch_size < 1:
        raise ValueError(f'batch_size must be >= 1, got {batch_size}')

    validate_sqlite_table(conn, table, business_key, sequence_id)

    # t1 is shadowed when t2 shares its key with a smaller sequence id
    statement = f'''
        DELETE FROM "{table}"
        WHERE "{sequence_id}" IN (
            SELECT DISTINCT t1."{sequence_id}"
            FROM "{table}" t1
            JOIN "{table}" t2
              ON t1."{business_key}" = t2."{business_key}"
             AND t1."{sequence_id}" > t2."{sequence_id}"
            ORDER BY t1."{sequence_id}"
            LIMIT ?
        )
    '''

    total_deleted = 0

    while True:
        with conn:
            deleted = conn.execute(statement, (batch_size,)).rowcount

        if deleted == 0:

            break

        total_deleted += deleted

    return total_deleted


# ------------------------------------------------------------
# MAIN EXECUTION
# ------------------------------------------------------------

def deduplicate_income_table(df: pd.DataFrame,
                             report: Dict[str, List[str]],
                             strategy: str = DEDUP_STRATEGY,
                             batch_size: int = DEDUP_BATCH_SIZE
                             ) -> pd.DataFrame:
    validate_sequence_ids(df)

    duplicate_keys = find_duplicate_keys(df, BUSINESS_KEY)
    log_info(f'{INCOME_TABLE}: {len(duplicate_keys)} duplicated `{BUSINESS_KEY}` value(s)', report)

    deduplicated = deduplicate_with_strategy(df, strategy, batch_size)
    log_info(
        f'{INCOME_TABLE}: removed {len(df) - len(deduplicated)} duplicate row(s) '
        f'({strategy}), {len(deduplicated)} rows remain',
        report
        )

    return deduplicated


def main() -> None:
    report = init_report()

    df = load_logical_table(RAW_DATA_BASE_PATH, INCOME_TABLE, report)

    if df is not None:
        try:
            deduplicated = deduplicate_income_table(df, report)
            write_table(deduplicated, DEDUPLICATED_DATA_PATH, INCOME_TABLE, report)

        except ValueError as e:
            log_error(f'{INCOME_TABLE}: deduplication aborted: {e}', report)

    sys.exit(exit_code(report))


if __name__ == '__main__':
    main()


# =============================================================================
# END OF SCRIPT
# =============================================================================
