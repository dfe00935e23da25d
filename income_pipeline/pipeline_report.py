# =============================================================================
# PIPELINE REPORT & INPUT-OUTPUT HELPERS
# =============================================================================
# - Accumulate errors, warnings and info messages for a single pipeline run
# - Load logical tables from one or more CSV files
# - Write stage outputs without touching raw data


import os
import glob
from typing import Dict, List, Optional
import pandas as pd

from income_pipeline.pipeline_config import CSV_ENCODING, TABLE_CONFIG


# ------------------------------------------------------------
# RUN REPORT & LOGS
# ------------------------------------------------------------

def init_report() -> Dict[str, List[str]]:

    return {
        'errors': [],
        'warnings': [],
        'info': []
    }


def log_info(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[INFO] {message}')
    report['info'].append(message)


def log_warning(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[WARNING] {message}')
    report['warnings'].append(message)


def log_error(message: str, report: Dict[str, List[str]]) -> None:
    print(f'[ERROR] {message}')
    report['errors'].append(message)


def exit_code(report: Dict[str, List[str]]) -> int:

    return 1 if report['errors'] else 0


# ------------------------------------------------------------
# INPUT-OUTPUT HELPERS
# ------------------------------------------------------------

def load_csv_file(csv_path: str, table_name: str,
                  report: Dict[str, List[str]],
                  encoding: str = CSV_ENCODING
                  ) -> Optional[pd.DataFrame]:
    try:
        df = pd.read_csv(csv_path, encoding=encoding)
        log_info(f'Loaded {table_name} file: {os.path.basename(csv_path)} ({len(df)} rows)', report)

        return df

    except (OSError, ValueError) as e:
        log_error(f'Failed to load {table_name} file {csv_path}: {e}', report)

        return None


def table_files(base_path: str, table_name: str) -> List[str]:
    """
    CSV files belonging to a logical table, sorted by name.

    Files are identified by filename prefix: <table_name>*.csv
    Files claimed by a longer configured table name sharing the prefix
    (US_Household_Income vs US_Household_Income_Statistics) are excluded.
    """

    pattern = os.path.join(base_path, f'{table_name}*.csv')
    longer_names = [
        name for name in TABLE_CONFIG
        if name != table_name and name.startswith(table_name)
    ]

    files = []
    for csv_path in sorted(glob.glob(pattern)):
        file_name = os.path.basename(csv_path)
        if any(file_name.startswith(name) for name in longer_names):

            continue

        files.append(csv_path)

    return files


def load_logical_table(base_path: str,
                       table_name: str,
                       report: Dict[str, List[str]],
                       encoding: str = CSV_ENCODING
                       ) -> Optional[pd.DataFrame]:
    """
    Load and concatenate all CSV files belonging to a logical table.
    """

    csv_files = table_files(base_path, table_name)

    if not csv_files:
        log_error(f'{table_name}: no files found in {base_path}', report)

        return None

    dfs = []
    for csv_path in csv_files:
        df = load_csv_file(csv_path, table_name, report, encoding)
        if df is not None:
            dfs.append(df)

    if not dfs:
        log_error(f'{table_name}: all matching files failed to load', report)

        return None

    combined_df = pd.concat(dfs, ignore_index=True)
    log_info(f'{table_name}: combined {len(csv_files)} file(s) into '
             f'{len(combined_df)} rows',
             report)

    return combined_df


def write_table(df: pd.DataFrame,
                output_path: str,
                table_name: str,
                report: Dict[str, List[str]]
                ) -> str:
    """
    Write a stage output as <output_path>/<table_name>.csv.
    Raw data is never the target.
    """

    os.makedirs(output_path, exist_ok=True)
    csv_path = os.path.join(output_path, f'{table_name}.csv')
    df.to_csv(csv_path, index=False)
    log_info(f'{table_name}: wrote {len(df)} rows to {csv_path}', report)

    return csv_path


# =============================================================================
# END OF SCRIPT
# =============================================================================
