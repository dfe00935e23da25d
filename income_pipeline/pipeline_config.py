# =============================================================================
# PIPELINE CONFIGURATION
# =============================================================================
# - Declare input/output locations for every pipeline stage
# - Declare logical tables with their business key and sequence id columns
# - Allow environment overrides for one-off runs


import os


# ------------------------------------------------------------
# LOCATIONS
# ------------------------------------------------------------

RAW_DATA_BASE_PATH = os.getenv('RAW_DATA_BASE_PATH', 'data/raw')
DEDUPLICATED_DATA_PATH = os.getenv('DEDUPLICATED_DATA_PATH', 'data/deduplicated')
CLEAN_DATA_PATH = os.getenv('CLEAN_DATA_PATH', 'data/clean')
REPORT_DATA_PATH = os.getenv('REPORT_DATA_PATH', 'data/reports')

CSV_ENCODING = os.getenv('CSV_ENCODING', 'utf-8')


# ------------------------------------------------------------
# DEDUPLICATION
# ------------------------------------------------------------

DEDUP_STRATEGY = os.getenv('DEDUP_STRATEGY', 'grouped').lower()
DEDUP_BATCH_SIZE = int(os.getenv('DEDUP_BATCH_SIZE', '10000'))

DEDUP_STRATEGIES = ('grouped', 'batched')


# ------------------------------------------------------------
# REPORTING
# ------------------------------------------------------------

REPORT_LIMIT = int(os.getenv('REPORT_LIMIT', '10'))
STATE_RANK_LIMIT = int(os.getenv('STATE_RANK_LIMIT', '5'))
TYPE_MIN_ROWS = int(os.getenv('TYPE_MIN_ROWS', '100'))


# ------------------------------------------------------------
# TABLES
# ------------------------------------------------------------

INCOME_TABLE = 'US_Household_Income'
STATISTICS_TABLE = 'US_Household_Income_Statistics'

TABLE_CONFIG = {
    INCOME_TABLE: {
        'role': 'place_reference',
        'business_key': 'id',
        'sequence_id': 'row_id'
    },
    STATISTICS_TABLE: {
        'role': 'income_statistics',
        'business_key': 'id',
        'sequence_id': None
    },
}


# =============================================================================
# END OF SCRIPT
# =============================================================================
