"""Shared fixtures: small hand-built income and statistics tables."""

import pandas as pd
import pytest


@pytest.fixture
def income_df() -> pd.DataFrame:
    return pd.DataFrame({
        'row_id': [1, 2, 3, 4, 5, 6, 7],
        'id': [1011000, 1011005, 1011000, 1011006, 1011007, 1011005, 1011008],
        'State_Name': ['Alabama', 'alabama', 'Alabama', 'georia', 'Georgia', 'Alabama', 'Texas'],
        'County': ['Autauga County', 'Autauga County', 'Autauga County', 'Fulton County',
                   'Fulton County', 'Autauga County', 'Travis County'],
        'City': ['Prattville', 'Vinemont', 'Prattville', 'Atlanta', 'Atlanta', 'Vinemont', 'Austin'],
        'Place': ['Prattville', None, 'Prattville', 'Atlanta', 'Atlanta', None, 'Austin'],
        'Type': ['City', 'CPD', 'City', 'Boroughs', 'City', 'CPD', 'City'],
        'ALand': [100, 50, 100, 300, 200, 50, 400],
        'AWater': [10, 0, 10, 30, 20, 0, 0],
    })


@pytest.fixture
def statistics_df() -> pd.DataFrame:
    return pd.DataFrame({
        'id': [1011000, 1011005, 1011006, 1011007, 1011009],
        'State_Name': ['Alabama', 'Alabama', 'Georgia', 'Georgia', 'Ohio'],
        'Mean': [50000, 40000, 70000, 0, 60000],
        'Median': [45000, 38000, 65000, 0, 55000],
    })


@pytest.fixture
def raw_dir(tmp_path, income_df, statistics_df):
    raw = tmp_path / 'raw'
    raw.mkdir()
    income_df.to_csv(raw / 'US_Household_Income.csv', index=False)
    statistics_df.to_csv(raw / 'US_Household_Income_Statistics.csv', index=False)

    return raw
