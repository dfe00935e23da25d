import pandas as pd
import pytest

from income_pipeline import summarize_income
from income_pipeline.deduplicate_records import deduplicate
from income_pipeline.normalize_categories import normalize_income_table
from income_pipeline.pipeline_report import init_report
from income_pipeline.summarize_income import (
    area_by_state,
    build_reports,
    income_by_city,
    income_by_state,
    income_by_type,
    join_income_statistics,
)


@pytest.fixture
def clean_income(income_df):
    return normalize_income_table(deduplicate(income_df), init_report())


@pytest.fixture
def joined(clean_income, statistics_df):
    return join_income_statistics(clean_income, statistics_df)


def test_area_by_state_orders_and_limits(clean_income):
    land = area_by_state(clean_income, 'sum_land', limit=2)

    assert land['State_Name'].tolist() == ['Georgia', 'Texas']
    assert land['sum_land'].tolist() == [500, 400]

    water = area_by_state(clean_income, 'sum_water', limit=None)
    assert water.to_dict('records')[0] == {'State_Name': 'Georgia', 'sum_land': 500, 'sum_water': 50}
    assert len(water) == 3


def test_area_by_state_coerces_blank_areas():
    df = pd.DataFrame({'State_Name': ['A', 'A'], 'ALand': ['10', ''], 'AWater': [1, 2]})

    assert area_by_state(df)['sum_land'].tolist() == [10.0]


def test_area_by_state_rejects_unknown_ordering(clean_income):
    with pytest.raises(ValueError):
        area_by_state(clean_income, 'sum_air')


def test_join_drops_zero_mean_rows(clean_income, statistics_df):
    joined = join_income_statistics(clean_income, statistics_df)
    joined_all = join_income_statistics(clean_income, statistics_df, drop_zero_mean=False)

    assert joined['id'].tolist() == [1011000, 1011005, 1011006]
    assert len(joined_all) == 4
    assert 'State_Name_stats' in joined.columns


def test_income_by_state(joined):
    top = income_by_state(joined)

    assert top.to_dict('records') == [
        {'State_Name': 'Georgia', 'avg_mean': 70000.0, 'avg_median': 65000.0},
        {'State_Name': 'Alabama', 'avg_mean': 45000.0, 'avg_median': 41500.0},
    ]
    assert income_by_state(joined, ascending=True, limit=1)['State_Name'].tolist() == ['Alabama']
    assert income_by_state(joined, 'avg_median')['State_Name'].tolist() == ['Georgia', 'Alabama']


def test_income_by_state_rounds_to_one_decimal():
    joined = pd.DataFrame({'State_Name': ['A'] * 3, 'Mean': [1, 1, 2], 'Median': [1, 2, 2]})

    assert income_by_state(joined).loc[0, 'avg_mean'] == 1.3


def test_income_by_type_with_sample_sizes(joined):
    by_type = income_by_type(joined)

    assert by_type['Type'].tolist() == ['Borough', 'City', 'CPD']
    assert by_type['n_rows'].tolist() == [1, 1, 1]
    assert income_by_type(joined, min_rows=1).empty


def test_income_by_city(clean_income, statistics_df):
    joined_all = join_income_statistics(clean_income, statistics_df, drop_zero_mean=False)
    by_city = income_by_city(joined_all)

    assert by_city.to_dict('records') == [
        {'State_Name': 'Alabama', 'City': 'Prattville', 'avg_mean': 50000.0},
        {'State_Name': 'Alabama', 'City': 'Vinemont', 'avg_mean': 40000.0},
        {'State_Name': 'Georgia', 'City': 'Atlanta', 'avg_mean': 35000.0},
    ]


def test_build_reports(clean_income, statistics_df):
    reports = build_reports(clean_income, statistics_df, limit=5, type_min_rows=0)

    assert set(reports) == {
        'land_by_state',
        'water_by_state',
        'bottom_states_by_mean',
        'top_states_by_mean',
        'states_by_median',
        'states_by_median_ascending',
        'income_by_type',
        'income_by_type_well_represented',
        'income_by_city',
    }
    assert len(reports['income_by_type_well_represented']) == 3


def test_main_writes_report_files(clean_income, statistics_df, tmp_path, monkeypatch):
    clean_dir = tmp_path / 'clean'
    clean_dir.mkdir()
    clean_income.to_csv(clean_dir / 'US_Household_Income.csv', index=False)
    statistics_df.to_csv(clean_dir / 'US_Household_Income_Statistics.csv', index=False)
    report_dir = tmp_path / 'reports'
    monkeypatch.setattr(summarize_income, 'CLEAN_DATA_PATH', str(clean_dir))
    monkeypatch.setattr(summarize_income, 'REPORT_DATA_PATH', str(report_dir))

    with pytest.raises(SystemExit) as exc:
        summarize_income.main()

    assert exc.value.code == 0
    top = pd.read_csv(report_dir / 'top_states_by_mean.csv')
    assert top['State_Name'].tolist() == ['Georgia', 'Alabama']


def test_join_drops_null_mean_rows(clean_income, statistics_df):
    statistics = statistics_df.assign(Mean=[50000, None, 70000, 0, 60000])
    joined = join_income_statistics(clean_income, statistics)

    assert joined['id'].tolist() == [1011000, 1011006]
    assert income_by_type(joined)['n_rows'].sum() == 2


def test_state_rankings_limited_and_ordered_both_ways():
    income = pd.DataFrame({
        'id': list(range(7)),
        'State_Name': [f'S{i}' for i in range(7)],
        'Type': ['City'] * 7,
        'City': [f'C{i}' for i in range(7)],
        'ALand': [1] * 7,
        'AWater': [1] * 7,
    })
    statistics = pd.DataFrame({
        'id': list(range(7)),
        'Mean': [10, 20, 30, 40, 50, 60, 70],
        'Median': [70, 60, 50, 40, 30, 20, 10],
    })
    reports = build_reports(income, statistics)

    assert reports['bottom_states_by_mean']['State_Name'].tolist() == ['S0', 'S1', 'S2', 'S3', 'S4']
    assert reports['top_states_by_mean']['State_Name'].tolist() == ['S6', 'S5', 'S4', 'S3', 'S2']
    assert reports['states_by_median']['State_Name'].tolist()[0] == 'S0'
    assert reports['states_by_median_ascending']['State_Name'].tolist()[0] == 'S6'
    assert len(reports['states_by_median_ascending']) == 7
