import pandas as pd
import pytest

from income_pipeline import audit_key_integrity as audit_module
from income_pipeline.audit_key_integrity import audit_key_integrity, find_missing_keys
from income_pipeline.deduplicate_records import deduplicate
from income_pipeline.pipeline_report import init_report


def test_find_missing_keys_anti_join():
    left = pd.DataFrame({'id': [3, 1, 2, 3, None]})
    right = pd.DataFrame({'id': [2, None]})

    assert find_missing_keys(left, right) == [1, 3]


def test_audit_reports_keys_missing_on_each_side(income_df, statistics_df):
    report = init_report()
    result = audit_key_integrity(deduplicate(income_df), statistics_df, report)

    assert result == {
        'income_only': [1011008],
        'statistics_only': [1011009],
        'statistics_duplicates': []
    }
    assert len(report['warnings']) == 2
    assert not report['errors']


def test_audit_duplicated_statistics_keys_are_errors(income_df, statistics_df):
    report = init_report()
    doubled = pd.concat([statistics_df, statistics_df.head(1)], ignore_index=True)
    result = audit_key_integrity(deduplicate(income_df), doubled, report)

    assert result['statistics_duplicates'] == [1011000]
    assert len(report['errors']) == 1


def test_audit_missing_key_column(income_df):
    report = init_report()
    result = audit_key_integrity(income_df, pd.DataFrame({'Mean': [1]}), report)

    assert result['income_only'] == []
    assert 'missing join key column' in report['errors'][0]


def test_main_exits_clean_with_warnings_only(income_df, raw_dir, tmp_path, monkeypatch):
    clean_dir = tmp_path / 'clean'
    clean_dir.mkdir()
    deduplicate(income_df).to_csv(clean_dir / 'US_Household_Income.csv', index=False)
    monkeypatch.setattr(audit_module, 'CLEAN_DATA_PATH', str(clean_dir))
    monkeypatch.setattr(audit_module, 'RAW_DATA_BASE_PATH', str(raw_dir))

    with pytest.raises(SystemExit) as exc:
        audit_module.main()

    assert exc.value.code == 0
