from __future__ import annotations

import logging
from pathlib import Path

from reprotrack.diff import (
    change_keys,
    change_tooltip,
    classify_change,
    compare_files,
    diff_snapshots,
    group_by_issue,
    issue_change,
    status_display,
)
from reprotrack.worst import WorstResult

from support import make_result, write_json


def test_identical_snapshots_have_no_diffs() -> None:
    snapshot = (
        make_result(1, "A/A.csproj", test_result="Success"),
        make_result(2, "B/B.csproj", test_result="Failed", last_run="2024-01-01"),
    )
    assert diff_snapshots(snapshot, snapshot) == []


def test_empty_snapshots_have_no_diffs() -> None:
    assert diff_snapshots((), ()) == []


def test_fixed_and_regression() -> None:
    failed = (make_result(1, "A/A.csproj", test_result="Failed"),)
    passed = (make_result(1, "A/A.csproj", test_result="Success"),)

    fixed = diff_snapshots(failed, passed)
    assert len(fixed) == 1
    assert fixed[0].change_type == "Fixed"
    assert fixed[0].baseline_status == "Failed"
    assert fixed[0].current_status == "Success"
    assert fixed[0].project_path == "a/a.csproj"

    regression = diff_snapshots(passed, failed)
    assert [record.change_type for record in regression] == ["Regression"]


def test_path_casing_is_one_artifact() -> None:
    baseline = (make_result(1, "A/B.csproj", test_result="Failed"),)
    current = (make_result(1, "a/b.csproj", test_result="Success"),)

    records = diff_snapshots(baseline, current)

    assert len(records) == 1
    assert records[0].change_type == "Fixed"


def test_duplicate_key_within_one_snapshot_keeps_last_row() -> None:
    baseline = (make_result(1, "A/B.csproj", test_result="Failed"),)
    first = make_result(1, "A/B.csproj", test_result="Failed", last_run="2024-01-01")
    last = make_result(1, "a/b.csproj", test_result="Success", last_run="2024-01-02")

    records = diff_snapshots(baseline, (first, last))

    assert len(records) == 1
    assert records[0].change_type == "Fixed"
    assert records[0].current_result is last


def test_path_casing_only_difference_is_not_new_or_deleted() -> None:
    baseline = (make_result(1, "A/B.csproj", test_result="Success"),)
    current = (make_result(1, "a/b.csproj", test_result="Success"),)

    records = diff_snapshots(baseline, current)

    assert len(records) <= 1
    assert all(record.change_type not in {"New", "Deleted"} for record in records)


def test_new_and_deleted_report_not_run_for_missing_side() -> None:
    only_current = diff_snapshots((), (make_result(5, "N.csproj", test_result="Failed"),))
    assert len(only_current) == 1
    assert only_current[0].change_type == "New"
    assert only_current[0].baseline_status == "NotRun"
    assert only_current[0].baseline_result is None

    only_baseline = diff_snapshots((make_result(5, "N.csproj", test_result="Success"),), ())
    assert len(only_baseline) == 1
    assert only_baseline[0].change_type == "Deleted"
    assert only_baseline[0].current_status == "NotRun"
    assert only_baseline[0].current_result is None


def test_skipped_run_result_is_never_a_diff() -> None:
    baseline = (make_result(1, "A.csproj", test_result="Failed"),)
    current = (make_result(1, "A.csproj", test_result="Success", run_result="Skipped"),)
    assert diff_snapshots(baseline, current) == []
    assert diff_snapshots(current, baseline) == []


def test_skipped_on_one_side_only_also_filters_new() -> None:
    current = (make_result(1, "A.csproj", test_result="Failed", run_result="Skipped"),)
    assert diff_snapshots((), current) == []


def test_not_run_to_failed_is_build_to_fail() -> None:
    baseline = (make_result(1, "A.csproj", test_result="NotRun"),)
    current = (make_result(1, "A.csproj", test_result="Failed"),)
    assert diff_snapshots(baseline, current)[0].change_type == "BuildToFail"


def test_baseline_run_result_not_run_is_build_to_fail() -> None:
    baseline = (make_result(1, "A.csproj", test_result="Success", run_result="NotRun"),)
    current = (make_result(1, "A.csproj", test_result="Failed"),)
    # Success -> Failed matches Regression first.
    assert diff_snapshots(baseline, current)[0].change_type == "Regression"

    baseline = (make_result(1, "A.csproj", test_result="Failed", run_result="NotRun"),)
    assert diff_snapshots(baseline, current)[0].change_type == "BuildToFail"


def test_same_status_with_other_changes_is_none() -> None:
    baseline = (make_result(1, "A.csproj", test_result="Failed", last_run="2024-01-01"),)
    current = (make_result(1, "A.csproj", test_result="Failed", last_run="2024-02-01"),)

    records = diff_snapshots(baseline, current)

    assert [record.change_type for record in records] == ["None"]
    assert records[0].current_result is not None
    assert records[0].current_result.last_run == "2024-02-01"


def test_failed_to_not_run_is_other() -> None:
    baseline = (make_result(1, "A.csproj", test_result="Failed"),)
    current = (make_result(1, "A.csproj", test_result="NotRun"),)
    assert diff_snapshots(baseline, current)[0].change_type == "Other"


def test_same_issue_different_projects_are_separate() -> None:
    baseline = (
        make_result(9, "One.csproj", test_result="Failed"),
        make_result(9, "Two.csproj", test_result="Success"),
    )
    current = (
        make_result(9, "One.csproj", test_result="Success"),
        make_result(9, "Two.csproj", test_result="Failed"),
    )

    records = diff_snapshots(baseline, current)

    assert {(r.project_path, r.change_type) for r in records} == {
        ("one.csproj", "Fixed"),
        ("two.csproj", "Regression"),
    }
    assert list(group_by_issue(records)) == [9]
    assert change_keys(records) == {
        "Issue9|one.csproj": "Fixed",
        "Issue9|two.csproj": "Regression",
    }


def test_classify_change_over_worst_results() -> None:
    assert classify_change("Failed", "Success") == "Fixed"
    assert classify_change("Success", "Failed") == "Regression"
    assert classify_change("NotRun", "Failed") == "BuildToFail"
    assert classify_change("Failed", "NotRun") == "Other"
    assert classify_change("Failed", "Failed") == "None"


def test_issue_change_requires_both_snapshots() -> None:
    failed = WorstResult("Failed", "")
    assert issue_change(None, failed) == "None"
    assert issue_change(failed, None) == "None"
    assert issue_change(WorstResult("Success", ""), failed) == "Regression"


def test_display_text() -> None:
    assert change_tooltip("Failed", "Success") == "Test Fails -> Test Succeeds"
    assert change_tooltip("NotRun", "mystery") == "Not Run -> mystery"
    assert status_display("Regression", "Failed") == "=> fail"
    assert status_display("Fixed", "Success") == "Success"
    assert status_display("None", "Success") is None


def test_compare_files_reads_both_documents(tmp_path: Path) -> None:
    row = {"number": 123, "project_path": "TestProject/Test.csproj", "run_result": "Run"}
    baseline = write_json(tmp_path / "results-baseline.json", [{**row, "test_result": "Failed"}])
    current = write_json(tmp_path / "results.json", [{**row, "test_result": "Success"}])

    records = compare_files(baseline, current)

    assert len(records) == 1
    assert records[0].issue_number == 123
    assert records[0].project_path == "testproject/test.csproj"
    assert records[0].change_type == "Fixed"


def test_compare_files_with_invalid_json_is_empty(tmp_path: Path, caplog) -> None:
    baseline = tmp_path / "results-baseline.json"
    baseline.write_text("[{", encoding="utf-8")
    current = tmp_path / "results.json"
    current.write_text("nope", encoding="utf-8")

    with caplog.at_level(logging.WARNING):
        assert compare_files(baseline, current) == []


def test_compare_files_with_missing_files_is_empty(tmp_path: Path) -> None:
    assert compare_files(tmp_path / "a.json", tmp_path / "b.json") == []
