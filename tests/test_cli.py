import json

from tc_dedup.main import main

from conftest import CHECKOUT_ADMIN_STEPS, CHECKOUT_GUEST_STEPS


def _records():
    return [
        {
            "key": "TC-1",
            "title": "Checkout an order",
            "automationState": {"name": "Automated"},
            "steps": [{"action": a, "expectedResult": e} for a, e in CHECKOUT_ADMIN_STEPS],
        },
        {
            "key": "TC-2",
            "title": "Checkout an order",
            "automationState": "Not Automated",
            "steps": [{"action": a, "expectedResult": e} for a, e in CHECKOUT_GUEST_STEPS],
        },
    ]


def test_cli_writes_json_result(tmp_path):
    source = tmp_path / "cases.json"
    source.write_text(json.dumps({"items": _records()}), encoding="utf-8")
    target = tmp_path / "out" / "result.json"

    exit_code = main([str(source), "--project-key", "PROJ", "--suite-id", "9", "--output", str(target)])

    assert exit_code == 0
    result = json.loads(target.read_text(encoding="utf-8"))
    assert result["projectKey"] == "PROJ"
    assert result["suiteId"] == "9"
    assert result["clustersFound"] == 1
    assert result["clusters"][0]["recommendedBase"]["testCaseKey"] == "TC-1"


def test_cli_prints_markdown(tmp_path, capsys):
    source = tmp_path / "cases.json"
    source.write_text(json.dumps(_records()), encoding="utf-8")

    exit_code = main([str(source), "--project-key", "PROJ", "--format", "markdown", "--mode", "hybrid"])

    assert exit_code == 0
    out = capsys.readouterr().out
    assert out.startswith("# Duplicate Test Case Analysis - PROJ")
    assert "hybrid_fallback" in out


def test_cli_reports_analysis_errors(tmp_path):
    source = tmp_path / "cases.json"
    source.write_text(json.dumps(_records()[:1]), encoding="utf-8")
    assert main([str(source)]) == 2


def test_cli_rejects_invalid_threshold(tmp_path):
    source = tmp_path / "cases.json"
    source.write_text(json.dumps(_records()), encoding="utf-8")
    assert main([str(source), "--similarity-threshold", "30"]) == 2


def test_cli_missing_file(tmp_path):
    assert main([str(tmp_path / "missing.json")]) == 1
