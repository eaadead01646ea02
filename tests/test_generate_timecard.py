import json

from timecards.generate_timecard import main


def test_cli_writes_workbook(tmp_path, config_path, request_payload, monkeypatch):
    monkeypatch.setenv("TIMECARD_CONFIG", str(config_path))
    request_file = tmp_path / "anfrage.json"
    request_file.write_text(json.dumps(request_payload), encoding="utf-8")
    out_dir = tmp_path / "ausgabe"

    assert main([str(request_file), str(out_dir)]) == 0
    assert (out_dir / "Timecard_Max_Muster_2025_PP01.xlsx").exists()


def test_cli_defaults_to_configured_output_dir(tmp_path, config_path, request_payload, monkeypatch):
    monkeypatch.setenv("TIMECARD_CONFIG", str(config_path))
    request_file = tmp_path / "anfrage.json"
    request_file.write_text(json.dumps(request_payload), encoding="utf-8")

    assert main([str(request_file)]) == 0
    assert (tmp_path / "output" / "Timecard_Max_Muster_2025_PP01.xlsx").exists()


def test_cli_rejects_invalid_request(tmp_path, config_path, monkeypatch):
    monkeypatch.setenv("TIMECARD_CONFIG", str(config_path))
    request_file = tmp_path / "anfrage.json"
    request_file.write_text(json.dumps({"employee_name": "Max"}), encoding="utf-8")
    assert main([str(request_file), str(tmp_path / "ausgabe")]) == 1


def test_cli_without_arguments():
    assert main([]) == 2
