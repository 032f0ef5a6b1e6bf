# tests/app/test_cli.py
import io
import json

import pytest

from access_route.cli import NO_ROUTE_MESSAGE, main, run

S, T = (10.3157, 123.8854), (10.3157, 123.8874)
U = (10.3158, 123.8864)


def _write(tmp_path, payload):
    path = tmp_path / "polylines.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_run_reports_a_stairs_route(tmp_path):
    path = _write(
        tmp_path,
        {
            "data": [
                {"id": "upper", "coordinates": [S, U, T], "node_tags": {"1": {"hasStairs": True}}},
                {"id": "broken", "coordinates": [S]},
            ]
        },
    )
    out = io.StringIO()
    assert run(path, S, T, out=out) == 0
    summary = json.loads(out.getvalue())
    assert summary["loaded"] == 1
    assert summary["rejected"] == ["broken"]
    assert summary["found"] is True
    assert summary["has_avoided_tag"] is True
    assert "stairs" in summary["warning"]
    assert summary["coordinates"][0] == list(S)
    assert len(summary["nodes"]) == 3


def test_run_reports_no_route(tmp_path):
    path = _write(tmp_path, [{"id": "a", "coordinates": [S, U]}, {"id": "b", "coordinates": [T, (10.3, 123.9)]}])
    out = io.StringIO()
    assert run(path, S, T, out=out) == 1
    summary = json.loads(out.getvalue())
    assert summary["found"] is False
    assert summary["reason"] == "unreachable"
    assert summary["message"] == NO_ROUTE_MESSAGE


def test_run_honours_config_file(tmp_path):
    path = _write(tmp_path, [{"id": "a", "coordinates": [S, T]}])
    cfg = tmp_path / "router.json"
    cfg.write_text(json.dumps({"routing": {"max_access_m": 5}}), encoding="utf-8")
    out = io.StringIO()
    far = (S[0] + 0.001, S[1])
    assert run(path, far, T, config=cfg, out=out) == 1
    assert json.loads(out.getvalue())["reason"] == "start_off_network"


def test_main_parses_arguments(tmp_path, capsys):
    path = _write(tmp_path, [{"id": "a", "coordinates": [S, T]}])
    code = main([str(path), "--from", f"{S[0]},{S[1]}", "--to", f"{T[0]},{T[1]}"])
    assert code == 0
    assert json.loads(capsys.readouterr().out)["found"] is True


def test_main_rejects_bad_coordinates(tmp_path):
    path = _write(tmp_path, [])
    with pytest.raises(SystemExit):
        main([str(path), "--from", "10.3", "--to", "1,2"])
