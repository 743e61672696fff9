"""
Tests for the run_extractor command line.
"""

import json

import pytest

from run_extractor import main, parse_selection


def test_parse_selection():
    selection = parse_selection(["title=//h1/text()", "link=//a[@href='x=y']/@href"])

    assert selection == {"title": "//h1/text()", "link": "//a[@href='x=y']/@href"}


def test_parse_selection_rejects_missing_separator():
    with pytest.raises(Exception, match="key=selector"):
        parse_selection(["title"])


def test_html_file_to_stdout(tmp_path, capsys):
    page = tmp_path / "page.html"
    page.write_text("<html><body><h1>Death Note</h1><a href='/1'>x</a></body></html>")

    exit_code = main([str(page), "-s", "title=//h1/text()", "-s", "missing=//video/@src"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == [{"title": ["Death Note"], "missing": None}]


def test_json_directory_to_file(tmp_path):
    data = tmp_path / "data"
    data.mkdir()
    (data / "a.json").write_text('{"id": 1}')
    (data / "b.json").write_text('{"id": 2}')
    (data / "c.txt").write_text('{"id": 3}')
    output = tmp_path / "out.json"

    exit_code = main([str(data), "--format", "json", "-s", "id=$.id", "--output", str(output)])

    assert exit_code == 0
    assert sorted(entry["id"] for entry in json.loads(output.read_text(encoding="utf-8"))) == [1, 2]


def test_missing_path_reports_error(tmp_path, capsys):
    exit_code = main([str(tmp_path / "missing"), "-s", "title=//h1"])

    assert exit_code == 1
    assert json.loads(capsys.readouterr().err)["error"] == "PathNotFoundError"
