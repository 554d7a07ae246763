import io
import json
import logging
from email.message import EmailMessage

import pytest

from app import cli
from app.backend.process import process_files, write_json_output


def _write_eml(path):
    msg = EmailMessage()
    msg["From"] = "client@example.com"
    msg["To"] = "bookings@studio.example"
    msg["Subject"] = "Re: Friday"
    msg.set_content(
        "Works for me.\n\n"
        "On Tue, Oct 14, 2025 at 9:00 AM Studio <info@studio.com> wrote:\n"
        "> Does Friday work?\n"
    )
    path.write_bytes(msg.as_bytes())
    return path


def test_process_files_mixed_inputs(tmp_path):
    eml = _write_eml(tmp_path / "reply.eml")
    txt = tmp_path / "body.txt"
    txt.write_text("<p>Hello</p><p>World</p>", encoding="utf-8")
    missing = tmp_path / "missing.txt"

    result = process_files([str(eml), str(txt), str(missing)])

    by_name = {r["filename"]: r for r in result["results"]}
    assert by_name["reply.eml"]["content"] == "Works for me."
    assert by_name["reply.eml"]["subject"] == "Re: Friday"
    assert by_name["reply.eml"]["truncation"]["marker"] == "on_wrote_header"
    assert by_name["body.txt"]["content"] == "Hello\nWorld"
    assert result["errors"][0]["filename"] == "missing.txt"
    assert result["summary"] == {"total_files": 3, "extracted": 2, "empty": 0, "errors": 1}


def test_write_json_output(tmp_path):
    path = write_json_output({"results": [], "summary": {"total_files": 0}}, str(tmp_path / "out"))
    assert path.endswith("result.json")
    assert json.loads(open(path, encoding="utf-8").read())["summary"]["total_files"] == 0


def test_cli_extract_directory(tmp_path, capsys):
    _write_eml(tmp_path / "reply.eml")

    assert cli.main(["extract", "--inputs", str(tmp_path)]) == 0

    printed = json.loads(capsys.readouterr().out)
    assert printed["results"][0]["content"] == "Works for me."


def test_cli_extract_writes_json(tmp_path, capsys):
    _write_eml(tmp_path / "reply.eml")
    out_dir = tmp_path / "out"

    code = cli.main([
        "extract", "--inputs", str(tmp_path / "reply.eml"),
        "--output-dir", str(out_dir), "--output-json-name", "replies.json",
    ])

    assert code == 0
    assert (out_dir / "replies.json").exists()
    assert "JSON:" in capsys.readouterr().out


def test_cli_extract_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("See you then.\nSent from my iPhone"))

    assert cli.main(["extract"]) == 0
    assert capsys.readouterr().out.strip() == "See you then."


def test_cli_extract_no_inputs_found(tmp_path, capsys):
    assert cli.main(["extract", "--inputs", str(tmp_path / "nope")]) == 1
    assert "[error]" in capsys.readouterr().out


def test_cli_repair_without_credentials(monkeypatch, capsys):
    monkeypatch.setenv("SUPABASE_URL", "")
    monkeypatch.setenv("SUPABASE_KEY", "")

    assert cli.main(["repair", "--dry-run"]) == 1
    assert "SUPABASE_URL" in capsys.readouterr().out


@pytest.mark.parametrize("command", ["repair", "audit"])
def test_negative_limit_is_rejected(command, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.parse_args([command, "--limit", "-1"])
    assert exc.value.code == 2
    assert "must be >= 0" in capsys.readouterr().err


def test_zero_limit_is_accepted():
    assert cli.parse_args(["audit", "--limit", "0"]).limit == 0


def test_verbose_switches_to_debug(monkeypatch, capsys):
    levels = []
    monkeypatch.setattr(cli, "set_level", levels.append)
    monkeypatch.setattr("sys.stdin", io.StringIO("See you then."))

    assert cli.main(["--verbose", "extract"]) == 0
    assert levels == [logging.DEBUG]
