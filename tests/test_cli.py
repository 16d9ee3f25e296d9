from __future__ import annotations

from email import message_from_bytes
from email.policy import default as default_policy

from lxml import etree

from build_watcher.cli import main


def test_badge_writes_svg_and_report(tmp_path) -> None:
    out = tmp_path / "badge.svg"
    assert main(["badge", str(out), "--status", "TIMEOUT", "--report"]) == 0
    root = etree.fromstring(out.read_bytes())
    assert "timeout" in [t.text for t in root.iter("{http://www.w3.org/2000/svg}text")]
    assert "TIMEOUT" in (tmp_path / "badge.html").read_text(encoding="utf-8")


def test_badge_without_report(tmp_path) -> None:
    out = tmp_path / "badge.svg"
    assert main(["badge", str(out)]) == 0
    assert not (tmp_path / "badge.html").exists()


def test_email_writes_message(capsysbinary) -> None:
    assert main(["email", "me@example.org", "--from", "CI <ci@example.org>"]) == 0
    msg = message_from_bytes(capsysbinary.readouterr().out, policy=default_policy)
    assert msg["To"] == "me@example.org"
    assert msg["Subject"] == "[project-id] trigger-name FAILURE (build 12345)"


def test_email_rejects_bad_address() -> None:
    assert main(["email", "nobody", "--from", "ci@example.org"]) == 2
