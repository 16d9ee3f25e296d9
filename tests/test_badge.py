from __future__ import annotations

from datetime import datetime, timezone

import pytest
from lxml import etree, html

from build_watcher.badge import BADGE_STYLES, render_badge, render_report
from build_watcher.metadata import SubstitutionMetadata
from build_watcher.models import BuildEvent, RenderError

SVG_NS = "{http://www.w3.org/2000/svg}"


def _build(status: str = "SUCCESS") -> BuildEvent:
    return BuildEvent(
        id="1234-5678",
        project_id="my-project",
        trigger_id="trigger-id",
        status=status,
        log_url="https://example.org/log",
        start_time=datetime(2021, 12, 11, 19, 42, 31, tzinfo=timezone.utc),
        finish_time=datetime(2021, 12, 11, 20, 4, 51, tzinfo=timezone.utc),
        metadata=SubstitutionMetadata({"COMMIT_SHA": "secret-commit", "REPO_NAME": "secret-repo"}),
    )


def test_render_badge_is_valid_svg_with_status():
    svg = render_badge(BuildEvent(status="SUCCESS"))
    root = etree.fromstring(svg)
    assert root.tag == f"{SVG_NS}svg"
    assert (root.get("width"), root.get("height")) == ("90", "20")
    assert [t.text for t in root.iter(f"{SVG_NS}text")] == ["build", "success"]


@pytest.mark.parametrize(
    ("status", "text", "bg"),
    [
        ("SUCCESS", "success", "#2da44e"),
        ("FAILURE", "failure", "#c62828"),
        ("INTERNAL_ERROR", "error", "#ffeb3b"),
        ("TIMEOUT", "timeout", "#333"),
    ],
)
def test_render_badge_layout(status, text, bg):
    root = etree.fromstring(render_badge(BuildEvent(status=status)))
    left_text, right_text = root.iter(f"{SVG_NS}text")
    assert right_text.text == text
    # Each label is centered within its own segment.
    assert left_text.get("x") == str((90 - 52) // 2)
    assert right_text.get("x") == str(52 // 2)
    group = next(g for g in root.iter(f"{SVG_NS}g") if g.get("transform"))
    assert group.get("transform") == "translate(38,0)"
    assert group.find(f"{SVG_NS}rect").get("fill") == bg


def test_render_badge_depends_only_on_status():
    assert render_badge(_build("FAILURE")) == render_badge(BuildEvent(status="FAILURE"))


@pytest.mark.parametrize("status", ["WORKING", "CANCELLED", "SOMETHING_NEW"])
def test_render_badge_rejects_unknown_status(status):
    with pytest.raises(RenderError) as excinfo:
        render_badge(BuildEvent(status=status))
    assert "no badge info" in str(excinfo.value)


def test_badge_styles_cover_badge_statuses():
    assert set(BADGE_STYLES) == {"SUCCESS", "FAILURE", "INTERNAL_ERROR", "TIMEOUT"}


def test_render_report_is_valid_html_with_status_and_times():
    report = render_report(_build()).decode("utf-8")
    doc = html.document_fromstring(report)
    cells = [td.text_content() for td in doc.iter("td")]
    assert cells == [
        "Status",
        "SUCCESS",
        "Start",
        "2021-12-11 19:42:31 UTC",
        "End",
        "2021-12-11 20:04:51 UTC",
        "Duration",
        "22m20s",
    ]


def test_render_report_omits_identifying_fields():
    report = render_report(_build()).decode("utf-8")
    for secret in ("1234-5678", "my-project", "trigger-id", "example.org/log", "secret-commit", "secret-repo"):
        assert secret not in report


def test_render_report_rejects_unknown_status():
    with pytest.raises(RenderError):
        render_report(BuildEvent(status="QUEUED"))
