"""Tests for the label vocabulary (priority, status, tags)."""

from meridian.core.enums import Priority, Status
from meridian.github.mappers import labels, normalize_labels


def test_priority_first_match_wins():
    found = labels.extract_priority([{"name": "bug"}, {"name": "priority:high"}, {"name": "priority:low"}])
    assert found == Priority.HIGH


def test_priority_defaults_to_normal_and_ignores_case():
    assert labels.extract_priority([{"name": "bug"}]) == Priority.NORMAL
    assert labels.extract_priority([{"name": "Priority:URGENT"}]) == Priority.URGENT


def test_status_closed_state_wins_over_labels():
    assert labels.extract_status("closed", [{"name": "status:in-progress"}]) == Status.CLOSED


def test_status_in_progress_label_accepts_both_spellings():
    assert labels.extract_status("open", [{"name": "status:in-progress"}]) == Status.IN_PROGRESS
    assert labels.extract_status("open", [{"name": "status:in_progress"}]) == Status.IN_PROGRESS
    assert labels.extract_status("open", []) == Status.OPEN


def test_tags_skip_managed_labels():
    tags = labels.extract_tags(
        [
            {"id": 10, "name": "bug", "color": "D73A4A"},
            {"id": 11, "name": "priority:high", "color": "ffffff"},
            {"id": 12, "name": "status:in-progress"},
        ]
    )
    assert [tag.name for tag in tags] == ["bug"]
    assert tags[0].color == "#d73a4a"
    assert tags[0].id == "00000000-0000-5000-a000-00000000000a"


def test_tag_without_label_id_gets_zero_id():
    (tag,) = labels.extract_tags([{"name": "docs"}])
    assert tag.id == "00000000-0000-5000-a000-000000000000"
    assert tag.color is None


def test_normalize_color():
    assert labels.normalize_color("ABCDEF") == "#abcdef"
    assert labels.normalize_color("#00ff00") == "#00ff00"
    assert labels.normalize_color("xyz") is None
    assert labels.normalize_color(None) is None


def test_writers():
    assert labels.to_priority_label(Priority.URGENT) == "priority:urgent"
    assert labels.to_status_labels(Status.IN_PROGRESS) == ["status:in-progress"]
    assert labels.to_status_labels(Status.OPEN) == []
    assert labels.to_status_labels(Status.CLOSED) == []


def test_normalize_labels_mixes_strings_and_objects():
    assert normalize_labels(["bug", {"name": "docs"}, 3, None]) == [{"name": "bug"}, {"name": "docs"}]
    assert normalize_labels(None) == []
