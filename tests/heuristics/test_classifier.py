"""Change classification rules."""

from __future__ import annotations

import pytest

from docpilot.heuristics import ChangeClassifier, ChangeType
from docpilot.models import ChangeKind, DiffResult
from tests._fixtures.changes import make_diff, make_file


def test_classify_file_path_rules_take_priority_over_extension() -> None:
    classifier = ChangeClassifier()
    assert classifier.classify_file("src/fix/Parser.cs") == ChangeType.BUGFIX
    assert classifier.classify_file("src/feature/Search.cs") == ChangeType.FEATURE
    assert classifier.classify_file("docs/setup/config.yml") == ChangeType.DOCUMENTATION
    assert classifier.classify_file(".github/workflows/ci.yml") == ChangeType.CONFIGURATION
    assert classifier.classify_file("infra/main.tf") == ChangeType.INFRASTRUCTURE


def test_classify_file_falls_back_to_extension() -> None:
    classifier = ChangeClassifier()
    assert classifier.classify_file("src/Api/UserController.cs") == ChangeType.FEATURE
    assert classifier.classify_file("modules/network.bicep") == ChangeType.INFRASTRUCTURE
    assert classifier.classify_file("appsettings.json") == ChangeType.CONFIGURATION
    assert classifier.classify_file("Makefile") == ChangeType.UNKNOWN


def test_classify_change_empty_diff_is_unknown() -> None:
    assert ChangeClassifier().classify_change(DiffResult("a", "b")) == ChangeType.UNKNOWN


def test_deleted_service_is_breaking() -> None:
    diff = make_diff(
        make_file("src/Services/UserService.cs", ChangeKind.DELETED, added=0, deleted=80),
        make_file("README.md"),
        make_file("docs/guide.md"),
    )
    assert ChangeClassifier().classify_change(diff) == ChangeType.BREAKING


def test_content_markers_are_breaking() -> None:
    diff = make_diff(make_file("src/Api.cs", hunks=["+    [Obsolete(\"use V2\")]\n"]))
    assert ChangeClassifier().classify_change(diff) == ChangeType.BREAKING


def test_modified_controller_is_not_breaking() -> None:
    diff = make_diff(make_file("src/Api/UserController.cs"))
    assert ChangeClassifier().classify_change(diff) == ChangeType.FEATURE


def test_majority_wins_and_ties_go_to_first_seen() -> None:
    classifier = ChangeClassifier()
    majority = make_diff(
        make_file("docs/a.md"), make_file("src/b.cs"), make_file("docs/c.md")
    )
    assert classifier.classify_change(majority) == ChangeType.DOCUMENTATION

    tie = make_diff(make_file("terraform/main.tf"), make_file("config/app.json"))
    assert classifier.classify_change(tie) == ChangeType.INFRASTRUCTURE


def test_custom_path_rules_replace_defaults() -> None:
    classifier = ChangeClassifier(path_rules=[("legacy/**", ChangeType.REFACTOR)])
    assert classifier.classify_file("legacy/old.cs") == ChangeType.REFACTOR
    assert classifier.classify_file("src/fix/a.cs") == ChangeType.FEATURE


@pytest.mark.parametrize(
    "marker_line",
    [
        "+// BREAKING: removed the v1 endpoints\n",
        "+ * @deprecated use createUser instead\n",
    ],
)
def test_other_content_markers_are_breaking(marker_line: str) -> None:
    diff = make_diff(make_file("src/users.ts", hunks=[marker_line]))
    assert ChangeClassifier().classify_change(diff) == ChangeType.BREAKING


@pytest.mark.parametrize(
    "path",
    ["src/Api/UserController.cs", "src/Contracts/IUserInterface.cs"],
)
def test_deleted_controller_or_interface_is_breaking(path: str) -> None:
    diff = make_diff(make_file(path, ChangeKind.DELETED, added=0, deleted=40))
    assert ChangeClassifier().classify_change(diff) == ChangeType.BREAKING


def test_path_markers_are_case_sensitive() -> None:
    diff = make_diff(make_file("src/userservice.py", ChangeKind.DELETED, added=0, deleted=40))
    assert ChangeClassifier().classify_change(diff) == ChangeType.FEATURE


def test_breaking_marker_wins_over_larger_tally() -> None:
    diff = make_diff(
        make_file("docs/a.md"),
        make_file("docs/b.md"),
        make_file("docs/c.md"),
        make_file("src/api.py", hunks=["+# BREAKING: drop legacy auth\n"]),
    )
    classifier = ChangeClassifier()
    assert classifier.has_breaking_indicators(diff)
    assert classifier.classify_change(diff) == ChangeType.BREAKING
