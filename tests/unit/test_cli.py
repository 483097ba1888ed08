"""Tests for CLI commands."""

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from graphfold.cli import app


@pytest.fixture
def cli_runner():
    """Return a CLI test runner."""
    return CliRunner()


def _write_project(
    root: Path, accounts_sdl: str, reviews_sdl: str, output: str = ""
) -> Path:
    services_dir = root / "services"
    services_dir.mkdir()
    (services_dir / "accounts.graphql").write_text(accounts_sdl)
    (services_dir / "reviews.graphql").write_text(reviews_sdl)

    manifest = root / "graphfold.toml"
    manifest.write_text(
        """
[project]
name = "shop"

[[services]]
name = "accounts"
path = "services/accounts.graphql"

[[services]]
name = "reviews"
path = "services/reviews.graphql"
"""
        + output
    )
    return manifest


@pytest.fixture
def test_project(tmp_path: Path) -> Path:
    """Create a project whose services compose cleanly."""
    return _write_project(
        tmp_path,
        'type Query { me: User } type User @key(fields: "id") { id: ID! name: String }',
        'extend type User @key(fields: "id") { id: ID! @external reviews: [String] }',
    )


@pytest.fixture
def broken_project(tmp_path: Path) -> Path:
    """Create a project whose services disagree about an enum."""
    return _write_project(
        tmp_path,
        "type Query { status: Status } enum Status { OPEN CLOSED }",
        "enum Status { OPEN }",
    )


def test_version(cli_runner: CliRunner):
    result = cli_runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert "graphfold version" in result.output


def test_compose_prints_schema(cli_runner: CliRunner, test_project: Path):
    """Test compose writes the composed SDL to stdout."""
    result = cli_runner.invoke(app, ["compose", "--manifest", str(test_project)])
    assert result.exit_code == 0
    assert "type User" in result.output
    assert "reviews: [String]" in result.output
    assert "OK: services compose cleanly." in result.output


def test_compose_writes_files(cli_runner: CliRunner, test_project: Path, tmp_path: Path):
    """Test compose writes SDL and metadata to the given paths."""
    schema_path = tmp_path / "out" / "supergraph.graphql"
    metadata_path = tmp_path / "out" / "metadata.json"

    result = cli_runner.invoke(
        app,
        [
            "compose",
            "--manifest",
            str(test_project),
            "--output",
            str(schema_path),
            "--metadata",
            str(metadata_path),
        ],
    )

    assert result.exit_code == 0
    assert "type Query" in schema_path.read_text()
    metadata = json.loads(metadata_path.read_text())
    assert metadata["User"]["serviceName"] == "accounts"
    assert metadata["User"]["fields"]["reviews"]["serviceName"] == "reviews"


def test_compose_uses_manifest_output(cli_runner: CliRunner, tmp_path: Path):
    manifest = _write_project(
        tmp_path,
        "type Query { a: Int }",
        "type Review { id: ID! }",
        output='\n[output]\nschema = "build/supergraph.graphql"\n',
    )
    result = cli_runner.invoke(app, ["compose", "--manifest", str(manifest)])
    assert result.exit_code == 0
    assert (tmp_path / "build" / "supergraph.graphql").exists()


def test_compose_json_format(cli_runner: CliRunner, broken_project: Path):
    result = cli_runner.invoke(
        app, ["compose", "--manifest", str(broken_project), "--format", "json"]
    )
    assert result.exit_code == 1
    payload = json.loads(result.stdout)
    assert payload["project"] == "shop"
    assert [e["code"] for e in payload["errors"]] == ["ENUM_MISMATCH"]
    assert "type Query" in payload["schema"]


def test_compose_fails_on_errors(cli_runner: CliRunner, broken_project: Path):
    result = cli_runner.invoke(app, ["compose", "--manifest", str(broken_project)])
    assert result.exit_code == 1
    assert "ERROR: [ENUM_MISMATCH]" in result.output


def test_compose_errors_allowed(cli_runner: CliRunner, tmp_path: Path):
    manifest = _write_project(
        tmp_path,
        "enum Status { OPEN CLOSED }",
        "enum Status { OPEN }",
        output="\n[output]\nfail_on_errors = false\n",
    )
    result = cli_runner.invoke(app, ["compose", "--manifest", str(manifest)])
    assert result.exit_code == 0


def test_validate_success(cli_runner: CliRunner, test_project: Path):
    result = cli_runner.invoke(app, ["validate", "--manifest", str(test_project)])
    assert result.exit_code == 0
    assert "OK" in result.output


def test_validate_with_errors(cli_runner: CliRunner, broken_project: Path):
    result = cli_runner.invoke(app, ["validate", "-m", str(broken_project), "-f", "json"])
    assert result.exit_code == 1
    (error,) = json.loads(result.stdout)["errors"]
    assert error["code"] == "ENUM_MISMATCH"
    assert error["type_name"] == "Status"


def test_validate_parse_error(cli_runner: CliRunner, tmp_path: Path):
    manifest = _write_project(tmp_path, "type Query {", "type Review { id: ID! }")
    result = cli_runner.invoke(app, ["validate", "--manifest", str(manifest)])
    assert result.exit_code == 1
    assert "Parse error" in result.output


def test_validate_missing_manifest(cli_runner: CliRunner, tmp_path: Path):
    result = cli_runner.invoke(app, ["validate", "--manifest", str(tmp_path / "nope.toml")])
    assert result.exit_code == 1
    assert "Manifest not found" in result.output
