import json

import pytest
import yaml
from click.testing import CliRunner

from pipegen.cli import cli
from pipegen.generator import generate


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def descriptor_file(tmp_path, scenario_a):
    path = tmp_path / "pipeline.yaml"
    path.write_text(yaml.safe_dump(scenario_a, sort_keys=False), encoding="utf-8")
    return path


def test_generate_to_stdout(runner, descriptor_file, scenario_a):
    result = runner.invoke(cli, ["generate", str(descriptor_file)])
    assert result.exit_code == 0, result.output
    assert result.output == generate(scenario_a).workflow


def test_generate_to_file_then_check(runner, descriptor_file, tmp_path):
    out = tmp_path / "ci.yml"
    result = runner.invoke(cli, ["generate", str(descriptor_file), "-o", str(out)])
    assert result.exit_code == 0, result.output
    assert f"WROTE: {out}" in result.output

    result = runner.invoke(cli, ["generate", str(descriptor_file), "-o", str(out), "--check"])
    assert result.exit_code == 0, result.output
    assert "is up to date" in result.output


def test_check_detects_drift(runner, descriptor_file, tmp_path):
    out = tmp_path / "ci.yml"
    out.write_text("name: stale\n", encoding="utf-8")
    result = runner.invoke(cli, ["generate", str(descriptor_file), "-o", str(out), "--check"])
    assert result.exit_code == 1
    assert "Workflow is out of date" in result.output
    assert out.read_text(encoding="utf-8") == "name: stale\n"


def test_check_requires_output(runner, descriptor_file):
    result = runner.invoke(cli, ["generate", str(descriptor_file), "--check"])
    assert result.exit_code == 2


def test_out_dir_writes_workflow_and_config(runner, descriptor_file, tmp_path):
    root = tmp_path / "repo"
    result = runner.invoke(cli, ["generate", str(descriptor_file), "--out-dir", str(root)])
    assert result.exit_code == 0, result.output
    workflow = root / ".github" / "workflows" / "ci.yml"
    assert yaml.safe_load(workflow.read_text(encoding="utf-8"))["name"] == "shop CI/CD Pipeline"
    config = json.loads((root / "ciConfig.json").read_text(encoding="utf-8"))
    assert config["architecture"] == "MONOLITH"
    assert "generatedOn" in config


def test_invalid_descriptor_exits_1(runner, tmp_path, scenario_a):
    scenario_a["architecture"] = "SERVERLESS"
    path = tmp_path / "bad.yaml"
    path.write_text(yaml.safe_dump(scenario_a), encoding="utf-8")
    result = runner.invoke(cli, ["generate", str(path)])
    assert result.exit_code == 1
    assert "Invalid pipeline descriptor" in result.output
    assert "kind: InvalidArchitecture" in result.output


def test_missing_descriptor_exits_1(runner, tmp_path):
    result = runner.invoke(cli, ["generate", str(tmp_path / "nope.yaml")])
    assert result.exit_code == 1
    assert "Descriptor file not found" in result.output


def test_validate_prints_plan(runner, descriptor_file):
    result = runner.invoke(cli, ["validate", str(descriptor_file)])
    assert result.exit_code == 0, result.output
    assert "Descriptor OK: shop (MONOLITH, deploy=STAGING)" in result.output
    assert "stage 1: test" in result.output
    assert "stage 3: deploy" in result.output


def test_validate_reports_extension_warning(runner, tmp_path, scenario_d):
    scenario_d["deployStrategy"] = "PRODUCTION"
    path = tmp_path / "ext.yaml"
    path.write_text(yaml.safe_dump(scenario_d), encoding="utf-8")
    result = runner.invoke(cli, ["validate", str(path)])
    assert result.exit_code == 0
    assert "WARNING: PackageOnlyDeployIgnored" in result.output


def test_languages(runner):
    result = runner.invoke(cli, ["languages"])
    assert result.exit_code == 0
    assert "node (actions/setup-node@v4, default 20.x)" in result.output
    assert "docker (docker/setup-buildx-action@v3, default -)" in result.output


def test_architectures(runner):
    result = runner.invoke(cli, ["architectures"])
    assert result.exit_code == 0
    assert "architectures: MONOLITH, MICROSERVICES, FULLSTACK, EXTENSION" in result.output
    assert "AWS_LAMBDA" in result.output
