# cli.py
from __future__ import annotations

import sys
from pathlib import Path

import click

from pipegen import catalog
from pipegen.dag import job_levels
from pipegen.descriptor import Architecture, DeployStrategy
from pipegen.errors import ConfigurationError, InternalConsistencyError
from pipegen.generator import GenerationResult, configuration_json, generate
from pipegen.lifecycle import now_utc
from pipegen.loader import load_descriptor
from pipegen.ui.console import Console, get_console, set_console

WORKFLOW_PATH = Path(".github") / "workflows" / "ci.yml"
CONFIG_PATH = Path("ciConfig.json")


def _generate_or_exit(descriptor_path: str) -> GenerationResult:
    """Load + generate, turning every failure into a console report and exit code 1."""
    console = get_console()
    try:
        return generate(load_descriptor(descriptor_path))
    except FileNotFoundError as e:
        console.print_error(
            "Descriptor file not found",
            str(e),
            suggestion="Pass the path to a YAML or JSON descriptor:\n  pipegen generate pipeline.yaml",
        )
    except ConfigurationError as e:
        console.print_error(
            "Invalid pipeline descriptor",
            e.message,
            details=[f"kind: {e.kind}", f"field: {e.field}"],
            suggestion="Correct the descriptor and run the command again.",
        )
    except InternalConsistencyError as e:
        console.print_error(
            "Internal generator error",
            e.message,
            details=[f"kind: {e.kind}"] + [f"{k}: {v}" for k, v in e.details.items()],
        )
        console.print_exception(e)
    sys.exit(1)


def _report_warnings(result: GenerationResult) -> None:
    console = get_console()
    for w in result.warnings:
        console.print_warning(w.kind, w.message)


@click.group()
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.pass_context
def cli(ctx, debug):
    """pipegen: deterministic CI/CD workflow generator."""
    console = Console(debug=debug)
    set_console(console)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@cli.command("generate")
@click.argument("descriptor", type=click.Path(dir_okay=False))
@click.option("-o", "--output", default=None, help="Write the workflow to this file instead of stdout")
@click.option(
    "--out-dir",
    default=None,
    type=click.Path(file_okay=False),
    help="Write .github/workflows/ci.yml and ciConfig.json under this directory",
)
@click.option("--check", is_flag=True, default=False, help="Fail if --output differs from the generated workflow")
def generate_cmd(descriptor, output, out_dir, check):
    """Generate a workflow from a pipeline descriptor."""
    console = get_console()
    result = _generate_or_exit(descriptor)
    _report_warnings(result)

    if check:
        if not output:
            console.print_error("Missing --output", "--check compares against an existing workflow file.")
            sys.exit(2)
        path = Path(output)
        current = path.read_text(encoding="utf-8") if path.exists() else None
        if current != result.workflow:
            console.print_error(
                "Workflow is out of date",
                f"{path} does not match the descriptor.",
                suggestion=f"Regenerate it:\n  pipegen generate {descriptor} -o {output}",
            )
            sys.exit(1)
        console.print_info(f"{path} is up to date")
        return

    if out_dir:
        root = Path(out_dir)
        workflow_path = root / WORKFLOW_PATH
        workflow_path.parent.mkdir(parents=True, exist_ok=True)
        workflow_path.write_text(result.workflow, encoding="utf-8")
        config_path = root / CONFIG_PATH
        config_path.write_text(configuration_json(result.descriptor, now_utc()), encoding="utf-8")
        console.print_written(str(workflow_path))
        console.print_written(str(config_path))
    elif output:
        path = Path(output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(result.workflow, encoding="utf-8")
        console.print_written(str(path))
    else:
        click.echo(result.workflow, nl=False)


@cli.command()
@click.argument("descriptor", type=click.Path(dir_okay=False))
def validate(descriptor):
    """Validate a descriptor and print its job plan."""
    console = get_console()
    result = _generate_or_exit(descriptor)
    d = result.descriptor
    console.print_summary(d.project_name, d.architecture.value, d.deploy_strategy.value)
    console.print_plan(job_levels(result.graph))
    _report_warnings(result)


@cli.command()
def languages():
    """List supported languages grouped by toolchain."""
    console = get_console()
    for tid, aliases in catalog.languages_by_toolchain().items():
        entry = catalog.TOOLCHAINS[tid]
        console.print_toolchain(tid, entry.setup_action, entry.default_version, aliases)


@cli.command()
def architectures():
    """List architecture and deploy strategy tags."""
    console = get_console()
    console.print_info("architectures: " + ", ".join(a.value for a in Architecture))
    console.print_info("deploy strategies: " + ", ".join(s.value for s in DeployStrategy))


if __name__ == "__main__":
    cli()
