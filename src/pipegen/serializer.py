"""Deterministic YAML rendering of an assembled job graph."""

from __future__ import annotations

from typing import Any, Dict

import yaml

from .dag import job_levels
from .descriptor import PipelineDescriptor
from .errors import InternalConsistencyError
from .model import Job, JobGraph, Step

LINE_WIDTH = 4096


class _FlowList(list):
    """Rendered inline: `needs: [a, b]`."""


class WorkflowDumper(yaml.SafeDumper):
    """SafeDumper with GitHub-style indentation and no anchors."""

    def ignore_aliases(self, data: Any) -> bool:
        return True

    def increase_indent(self, flow: bool = False, indentless: bool = False):
        return super().increase_indent(flow, False)


def _represent_str(dumper: yaml.SafeDumper, value: str):
    style = "|" if "\n" in value else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", value, style=style)


def _represent_flow_list(dumper: yaml.SafeDumper, value: _FlowList):
    return dumper.represent_sequence("tag:yaml.org,2002:seq", value, flow_style=True)


WorkflowDumper.add_representer(str, _represent_str)
WorkflowDumper.add_representer(_FlowList, _represent_flow_list)


def _step_dict(step: Step) -> Dict[str, Any]:
    out: Dict[str, Any] = {"name": step.name}
    if step.condition:
        out["if"] = step.condition
    if step.uses:
        out["uses"] = step.uses
    if step.with_args:
        out["with"] = dict(step.with_args)
    if step.run is not None:
        out["run"] = step.run
    if step.cwd:
        out["working-directory"] = step.cwd
    if step.env:
        out["env"] = dict(step.env)
    return out


def _job_dict(job: Job, graph: JobGraph) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    if job.needs:
        # declaration order, never set iteration order
        out["needs"] = _FlowList(sorted(set(job.needs), key=graph.order_of))
    if job.condition:
        out["if"] = job.condition
    out["runs-on"] = job.runs_on
    if job.matrix is not None:
        matrix: Dict[str, Any] = {job.matrix.key: _FlowList(job.matrix.values)}
        if job.matrix.include:
            matrix["include"] = [dict(e) for e in job.matrix.include]
        out["strategy"] = {"fail-fast": False, "matrix": matrix}
    out["steps"] = [_step_dict(s) for s in job.steps]
    return out


def _check(graph: JobGraph) -> None:
    job_levels(graph)
    for job in graph:
        if not job.steps:
            raise InternalConsistencyError("EmptyJob", f"Job '{job.name}' has no steps", {"job": job.name})
        if job.matrix is not None and not job.matrix.values:
            raise InternalConsistencyError("EmptyMatrix", f"Job '{job.name}' has an empty matrix", {"job": job.name})


def workflow_document(graph: JobGraph, descriptor: PipelineDescriptor) -> Dict[str, Any]:
    return {
        "name": f"{descriptor.project_name} CI/CD Pipeline",
        "on": {
            "push": {"branches": ["main", "develop"]},
            "pull_request": {"branches": ["main"]},
            "workflow_dispatch": {},
        },
        "env": {"PROJECT_NAME": descriptor.project_name},
        "jobs": {job.name: _job_dict(job, graph) for job in graph},
    }


def render(graph: JobGraph, descriptor: PipelineDescriptor) -> str:
    """Render the workflow text. Identical input yields byte-identical output."""
    _check(graph)
    return yaml.dump(
        workflow_document(graph, descriptor),
        Dumper=WorkflowDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
        width=LINE_WIDTH,
    )
