# assembler.py
from __future__ import annotations

from dataclasses import replace
from typing import List

from .descriptor import PipelineDescriptor
from .dsl import uses
from .errors import InternalConsistencyError
from .model import Intent, Job, JobGraph, Phase, Step
from .step_workflows.deploy import TEMPLATES, deploy_steps
from .step_workflows.package import package_steps
from .step_workflows.setup import (
    command_step,
    install_step,
    matrix_command_step,
    matrix_install_steps,
    matrix_setup_steps,
    setup_step,
)

CHECKOUT = uses("Checkout code", "actions/checkout@v4")


def _expand(intent: Intent, d: PipelineDescriptor) -> List[Step]:
    c = intent.component
    if intent.phase is Phase.SETUP:
        return [setup_step(c)]
    if intent.phase is Phase.INSTALL:
        step = install_step(c)
        return [step] if step else []
    if intent.phase is Phase.TEST:
        step = command_step("Run tests for", c, c.test_command)
        return [step] if step else []
    if intent.phase is Phase.BUILD:
        step = command_step("Build", c, c.build_command)
        return [step] if step else []
    if intent.phase is Phase.PACKAGE:
        return package_steps(c)
    if intent.phase is Phase.DEPLOY:
        strategy = d.deploy_strategy.value
        if strategy not in TEMPLATES:
            raise InternalConsistencyError(
                kind="MissingDeployTemplate",
                message=f"Deploy job planned for strategy {strategy} without a template",
                details={"strategy": strategy},
            )
        return deploy_steps(strategy, d.environment_variables)
    raise InternalConsistencyError("UnknownPhase", f"Unhandled phase {intent.phase!r}")


def _expand_matrix(job: Job) -> List[Step]:
    entries = job.matrix.include
    steps: List[Step] = []
    for intent in job.intents:
        if intent.phase is Phase.SETUP:
            steps.extend(matrix_setup_steps(entries))
        elif intent.phase is Phase.INSTALL:
            steps.extend(matrix_install_steps(entries))
        elif intent.phase is Phase.TEST:
            step = matrix_command_step("Run tests for", "test-command", entries)
            if step:
                steps.append(step)
        elif intent.phase is Phase.BUILD:
            step = matrix_command_step("Build", "build-command", entries)
            if step:
                steps.append(step)
        else:
            raise InternalConsistencyError(
                "UnsupportedMatrixPhase",
                f"Matrix job '{job.name}' cannot expand phase {intent.phase.value}",
                {"job": job.name},
            )
    return steps


def assemble(graph: JobGraph, descriptor: PipelineDescriptor) -> JobGraph:
    """Expand every job's intents into concrete ordered steps."""
    jobs: List[Job] = []
    for job in graph:
        if job.matrix is not None:
            steps = _expand_matrix(job)
        else:
            steps = [s for intent in job.intents for s in _expand(intent, descriptor)]
        jobs.append(replace(job, steps=[CHECKOUT, *steps]))
    return JobGraph(jobs=jobs)
