# topology.py
from __future__ import annotations

import re
from typing import Callable, Dict, List

from . import catalog
from .descriptor import Architecture, LanguageComponent, PipelineDescriptor
from .dsl import job, matrix, wf
from .model import Intent, Job, JobGraph, Phase

DEPLOY_JOB = "deploy"
MAIN_BRANCH_ONLY = "github.ref == 'refs/heads/main'"

_SLUG = re.compile(r"[^A-Za-z0-9_-]+")


def job_slug(name: str) -> str:
    """Turn a component label into a valid job id fragment."""
    slug = _SLUG.sub("-", name).strip("-").lower()
    if not slug or not (slug[0].isalpha() or slug[0] == "_"):
        slug = f"c-{slug}" if slug else "component"
    return slug


def _component_intents(component: LanguageComponent, *phases: Phase) -> List[Intent]:
    out = [Intent(Phase.SETUP, component)]
    if catalog.resolve(component.language).install_command:
        out.append(Intent(Phase.INSTALL, component))
    out.extend(Intent(p, component) for p in phases)
    return out


def _deploy_job(needs: List[str]) -> Job:
    return job(DEPLOY_JOB, Intent(Phase.DEPLOY), needs=needs, condition=MAIN_BRANCH_ONLY)


# ---------------------------------------------------------------------
# Per-architecture strategies
# ---------------------------------------------------------------------

def _monolith(d: PipelineDescriptor) -> JobGraph:
    test_intents: List[Intent] = []
    build_intents: List[Intent] = []
    for c in d.components:
        test_intents.extend(_component_intents(c, Phase.TEST))
        build_intents.extend(_component_intents(c, Phase.BUILD))

    jobs = [
        job("test", *test_intents),
        job("build", *build_intents, needs=["test"]),
    ]
    if d.deploys:
        jobs.append(_deploy_job(["build"]))
    return wf(*jobs)


MATRIX_JOB = "services"
MATRIX_KEY = "service"


def matrix_entry(c: LanguageComponent) -> Dict[str, str]:
    entry = catalog.resolve(c.language)
    return {
        MATRIX_KEY: c.name,
        "directory": c.directory or ".",
        "toolchain": entry.id,
        "version": entry.version_for(c.version) or "",
        "test-command": c.test_command,
        "build-command": c.build_command,
    }


def _microservices(d: PipelineDescriptor) -> JobGraph:
    # One templated job; every matrix instance runs setup -> test -> build for
    # its own component, so there are no edges between components.
    fan_out = matrix(
        MATRIX_KEY,
        [c.name for c in d.components],
        include=[matrix_entry(c) for c in d.components],
    )
    services = job(
        MATRIX_JOB,
        Intent(Phase.SETUP),
        Intent(Phase.INSTALL),
        Intent(Phase.TEST),
        Intent(Phase.BUILD),
        matrix=fan_out,
    )
    jobs = [services]
    if d.deploys:
        # needs the matrix job as a whole: waits for every instance
        jobs.append(_deploy_job([MATRIX_JOB]))
    return wf(*jobs)


def component_job_id(c: LanguageComponent) -> str:
    return f"{job_slug(c.name)}-build"


def _component_job_ids(d: PipelineDescriptor) -> Dict[str, str]:
    ids: Dict[str, str] = {}
    taken = {DEPLOY_JOB}
    for c in d.components:
        base = candidate = component_job_id(c)
        n = 2
        while candidate in taken:
            candidate = f"{base}-{n}"
            n += 1
        taken.add(candidate)
        ids[c.name] = candidate
    return ids


def _fullstack(d: PipelineDescriptor) -> JobGraph:
    ids = _component_job_ids(d)
    jobs = [
        job(
            ids[c.name],
            *_component_intents(c, Phase.TEST, Phase.BUILD),
            needs=[ids[dep] for dep in c.dependencies],
        )
        for c in d.components
    ]
    if d.deploys:
        # every component job gates deploy, main or not
        jobs.append(_deploy_job([ids[c.name] for c in d.components]))
    return wf(*jobs)


EXTENSION_JOB = "build-extension"


def _extension(d: PipelineDescriptor) -> JobGraph:
    (c,) = d.components
    # package-only: deploy strategy never adds a job here
    return wf(job(EXTENSION_JOB, *_component_intents(c, Phase.TEST, Phase.BUILD, Phase.PACKAGE)))


STRATEGIES: Dict[Architecture, Callable[[PipelineDescriptor], JobGraph]] = {
    Architecture.MONOLITH: _monolith,
    Architecture.MICROSERVICES: _microservices,
    Architecture.FULLSTACK: _fullstack,
    Architecture.EXTENSION: _extension,
}


def build(descriptor: PipelineDescriptor) -> JobGraph:
    """Build the job graph for a validated descriptor. Pure and deterministic."""
    return STRATEGIES[descriptor.architecture](descriptor)
