# generator.py
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, List

from . import topology
from .assembler import assemble
from .descriptor import Architecture, DeployStrategy, PipelineDescriptor, parse_descriptor
from .errors import GenerationWarning, dependencies_ignored, package_only_deploy_ignored
from .model import JobGraph
from .serializer import render

CONFIG_VERSION = "1.0.0"


@dataclass(frozen=True)
class GenerationResult:
    descriptor: PipelineDescriptor
    graph: JobGraph
    workflow: str
    warnings: List[GenerationWarning] = field(default_factory=list)


def _warnings(d: PipelineDescriptor) -> List[GenerationWarning]:
    out: List[GenerationWarning] = []
    if d.architecture is Architecture.EXTENSION and d.deploy_strategy is not DeployStrategy.NONE:
        out.append(package_only_deploy_ignored(d.deploy_strategy.value))
    # only FULLSTACK turns dependencies into `needs` edges
    with_deps = [c.name for c in d.components if c.dependencies]
    if with_deps and d.architecture is not Architecture.FULLSTACK:
        out.append(dependencies_ignored(d.architecture.value, with_deps))
    return out


def generate(payload: Any) -> GenerationResult:
    """
    validate -> topology -> steps -> text

    Raises ConfigurationError for bad input (before any graph exists) and
    InternalConsistencyError for generator defects.
    """
    descriptor = parse_descriptor(payload)
    graph = assemble(topology.build(descriptor), descriptor)
    return GenerationResult(
        descriptor=descriptor,
        graph=graph,
        workflow=render(graph, descriptor),
        warnings=_warnings(descriptor),
    )


def configuration_json(descriptor: PipelineDescriptor, generated_at: datetime) -> str:
    """Companion ciConfig.json document; the only place a timestamp appears."""
    doc = descriptor.to_dict()
    doc["generatedOn"] = generated_at.isoformat()
    doc["version"] = CONFIG_VERSION
    return json.dumps(doc, indent=2) + "\n"
