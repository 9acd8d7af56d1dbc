from .descriptor import Architecture, DeployStrategy, LanguageComponent, PipelineDescriptor, parse_descriptor
from .errors import ConfigurationError, GenerationWarning, InternalConsistencyError
from .generator import GenerationResult, generate
from .lifecycle import AsyncLifecycleManager, ConfigurationStatistics, InMemoryConfigurationStore, LifecycleManager
from .model import Job, JobGraph, Step

__all__ = [
    "Architecture",
    "DeployStrategy",
    "LanguageComponent",
    "PipelineDescriptor",
    "parse_descriptor",
    "ConfigurationError",
    "GenerationWarning",
    "InternalConsistencyError",
    "GenerationResult",
    "generate",
    "AsyncLifecycleManager",
    "ConfigurationStatistics",
    "InMemoryConfigurationStore",
    "LifecycleManager",
    "Job",
    "JobGraph",
    "Step",
]
