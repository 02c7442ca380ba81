"""
Domain analyzers and their registry.

Each registered factory builds one analyzer for a scan. The orchestrator runs
them in registration order; adding a domain means registering a factory.
"""

from collections.abc import Callable

from .base import Analyzer, ScanContext, run_detectors
from .cloud import CloudAnalyzer
from .code import CodeAnalyzer
from .demo import DemoAnalyzer
from .infrastructure import InfrastructureAnalyzer

AnalyzerFactory = Callable[[ScanContext], Analyzer]

_REGISTRY: dict[str, AnalyzerFactory] = {}


def register_analyzer(name: str, factory: AnalyzerFactory) -> None:
    """Register (or replace) the analyzer factory for a domain."""
    _REGISTRY[name] = factory


def registered_analyzers() -> list[str]:
    return list(_REGISTRY)


def build_analyzers(context: ScanContext) -> list[Analyzer]:
    """One analyzer per registered domain, demo stand-ins in demo mode."""
    if context.demo:
        return [DemoAnalyzer(name) for name in _REGISTRY]
    return [factory(context) for factory in _REGISTRY.values()]


register_analyzer("code", CodeAnalyzer)
register_analyzer("cloud", CloudAnalyzer)
register_analyzer("infra", InfrastructureAnalyzer)

__all__ = [
    "Analyzer",
    "AnalyzerFactory",
    "CloudAnalyzer",
    "CodeAnalyzer",
    "DemoAnalyzer",
    "InfrastructureAnalyzer",
    "ScanContext",
    "build_analyzers",
    "register_analyzer",
    "registered_analyzers",
    "run_detectors",
]
