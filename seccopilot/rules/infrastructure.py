"""
Infrastructure rules: Kubernetes workloads, compose services and sensitive
configuration files.
"""

from pathlib import PurePosixPath
from typing import Any

from ..artifacts import StructuredArtifact
from ..models import Confidence, Finding, Severity
from .common import FindingBuilder, find_key_line

WORKLOAD_KINDS = {"Pod", "Deployment", "StatefulSet", "DaemonSet", "ReplicaSet", "Job", "CronJob"}


def _mapping(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _pod_spec(document: dict[str, Any]) -> dict[str, Any]:
    spec = _mapping(document.get("spec"))
    kind = document.get("kind")
    if kind == "Pod":
        return spec
    if kind == "CronJob":
        spec = _mapping(_mapping(spec.get("jobTemplate")).get("spec"))
    return _mapping(_mapping(spec.get("template")).get("spec"))


def _containers(pod_spec: dict[str, Any]) -> list[dict[str, Any]]:
    containers = []
    for key in ("initContainers", "containers"):
        value = pod_spec.get(key)
        if isinstance(value, list):
            containers.extend(c for c in value if isinstance(c, dict))
    return containers


def _runs_as_non_root(context: dict[str, Any]) -> bool | None:
    """True/False when the security context decides, None when it is silent."""
    if "runAsNonRoot" in context:
        return context["runAsNonRoot"] is True
    user = context.get("runAsUser")
    if isinstance(user, int):
        return user > 0
    return None


def _container_non_root(container: dict[str, Any], pod_context: dict[str, Any]) -> bool:
    decided = _runs_as_non_root(_mapping(container.get("securityContext")))
    if decided is None:
        decided = _runs_as_non_root(pod_context)
    return bool(decided)


def detect_workload_security(artifact: StructuredArtifact) -> list[Finding]:
    """Privileged containers, root containers and missing resource limits.

    Each issue is reported once per workload document, naming the offending
    containers.
    """
    builder = FindingBuilder("K8S", artifact.path)
    findings = []

    for start, end, document in artifact.located_mappings():
        kind = document.get("kind")
        if kind not in WORKLOAD_KINDS:
            continue
        name = _mapping(document.get("metadata")).get("name", "unnamed")
        pod_spec = _pod_spec(document)
        containers = _containers(pod_spec)
        if not containers:
            continue
        pod_context = _mapping(pod_spec.get("securityContext"))
        workload = f"{kind} '{name}'"

        def names(selected: list[dict[str, Any]]) -> str:
            return ", ".join(str(c.get("name", "unnamed")) for c in selected)

        privileged = [
            c for c in containers if _mapping(c.get("securityContext")).get("privileged") is True
        ]
        if privileged:
            findings.append(
                builder.build(
                    line=find_key_line(artifact.content, "privileged", start, end, "true")
                    or find_key_line(artifact.content, "containers", start, end),
                    severity=Severity.CRITICAL,
                    category="Container Security",
                    title="Privileged container in Kubernetes workload",
                    description=f"{workload} runs privileged containers: {names(privileged)}",
                    recommendation="Remove privileged: true and grant only the capabilities required",
                    business_impact="Container escape, full node compromise",
                    confidence=Confidence.HIGH,
                )
            )

        root = [c for c in containers if not _container_non_root(c, pod_context)]
        if root:
            findings.append(
                builder.build(
                    line=find_key_line(artifact.content, "containers", start, end),
                    severity=Severity.HIGH,
                    category="Container Security",
                    title="Container may run as root",
                    description=f"{workload} does not enforce a non-root user for: {names(root)}",
                    recommendation="Set securityContext.runAsNonRoot: true and a non-zero runAsUser",
                    business_impact="Privilege escalation risk, container escape potential",
                    confidence=Confidence.MEDIUM,
                )
            )

        unbounded = [c for c in containers if not _mapping(_mapping(c.get("resources")).get("limits"))]
        if unbounded:
            findings.append(
                builder.build(
                    line=find_key_line(artifact.content, "containers", start, end),
                    severity=Severity.MEDIUM,
                    category="Resource Management",
                    title="Container without resource limits",
                    description=f"{workload} has containers without resource limits: {names(unbounded)}",
                    recommendation="Set CPU and memory limits on every container",
                    business_impact="Resource exhaustion, denial of service for co-located workloads",
                    confidence=Confidence.HIGH,
                )
            )

    return findings


def detect_compose_services(artifact: StructuredArtifact) -> list[Finding]:
    """Privileged compose services and services without a restart policy."""
    builder = FindingBuilder("COMPOSE", artifact.path)
    privileged: list[str] = []
    no_restart: list[str] = []

    for document in artifact.mappings():
        for name, service in _mapping(document.get("services")).items():
            if not isinstance(service, dict):
                continue
            if service.get("privileged") is True:
                privileged.append(str(name))
            if "restart" not in service and "restart_policy" not in _mapping(service.get("deploy")):
                no_restart.append(str(name))

    findings = []
    if privileged:
        findings.append(
            builder.build(
                line=find_key_line(artifact.content, "privileged", value="true"),
                severity=Severity.HIGH,
                category="Container Security",
                title="Privileged container detected",
                description=f"Compose services running in privileged mode: {', '.join(privileged)}",
                recommendation="Remove privileged mode and use specific capabilities instead",
                business_impact="Container escape, host system compromise",
                confidence=Confidence.HIGH,
            )
        )
    if no_restart:
        findings.append(
            builder.build(
                line=find_key_line(artifact.content, "services"),
                severity=Severity.MEDIUM,
                category="Availability",
                title="Missing restart policy",
                description=f"Compose services without a restart policy: {', '.join(no_restart)}",
                recommendation="Define restart policies for production services",
                business_impact="Service downtime, reduced availability",
                confidence=Confidence.HIGH,
            )
        )
    return findings


# ---------------------------------------------------------------------------
# Sensitive configuration files
# ---------------------------------------------------------------------------

SAFE_ENV_SUFFIXES = (".example", ".sample", ".template")
SENSITIVE_CONFIG_FILES = {
    "config.json",
    "nginx.conf",
    "credentials.json",
    "secrets.yaml",
    "secrets.yml",
}


def sensitive_config_severity(name: str) -> Severity | None:
    """Severity of a root-level file by name, or None if it is not sensitive."""
    if name == ".env" or (name.startswith(".env.") and not name.endswith(SAFE_ENV_SUFFIXES)):
        return Severity.HIGH
    if name in SENSITIVE_CONFIG_FILES:
        return Severity.MEDIUM
    return None


def detect_sensitive_config_file(path: str) -> list[Finding]:
    """Flag a configuration file by existence alone; content is not read."""
    name = PurePosixPath(path).name
    severity = sensitive_config_severity(name)
    if severity is None:
        return []
    return [
        FindingBuilder("CONFIG", path).build(
            severity=severity,
            category="Configuration Security",
            title=f"Sensitive configuration file: {name}",
            description=f"Configuration file {name} may contain sensitive information",
            recommendation="Ensure sensitive values are stored in secure vaults, not config files",
            business_impact="Potential credential or configuration exposure",
            confidence=Confidence.MEDIUM,
        )
    ]


KUBERNETES_DETECTORS = (detect_workload_security,)
COMPOSE_DETECTORS = (detect_compose_services,)
CONFIG_FILE_DETECTORS = (detect_sensitive_config_file,)
