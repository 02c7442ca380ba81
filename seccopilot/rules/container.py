"""
Container build rules for Dockerfiles.

Instructions are read line by line; continuation lines are not joined, which
is enough for FROM and USER.
"""

from ..artifacts import TextArtifact
from ..models import Confidence, Finding, Severity
from .common import FindingBuilder

ROOT_USERS = {"root", "0"}


def _instructions(artifact: TextArtifact) -> list[tuple[int, str, list[str]]]:
    """(line, INSTRUCTION, arguments) for every non-comment instruction line."""
    instructions = []
    for line_number, raw in enumerate(artifact.lines, start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        tokens = line.split()
        instructions.append((line_number, tokens[0].upper(), tokens[1:]))
    return instructions


def _image_tag(image: str) -> str | None:
    """Tag of an image reference, ignoring any registry port."""
    name = image.rsplit("/", 1)[-1]
    if ":" not in name:
        return None
    return name.split(":", 1)[1]


def detect_floating_base_image(artifact: TextArtifact) -> list[Finding]:
    """Flag FROM lines whose base image has no tag or uses ``latest``."""
    builder = FindingBuilder("DOCKER-TAG", artifact.path)
    findings = []
    stages: set[str] = set()

    for line_number, instruction, args in _instructions(artifact):
        if instruction != "FROM":
            continue
        args = [arg for arg in args if not arg.startswith("--")]
        if not args:
            continue
        image = args[0]
        floating = not (
            image.lower() in stages
            or image.lower() == "scratch"
            or "@" in image
            or "$" in image
        ) and _image_tag(image) in (None, "latest")

        if len(args) >= 3 and args[1].upper() == "AS":
            stages.add(args[2].lower())

        if floating:
            findings.append(
                builder.build(
                    line=line_number,
                    severity=Severity.MEDIUM,
                    category="Container Security",
                    title="Docker image using latest tag",
                    description=f"Base image '{image}' uses a floating tag, making builds non-deterministic",
                    recommendation="Use specific version tags or digests for base images",
                    business_impact="Inconsistent deployments, potential security vulnerabilities",
                    confidence=Confidence.HIGH,
                )
            )

    return findings


def detect_root_user(artifact: TextArtifact) -> list[Finding]:
    """Flag Dockerfiles with no USER directive or whose final USER is root."""
    builder = FindingBuilder("DOCKER-USER", artifact.path)
    users = [
        (line_number, args[0])
        for line_number, instruction, args in _instructions(artifact)
        if instruction == "USER" and args
    ]

    if users:
        line_number, user = users[-1]
        if user.split(":", 1)[0].lower() not in ROOT_USERS:
            return []
        description = f"Final USER directive switches to '{user}'"
    else:
        line_number = None
        description = "Dockerfile has no USER directive, so the container runs as root"

    return [
        builder.build(
            line=line_number,
            severity=Severity.HIGH,
            category="Container Security",
            title="Docker container running as root",
            description=description,
            recommendation="Create and use a non-root user in Docker container",
            business_impact="Privilege escalation risk, container escape potential",
            confidence=Confidence.HIGH,
        )
    ]


CONTAINER_BUILD_DETECTORS = (detect_floating_base_image, detect_root_user)
