"""
Cloud configuration rules.

CloudFormation checks walk the parsed ``Resources`` mapping of a template.
Terraform checks are line heuristics over ``.tf``/``.tfvars`` text; HCL is
not parsed.
"""

import logging
import re
from collections.abc import Iterator
from typing import Any, NamedTuple

from ..artifacts import StructuredArtifact, TextArtifact
from ..models import Confidence, Finding, Severity
from .common import FindingBuilder, find_key_line

logger = logging.getLogger(__name__)

PUBLIC_ACLS = {"PublicRead", "PublicReadWrite"}
POLICY_RESOURCE_TYPES = {
    "AWS::IAM::Policy",
    "AWS::IAM::ManagedPolicy",
    "AWS::IAM::Role",
    "AWS::S3::BucketPolicy",
}
ADMIN_PORTS = (22, 3389)
OPEN_CIDRS = {"CidrIp": "0.0.0.0/0", "CidrIpv6": "::/0"}


class Resource(NamedTuple):
    logical_id: str
    type: str
    properties: dict[str, Any]
    line: int | None
    end_line: int | None


def _resources(artifact: StructuredArtifact) -> Iterator[Resource]:
    """Every resource in every document, located at its logical-id line.

    Logical ids are matched only at the indentation of the first one, so a
    property key spelled like a later logical id is not mistaken for it.

    A resource's lines end where the next located resource begins, or at the
    end of its document.
    """
    for start, end, document in artifact.located_mappings():
        resources = document.get("Resources")
        if not isinstance(resources, dict):
            continue
        cursor = find_key_line(artifact.content, "Resources", start, end) or start
        lines = artifact.content.split("\n")
        indent = None
        located = []
        for logical_id, resource in resources.items():
            line = find_key_line(artifact.content, str(logical_id), cursor, end, indent=indent)
            if line is not None:
                cursor = line + 1
                if indent is None:
                    text = lines[line - 1]
                    indent = len(text) - len(text.lstrip(" "))
            located.append((str(logical_id), resource, line))

        following = [line for _, _, line in located[1:]] + [None]
        for (logical_id, resource, line), next_line in zip(located, following):
            if not isinstance(resource, dict):
                continue
            properties = resource.get("Properties")
            yield Resource(
                logical_id=logical_id,
                type=str(resource.get("Type", "")),
                properties=properties if isinstance(properties, dict) else {},
                line=line,
                end_line=next_line - 1 if next_line is not None and line is not None else end,
            )


def _line_in(artifact: StructuredArtifact, resource: Resource, key: str, value: str | None = None) -> int | None:
    """Line of ``key`` inside ``resource``, falling back to the logical-id line."""
    if resource.line is None:
        return None
    return find_key_line(artifact.content, key, resource.line, resource.end_line, value) or resource.line


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    return value if isinstance(value, list) else [value]


# ---------------------------------------------------------------------------
# S3
# ---------------------------------------------------------------------------


def detect_s3_bucket_exposure(artifact: StructuredArtifact) -> list[Finding]:
    """Public bucket ACLs and buckets without server-side encryption."""
    builder = FindingBuilder("CFN-S3", artifact.path)
    findings = []

    for resource in _resources(artifact):
        if resource.type != "AWS::S3::Bucket":
            continue
        logical_id, properties = resource.logical_id, resource.properties

        acl = properties.get("AccessControl")
        if acl in PUBLIC_ACLS:
            findings.append(
                builder.build(
                    line=_line_in(artifact, resource, "AccessControl"),
                    severity=Severity.CRITICAL,
                    category="Data Exposure",
                    title="S3 bucket with public access",
                    description=f"S3 bucket '{logical_id}' is configured with {acl} access",
                    recommendation="Remove public access and use bucket policies for controlled access",
                    business_impact="Sensitive data exposure, compliance violations",
                    confidence=Confidence.HIGH,
                )
            )

        if "BucketEncryption" not in properties:
            findings.append(
                builder.build(
                    line=resource.line,
                    severity=Severity.HIGH,
                    category="Encryption",
                    title="S3 bucket without encryption",
                    description=f"S3 bucket '{logical_id}' does not have server-side encryption configured",
                    recommendation="Enable server-side encryption with AES-256 or KMS",
                    business_impact="Data at rest not protected, compliance issues",
                    confidence=Confidence.HIGH,
                )
            )

    return findings


# ---------------------------------------------------------------------------
# IAM
# ---------------------------------------------------------------------------


def _policy_documents(properties: dict[str, Any]) -> Iterator[dict[str, Any]]:
    for key in ("PolicyDocument", "AssumeRolePolicyDocument"):
        document = properties.get(key)
        if isinstance(document, dict):
            yield document
    for policy in _as_list(properties.get("Policies")):
        if isinstance(policy, dict) and isinstance(policy.get("PolicyDocument"), dict):
            yield policy["PolicyDocument"]


def _is_wildcard_principal(principal: Any) -> bool:
    if principal == "*":
        return True
    if isinstance(principal, dict):
        return any("*" in _as_list(value) for value in principal.values())
    return False


def detect_iam_wildcards(artifact: StructuredArtifact) -> list[Finding]:
    """Allow statements granting every action or trusting every principal."""
    builder = FindingBuilder("CFN-IAM", artifact.path)
    findings = []

    for resource in _resources(artifact):
        if resource.type not in POLICY_RESOURCE_TYPES:
            continue
        logical_id, line = resource.logical_id, resource.line

        for document in _policy_documents(resource.properties):
            for statement in _as_list(document.get("Statement")):
                if not isinstance(statement, dict) or statement.get("Effect") != "Allow":
                    continue

                if "*" in _as_list(statement.get("Action")):
                    findings.append(
                        builder.build(
                            line=line,
                            severity=Severity.HIGH,
                            category="Access Control",
                            title="IAM policy with wildcard actions",
                            description=f"Policy in '{logical_id}' allows all actions (*)",
                            recommendation="Follow principle of least privilege and specify exact actions",
                            business_impact="Excessive permissions, privilege escalation risk",
                            confidence=Confidence.HIGH,
                        )
                    )

                if _is_wildcard_principal(statement.get("Principal")):
                    findings.append(
                        builder.build(
                            line=line,
                            severity=Severity.CRITICAL,
                            category="Access Control",
                            title="Policy with wildcard principal",
                            description=f"Policy in '{logical_id}' allows access from any principal (*)",
                            recommendation="Restrict the principal to specific accounts, roles or services",
                            business_impact="Anyone can assume the role or reach the resource",
                            confidence=Confidence.HIGH,
                        )
                    )

    return findings


# ---------------------------------------------------------------------------
# Security groups
# ---------------------------------------------------------------------------


def _port(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _exposes_admin_port(rule: dict[str, Any]) -> bool:
    if str(rule.get("IpProtocol", "")) == "-1":
        return True
    from_port = _port(rule.get("FromPort"))
    to_port = _port(rule.get("ToPort"))
    if from_port is None and to_port is None:
        return False
    low = from_port if from_port is not None else to_port
    high = to_port if to_port is not None else from_port
    if low == -1 or high == -1:
        return True
    return any(low <= port <= high for port in ADMIN_PORTS)


def _ingress_rules(resource_type: str, properties: dict[str, Any]) -> list[dict[str, Any]]:
    if resource_type == "AWS::EC2::SecurityGroup":
        return [rule for rule in _as_list(properties.get("SecurityGroupIngress")) if isinstance(rule, dict)]
    if resource_type == "AWS::EC2::SecurityGroupIngress":
        return [properties]
    return []


def detect_open_ingress(artifact: StructuredArtifact) -> list[Finding]:
    """Ingress rules open to the whole internet."""
    builder = FindingBuilder("CFN-SG", artifact.path)
    findings = []

    for resource in _resources(artifact):
        logical_id = resource.logical_id
        cursor = resource.line
        for rule in _ingress_rules(resource.type, resource.properties):
            open_keys = [key for key, cidr in OPEN_CIDRS.items() if rule.get(key) == cidr]
            if not open_keys:
                continue

            admin = _exposes_admin_port(rule)
            ports = f"{rule.get('FromPort', '*')}-{rule.get('ToPort', '*')}"
            line = None
            if cursor is not None:
                key = open_keys[0]
                line = find_key_line(
                    artifact.content, key, cursor, resource.end_line, OPEN_CIDRS[key]
                )
                cursor = line + 1 if line is not None else cursor
            line = line or resource.line
            findings.append(
                builder.build(
                    line=line,
                    severity=Severity.CRITICAL if admin else Severity.HIGH,
                    category="Network Security",
                    title="Security group allows unrestricted access",
                    description=(
                        f"Security group '{logical_id}' allows ingress from "
                        f"{rule[open_keys[0]]} on ports {ports}"
                    ),
                    recommendation="Restrict ingress rules to specific IP ranges and ports",
                    business_impact="Unauthorized network access, potential data breach",
                    confidence=Confidence.HIGH,
                )
            )

    return findings


# ---------------------------------------------------------------------------
# Terraform
# ---------------------------------------------------------------------------

PASSWORD_ASSIGNMENT = re.compile(r"password\w*\s*=", re.IGNORECASE)
REFERENCE_MARKERS = ("var.", "local.", "data.", "${")


def detect_terraform_issues(artifact: TextArtifact) -> list[Finding]:
    """Hardcoded passwords and world-open CIDR literals, one finding per line."""
    builder = FindingBuilder("TF", artifact.path)
    findings = []

    for line_number, line in enumerate(artifact.lines, start=1):
        if PASSWORD_ASSIGNMENT.search(line):
            value = line.split("=", 1)[1]
            if not any(marker in value for marker in REFERENCE_MARKERS):
                findings.append(
                    builder.build(
                        line=line_number,
                        severity=Severity.HIGH,
                        category="Secrets Management",
                        title="Hardcoded password in Terraform",
                        description="Password appears to be hardcoded in Terraform configuration",
                        recommendation="Use Terraform variables or AWS Secrets Manager",
                        business_impact="Credential exposure in version control",
                        confidence=Confidence.MEDIUM,
                    )
                )

        if "0.0.0.0/0" in line:
            findings.append(
                builder.build(
                    line=line_number,
                    severity=Severity.HIGH,
                    category="Network Security",
                    title="Unrestricted network access",
                    description="CIDR block 0.0.0.0/0 allows access from anywhere",
                    recommendation="Restrict CIDR blocks to specific IP ranges",
                    business_impact="Unauthorized access from internet",
                    confidence=Confidence.MEDIUM,
                )
            )

    return findings


CLOUDFORMATION_DETECTORS = (detect_s3_bucket_exposure, detect_iam_wildcards, detect_open_ingress)
TERRAFORM_DETECTORS = (detect_terraform_issues,)
