"""
Source code rules: injection, XSS, dynamic evaluation and secret patterns.

These are line-level regex heuristics, not a sound analysis. Commented-out
code, test fixtures and string literals are matched like live code.
"""

import re

from ..artifacts import TextArtifact
from ..models import Confidence, Finding, Severity
from .common import PatternRule, apply_pattern_rules

SQL_INJECTION_RULES = (
    PatternRule(
        name="concatenated SELECT",
        pattern=re.compile(r"query\s*=\s*['\"]\s*SELECT.*\+", re.IGNORECASE),
        severity=Severity.HIGH,
        category="Injection",
        title="Potential SQL Injection",
        description="SQL query construction using string concatenation detected",
        recommendation="Use parameterized queries or prepared statements",
        business_impact="Data breach, unauthorized data access",
        confidence=Confidence.HIGH,
    ),
    PatternRule(
        name="concatenated execute",
        pattern=re.compile(r"execute\s*\(\s*['\"].*\+", re.IGNORECASE),
        severity=Severity.HIGH,
        category="Injection",
        title="Potential SQL Injection",
        description="SQL statement passed to execute() is built with string concatenation",
        recommendation="Use parameterized queries or prepared statements",
        business_impact="Data breach, unauthorized data access",
        confidence=Confidence.HIGH,
    ),
)

XSS_RULES = (
    PatternRule(
        name="innerHTML",
        pattern=re.compile(r"innerHTML\s*=\s*.*\+"),
        severity=Severity.MEDIUM,
        category="Cross-Site Scripting",
        title="Potential XSS Vulnerability",
        description="Dynamic HTML content generation without proper sanitization",
        recommendation="Use proper output encoding and input validation",
        business_impact="Session hijacking, malicious script execution",
    ),
    PatternRule(
        name="document.write",
        pattern=re.compile(r"document\.write\s*\("),
        severity=Severity.MEDIUM,
        category="Cross-Site Scripting",
        title="Potential XSS Vulnerability",
        description="Direct markup write through document.write()",
        recommendation="Use proper output encoding and input validation",
        business_impact="Session hijacking, malicious script execution",
    ),
)

DYNAMIC_EVALUATION_RULES = (
    PatternRule(
        name="eval",
        pattern=re.compile(r"(?<![\w.])eval\s*\("),
        severity=Severity.HIGH,
        category="Injection",
        title="Dynamic code evaluation with {name}()",
        description="{name}() executes arbitrary expressions and is dangerous with untrusted input",
        recommendation="Replace {name}() with explicit parsing such as ast.literal_eval or json.loads",
        business_impact="Remote code execution",
        confidence=Confidence.HIGH,
    ),
    PatternRule(
        name="exec",
        pattern=re.compile(r"(?<![\w.])exec\s*\("),
        severity=Severity.HIGH,
        category="Injection",
        title="Dynamic code evaluation with {name}()",
        description="{name}() executes arbitrary code and is dangerous with untrusted input",
        recommendation="Remove {name}() and dispatch to known functions instead",
        business_impact="Remote code execution",
        confidence=Confidence.HIGH,
    ),
)

_INTERPOLATED = r"(?:f['\"]|[^,)\n]*(?:%|\+|\.format\())"

SHELL_INJECTION_RULES = (
    PatternRule(
        name="os.system",
        pattern=re.compile(rf"os\.(?:system|popen)\s*\(\s*{_INTERPOLATED}"),
        severity=Severity.HIGH,
        category="Injection",
        title="Shell command built from interpolated string",
        description="A shell command passed to {name}() is assembled with string interpolation",
        recommendation="Use subprocess with an argument list and shell=False",
        business_impact="Arbitrary command execution on the host",
        confidence=Confidence.MEDIUM,
    ),
    PatternRule(
        name="subprocess",
        pattern=re.compile(
            rf"subprocess\.(?:run|call|Popen|check_call|check_output|getoutput|getstatusoutput)"
            rf"\s*\(\s*{_INTERPOLATED}"
        ),
        severity=Severity.HIGH,
        category="Injection",
        title="Shell command built from interpolated string",
        description="A command passed to {name} is assembled with string interpolation",
        recommendation="Pass an argument list and keep shell=False",
        business_impact="Arbitrary command execution on the host",
        confidence=Confidence.MEDIUM,
    ),
)

_SECRET_TEXT = {
    "severity": Severity.CRITICAL,
    "category": "Secrets Management",
    "title": "Potential {name} exposed",
    "description": "Possible {name} found in source code",
    "recommendation": "Remove {name} from source code and use environment variables",
    "business_impact": "Credential exposure could lead to unauthorized access",
    "confidence": Confidence.MEDIUM,
}

SECRET_RULES = (
    PatternRule(name="AWS Access Key", pattern=re.compile(r"AKIA[0-9A-Z]{16}"), **_SECRET_TEXT),
    PatternRule(name="GitHub Token", pattern=re.compile(r"ghp_[0-9a-zA-Z]{36}"), **_SECRET_TEXT),
    PatternRule(
        name="API Key",
        pattern=re.compile(r"api[_-]?key['\":\s=]*['\"][0-9a-zA-Z]{20,}['\"]", re.IGNORECASE),
        **_SECRET_TEXT,
    ),
    PatternRule(
        name="Private Key",
        pattern=re.compile(r"-----BEGIN (?:RSA |EC |DSA |OPENSSH )?PRIVATE KEY-----"),
        **_SECRET_TEXT,
    ),
)


def detect_sql_injection(artifact: TextArtifact) -> list[Finding]:
    return apply_pattern_rules(artifact, SQL_INJECTION_RULES, "SQL")


def detect_xss(artifact: TextArtifact) -> list[Finding]:
    return apply_pattern_rules(artifact, XSS_RULES, "XSS")


def detect_dynamic_evaluation(artifact: TextArtifact) -> list[Finding]:
    return apply_pattern_rules(artifact, DYNAMIC_EVALUATION_RULES, "EVAL")


def detect_shell_injection(artifact: TextArtifact) -> list[Finding]:
    return apply_pattern_rules(artifact, SHELL_INJECTION_RULES, "SHELL")


def detect_secrets(artifact: TextArtifact) -> list[Finding]:
    return apply_pattern_rules(artifact, SECRET_RULES, "SECRET")


WEB_SOURCE_DETECTORS = (detect_sql_injection, detect_xss)
SCRIPT_DETECTORS = (detect_dynamic_evaluation, detect_shell_injection)
SECRET_DETECTORS = (detect_secrets,)
