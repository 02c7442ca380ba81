"""
Demo analyzer: fixed illustrative findings, no file system or network access.
"""

from ..models import Confidence, Finding, Severity

DEMO_FINDINGS: dict[str, tuple[dict, ...]] = {
    "code": (
        {
            "id": "DEMO_001",
            "severity": Severity.CRITICAL,
            "category": "Secrets Management",
            "title": "AWS Access Key exposed in config.js",
            "description": "Hard-coded AWS access key found in configuration file",
            "file": "src/config.js",
            "line": 12,
            "recommendation": "Move AWS credentials to environment variables",
            "business_impact": "Potential unauthorized access to AWS resources",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "DEMO_002",
            "severity": Severity.HIGH,
            "category": "Injection",
            "title": "SQL Injection vulnerability in user.js",
            "description": "Dynamic SQL query construction without parameterization",
            "file": "src/models/user.js",
            "line": 45,
            "recommendation": "Use parameterized queries or ORM methods",
            "business_impact": "Database compromise, data exfiltration risk",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "DEMO_003",
            "severity": Severity.MEDIUM,
            "category": "Container Security",
            "title": "Docker container running as root",
            "description": "Dockerfile does not specify non-root user",
            "file": "Dockerfile",
            "line": 8,
            "recommendation": "Add USER directive with non-root user",
            "business_impact": "Container escape and privilege escalation risk",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "DEMO_004",
            "severity": Severity.MEDIUM,
            "category": "Cross-Site Scripting",
            "title": "Potential XSS in template.js",
            "description": "User input rendered without proper encoding",
            "file": "src/views/template.js",
            "line": 23,
            "recommendation": "Use template engine with auto-escaping",
            "business_impact": "Session hijacking, malicious script execution",
            "confidence": Confidence.MEDIUM,
        },
    ),
    "cloud": (
        {
            "id": "CLOUD_001",
            "severity": Severity.CRITICAL,
            "category": "Data Exposure",
            "title": "S3 bucket configured for public read access",
            "description": "Production S3 bucket allows public read access",
            "file": "cloudformation/storage.yaml",
            "line": 23,
            "recommendation": "Remove public access and implement IAM controls",
            "business_impact": "Complete data exposure, compliance violations",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "CLOUD_002",
            "severity": Severity.CRITICAL,
            "category": "Network Security",
            "title": "Security group allows SSH from anywhere",
            "description": "EC2 security group allows SSH access from 0.0.0.0/0",
            "file": "terraform/main.tf",
            "line": 45,
            "recommendation": "Restrict SSH access to specific IP ranges",
            "business_impact": "Unauthorized server access, system compromise",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "CLOUD_003",
            "severity": Severity.HIGH,
            "category": "Access Control",
            "title": "IAM role with wildcard permissions",
            "description": 'Production IAM role grants Action: "*" permissions',
            "file": "cloudformation/iam.yaml",
            "line": 67,
            "recommendation": "Apply principle of least privilege",
            "business_impact": "Privilege escalation, unauthorized access",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "CLOUD_004",
            "severity": Severity.HIGH,
            "category": "Encryption",
            "title": "RDS instance without encryption",
            "description": "Database does not have encryption at rest enabled",
            "file": "terraform/database.tf",
            "line": 12,
            "recommendation": "Enable RDS encryption with KMS",
            "business_impact": "Data exposure if storage is compromised",
            "confidence": Confidence.HIGH,
        },
    ),
    "infra": (
        {
            "id": "INFRA_001",
            "severity": Severity.CRITICAL,
            "category": "Container Security",
            "title": "Kubernetes pod running privileged containers",
            "description": "Production pod configured with privileged: true",
            "file": "k8s/deployment.yaml",
            "line": 34,
            "recommendation": "Remove privileged mode and use specific capabilities",
            "business_impact": "Container escape, host system compromise",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "INFRA_002",
            "severity": Severity.HIGH,
            "category": "Container Security",
            "title": "Kubernetes container running as root",
            "description": "Container spec does not set runAsNonRoot: true",
            "file": "k8s/deployment.yaml",
            "line": 28,
            "recommendation": "Set runAsUser to non-zero and runAsNonRoot: true",
            "business_impact": "Privilege escalation within container",
            "confidence": Confidence.HIGH,
        },
        {
            "id": "INFRA_003",
            "severity": Severity.HIGH,
            "category": "Network Security",
            "title": "Kubernetes service without network policies",
            "description": "No network policies defined to restrict pod communication",
            "file": "k8s/service.yaml",
            "recommendation": "Implement Kubernetes network policies",
            "business_impact": "Lateral movement in compromised cluster",
            "confidence": Confidence.MEDIUM,
        },
        {
            "id": "INFRA_004",
            "severity": Severity.MEDIUM,
            "category": "Resource Management",
            "title": "Missing resource limits in deployment",
            "description": "Container does not define CPU/memory limits",
            "file": "k8s/deployment.yaml",
            "line": 45,
            "recommendation": "Add resource requests and limits",
            "business_impact": "Denial of service, cluster instability",
            "confidence": Confidence.HIGH,
        },
    ),
}


class DemoAnalyzer:
    """Stands in for a domain analyzer when the scan runs in demo mode."""

    def __init__(self, name: str):
        self.name = name

    async def analyze(self) -> list[Finding]:
        return [Finding(**fields) for fields in DEMO_FINDINGS.get(self.name, ())]
