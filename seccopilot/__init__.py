"""
SecCopilot: multi-domain static security analysis with attack-chain correlation.
"""

from .config import ConfigManager, ScanOptions, SecCopilotConfig
from .constants import VERSION
from .models import Confidence, Finding, RiskLevel, ScanResult, ScanSummary, Severity
from .scanner import Scanner, generate_summary, get_risk_level, run_scan

__version__ = VERSION

__all__ = [
    "Confidence",
    "ConfigManager",
    "Finding",
    "RiskLevel",
    "ScanOptions",
    "ScanResult",
    "ScanSummary",
    "Scanner",
    "SecCopilotConfig",
    "Severity",
    "generate_summary",
    "get_risk_level",
    "run_scan",
]
