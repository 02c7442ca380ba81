"""Detection rule catalogs, grouped by artifact kind."""

from .cloud import CLOUDFORMATION_DETECTORS, TERRAFORM_DETECTORS
from .code import SCRIPT_DETECTORS, SECRET_DETECTORS, WEB_SOURCE_DETECTORS
from .common import Detector, FindingBuilder, PatternRule, apply_pattern_rules, finding_id
from .container import CONTAINER_BUILD_DETECTORS
from .infrastructure import COMPOSE_DETECTORS, CONFIG_FILE_DETECTORS, KUBERNETES_DETECTORS

__all__ = [
    "CLOUDFORMATION_DETECTORS",
    "COMPOSE_DETECTORS",
    "CONFIG_FILE_DETECTORS",
    "CONTAINER_BUILD_DETECTORS",
    "Detector",
    "FindingBuilder",
    "KUBERNETES_DETECTORS",
    "PatternRule",
    "SCRIPT_DETECTORS",
    "SECRET_DETECTORS",
    "TERRAFORM_DETECTORS",
    "WEB_SOURCE_DETECTORS",
    "apply_pattern_rules",
    "finding_id",
]
