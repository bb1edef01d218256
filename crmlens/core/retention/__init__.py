"""
GDPR retention sweeps over contacts.

Classification only: deciding what a sweep would delete or anonymize.
Carrying out deletions happens server-side and is not part of this package.
"""

from crmlens.core.retention.classifier import RetentionClassifier, accept, classify, explain
from crmlens.core.retention.models import Disposition, RetentionDecision, RetentionReason, SweepMode, SweepSummary
from crmlens.core.retention.protected import EMPTY_PROTECTED, ProtectedIdentifierSet, load_protected_identifiers

__all__ = [
    "Disposition",
    "EMPTY_PROTECTED",
    "ProtectedIdentifierSet",
    "RetentionClassifier",
    "RetentionDecision",
    "RetentionReason",
    "SweepMode",
    "SweepSummary",
    "accept",
    "classify",
    "explain",
    "load_protected_identifiers",
]
