"""Test dispatch exports."""

from .dispatch_outcomes import DispatchRecord, DispatchStatus, RunResult
from .test_cases import (
    TEST_REGISTRY,
    ChaincodeRequirement,
    SkipRule,
    TestCase,
    default_test_set,
    normalize_identifier,
)
from .test_runner import TestRunner, stream_test_command

__all__ = [
    "DispatchRecord",
    "DispatchStatus",
    "RunResult",
    "TEST_REGISTRY",
    "ChaincodeRequirement",
    "SkipRule",
    "TestCase",
    "default_test_set",
    "normalize_identifier",
    "TestRunner",
    "stream_test_command",
]
