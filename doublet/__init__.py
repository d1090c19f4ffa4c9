"""
doublet: a runtime engine for test doubles.

Substitutes resolve each call against ordered setups, record it for
verification, and can be subjected to fault injection and call ordering
constraints.
"""

from doublet.builder import SequenceSetupBuilder, SetupBuilder
from doublet.chaos import ChaosPolicy, ChaosStatistics
from doublet.config import MockSettings, configure_logging
from doublet.defaults import Completed, DefaultValueProvider
from doublet.exceptions import (
    ArgumentShapeError,
    MockError,
    NotAMockError,
    RecursiveMockError,
    SequenceViolationError,
    SetupSealedError,
    UnsetMemberError,
    VerificationError,
)
from doublet.factory import MockFactory, mock_of
from doublet.handler import MockHandler
from doublet.matchers import It, match_create
from doublet.mock import Mock, Out, ProtectedMock, Ref
from doublet.repository import MockRepository
from doublet.scribe import Recording, ReplayContext, Scribe
from doublet.sequence import MockSequence
from doublet.times import Times
from doublet.types import (
    CallBaseRequested,
    DefaultValue,
    MockBehavior,
    NoValue,
    OutputChannelsApplied,
    Range,
    ResultKind,
    Returned,
    Threw,
)

__all__ = [
    "ArgumentShapeError",
    "CallBaseRequested",
    "ChaosPolicy",
    "ChaosStatistics",
    "Completed",
    "DefaultValue",
    "DefaultValueProvider",
    "It",
    "Mock",
    "MockBehavior",
    "MockError",
    "MockFactory",
    "MockHandler",
    "MockRepository",
    "MockSequence",
    "MockSettings",
    "NoValue",
    "NotAMockError",
    "Out",
    "OutputChannelsApplied",
    "ProtectedMock",
    "Range",
    "Recording",
    "RecursiveMockError",
    "Ref",
    "ReplayContext",
    "ResultKind",
    "Returned",
    "Scribe",
    "SequenceSetupBuilder",
    "SequenceViolationError",
    "SetupBuilder",
    "SetupSealedError",
    "Threw",
    "Times",
    "UnsetMemberError",
    "VerificationError",
    "configure_logging",
    "match_create",
    "mock_of",
]
