"""Skill contract, registry and packaged skills.

Only the contract models are re-exported here; import the registry,
base class and skill implementations from their modules.
"""

from nightfall.skills.models import (
    BundleResult,
    CandidateItem,
    CandidatesResult,
    CuratorialBundle,
    EmptyResult,
    Ending,
    MediaPack,
    PatchesResult,
    Permissions,
    RateLimitSpec,
    Selection,
    SkillManifest,
    SkillRequest,
    SkillResult,
    UIHints,
)

__all__ = [
    "BundleResult",
    "CandidateItem",
    "CandidatesResult",
    "CuratorialBundle",
    "EmptyResult",
    "Ending",
    "MediaPack",
    "PatchesResult",
    "Permissions",
    "RateLimitSpec",
    "Selection",
    "SkillManifest",
    "SkillRequest",
    "SkillResult",
    "UIHints",
]
