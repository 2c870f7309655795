"""
Moderation candidate derivation.

Turns the free-text fields of a submission into the values that must be
reviewed before they join the controlled vocabulary.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from common.constants import (
    ISSUE_CLASSIFICATION_OTHER,
    PREDEFINED_DEPARTMENTS,
    PREDEFINED_LOCATIONS,
)
from models.feedback import FeedbackSubmission
from services.moderation.directory import DirectoryLookup
from services.moderation.normalization import build_dedup_key, clean_value
from services.moderation.types import EntryType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModerationCandidate:
    entry_type: EntryType
    value: str
    region: Optional[str] = None
    sub_region: Optional[str] = None
    facility_type: Optional[str] = None

    @property
    def dedup_key(self) -> str:
        return build_dedup_key(self.value, self.region, self.sub_region)

    @property
    def identity(self) -> tuple:
        return (self.entry_type.value, self.dedup_key)


async def _facility_candidate(
    submission: FeedbackSubmission, directory: DirectoryLookup
) -> Optional[ModerationCandidate]:
    name = clean_value(submission.facility_name)
    region = clean_value(submission.facility_region)
    sub_region = clean_value(submission.facility_sub_region)
    if not (name and region and sub_region):
        return None

    candidate = ModerationCandidate(
        entry_type=EntryType.FACILITY,
        value=name,
        region=region,
        sub_region=sub_region,
        facility_type=clean_value(submission.facility_type),
    )
    try:
        if await directory.exists(name, region, sub_region):
            return None
    except Exception:
        # Fail open: an unreachable directory must not drop the candidate
        logger.exception(
            "Directory lookup failed for facility '%s' (%s); queueing for moderation",
            name,
            submission.reference_code,
        )
    return candidate


async def derive_candidates(
    submission: FeedbackSubmission, directory: DirectoryLookup
) -> List[ModerationCandidate]:
    """Candidates for every free-text value outside the controlled vocabulary."""
    candidates = []

    facility = await _facility_candidate(submission, directory)
    if facility is not None:
        candidates.append(facility)

    department = clean_value(submission.department)
    if department and department not in PREDEFINED_DEPARTMENTS:
        candidates.append(ModerationCandidate(entry_type=EntryType.DEPARTMENT, value=department))

    location = clean_value(submission.location)
    if location and location not in PREDEFINED_LOCATIONS:
        candidates.append(ModerationCandidate(entry_type=EntryType.LOCATION, value=location))

    other = clean_value(submission.issue_classification_other)
    if other and clean_value(submission.issue_classification) == ISSUE_CLASSIFICATION_OTHER:
        candidates.append(
            ModerationCandidate(entry_type=EntryType.ISSUE_CLASSIFICATION, value=other)
        )

    return candidates
