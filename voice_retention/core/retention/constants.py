"""Voice consent retention constants.

Legal values are defined here with their source. The retention period
is a DEFAULT; deployments read ``voice_retention_period_years`` from
settings when building new consent records.
"""

from typing import Final

# BIPA (740 ILCS 14/15(a)): biometric identifiers must be destroyed when
# the purpose is satisfied or within 3 years of the last interaction,
# whichever comes first. Consent is the interaction we measure from.
RETENTION_PERIOD_YEARS: Final[int] = 3

# performed_by value for actions taken by the automated job. A human
# override always carries the operator's identity instead.
SYSTEM_ACTOR: Final[None] = None

# Fixed vocabulary inside auto_deleted_retention audit details
RETENTION_DELETION_REASON: Final[str] = "3_year_retention_limit"
RETENTION_DELETED_BY: Final[str] = "cron_job"

# Reason inside voice_profile_deleted audit details
PROFILE_DELETION_REASON: Final[str] = "retention_limit_reached"

# Artifact kind assumed when the deletion service does not name one
DEFAULT_ARTIFACT_KIND: Final[str] = "voice_profile"
