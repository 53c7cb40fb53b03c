"""Choosing the fresher of two credentials for the same identity"""

from typing import Optional

from .jwt_utils import get_credential_issued_at
from .models import Credential, LatestCredential


def select_latest_credential(
    preferred: Credential,
    candidate: Optional[Credential] = None,
) -> LatestCredential:
    """Pick the credential with the more recent issuance time

    The candidate only wins with positive proof that it is strictly newer:
    its iat must be known, and either the preferred iat is unknown or
    smaller. Ties and unknown-vs-unknown keep the preferred credential.

    Args:
        preferred: Credential to keep unless proven stale (usually auth.json)
        candidate: Competing credential (usually the stored copy)

    Returns:
        LatestCredential with the chosen record and whether it was `preferred`
    """
    preferred_iat = get_credential_issued_at(preferred)
    candidate_iat = get_credential_issued_at(candidate)

    if (
        candidate is not None
        and candidate_iat is not None
        and (preferred_iat is None or candidate_iat > preferred_iat)
    ):
        return LatestCredential(credential=candidate, from_preferred=False)

    return LatestCredential(credential=preferred, from_preferred=True)
