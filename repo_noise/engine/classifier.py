"""
Classification of failed platform calls.

Recovery decisions branch on the kind of failure rather than on raw error
text. The self-approval wording GitHub uses is matched here and nowhere
else; if the platform rephrases it, this is the only place to update.
"""

from repo_noise.enums import PlatformErrorKind
from repo_noise.exceptions import PlatformError, TransientPlatformError

# Lowercased fragments of GitHub's 422 response for approving one's own PR,
# e.g. "Review Can not approve your own pull request"
SELF_APPROVAL_MARKERS = (
    "can not approve your own pull request",
    "cannot approve your own pull request",
)


def is_self_approval_rejection(text: str) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in SELF_APPROVAL_MARKERS)


def classify_platform_error(error: BaseException) -> PlatformErrorKind:
    """Map an exception raised by a platform call onto a recovery category.

    Args:
        error: Exception raised by a PlatformClient method

    Returns:
        TRANSIENT for transport failures and 429/5xx responses,
        SELF_APPROVAL_REJECTED for the author-cannot-approve policy error,
        OTHER for everything else.
    """
    if isinstance(error, TransientPlatformError):
        return PlatformErrorKind.TRANSIENT

    if isinstance(error, PlatformError):
        text = error.response_text
    else:
        text = str(error)

    if is_self_approval_rejection(text):
        return PlatformErrorKind.SELF_APPROVAL_REJECTED

    return PlatformErrorKind.OTHER
