"""
Credit Dispute Engine - Bureau Mailing Profiles

Canonical dispute-mail names and addresses for the three bureaus.
Every spelling of a bureau ("Trans Union", "TU", "transunion.com", ...)
resolves to the same entry.
"""
from typing import Any, Dict, Optional, Union

from ...models.ssot import Bureau
from ..parsing.bureau_detector import normalize_bureau_name


UNKNOWN_ADDRESS_PROMPT = "[BUREAU ADDRESS]"
DEFAULT_RECIPIENT = "Credit Bureau"


# =============================================================================
# BUREAU PROFILES
# =============================================================================

BUREAU_PROFILES: Dict[Bureau, Dict[str, Any]] = {
    Bureau.TRANSUNION: {
        "name": "TransUnion",
        "full_name": "TransUnion LLC",
        "address": """TransUnion LLC
Consumer Dispute Center
P.O. Box 2000
Chester, PA 19016""",
    },

    Bureau.EXPERIAN: {
        "name": "Experian",
        "full_name": "Experian",
        "address": """Experian
P.O. Box 4500
Allen, TX 75013""",
    },

    Bureau.EQUIFAX: {
        "name": "Equifax",
        "full_name": "Equifax Information Services LLC",
        "address": """Equifax Information Services LLC
P.O. Box 740256
Atlanta, GA 30374""",
    },
}


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def get_bureau_profile(bureau: Union[Bureau, str, None]) -> Optional[Dict[str, Any]]:
    """Profile for a bureau in any spelling, or None when unrecognized."""
    if isinstance(bureau, Bureau):
        return BUREAU_PROFILES[bureau]
    normalized = normalize_bureau_name(bureau)
    return BUREAU_PROFILES.get(normalized) if normalized else None


def get_bureau_address(bureau: Union[Bureau, str, None]) -> str:
    """
    Get the mailing address for a bureau.

    Unknown names keep the name on the first line and leave a fill-in
    prompt for the address.
    """
    profile = get_bureau_profile(bureau)
    if profile:
        return profile["address"]
    name = (bureau.strip() if isinstance(bureau, str) else "") or DEFAULT_RECIPIENT
    return f"{name}\n{UNKNOWN_ADDRESS_PROMPT}"


def get_bureau_name(bureau: Union[Bureau, str, None]) -> str:
    """Get the display name for a bureau."""
    profile = get_bureau_profile(bureau)
    if profile:
        return profile["name"]
    return (bureau.strip() if isinstance(bureau, str) else "") or DEFAULT_RECIPIENT
