"""Community to country inference."""

from typing import Dict, List, Optional

OTHER_COUNTRY = "other"

DEFAULT_COUNTRIES = ["ID", "US", "MX", "AR", "CL", "CO"]

# Communities known to be dominated by a single country's users
COUNTRY_SUBREDDITS: Dict[str, List[str]] = {
    "ID": ["indonesia", "jakarta", "surabaya", "bali", "id"],
    "US": ["askanamerican", "askacademia", "parenting", "college", "unitedstates", "usa"],
    "MX": ["mexico", "monterrey", "guadalajara"],
    "AR": ["argentina", "buenosaires", "devsarg"],
    "CL": ["chile", "santiago"],
    "CO": ["colombia", "bogota", "medellin"],
}

ENGLISH_SPEAKING_COUNTRY = "US"
INDONESIAN_LANGUAGE = "id"
INDONESIA = "ID"


def infer_country(subreddit: Optional[str], lang: Optional[str]) -> str:
    """
    Infer the country a fragment most likely comes from.

    The community table is authoritative. Indonesian-language text from an
    unknown community is attributed to Indonesia; anything else is ``"other"``.

    Args:
        subreddit: Community the fragment was posted in
        lang: Detected language code of the fragment

    Returns:
        A country code from ``COUNTRY_SUBREDDITS`` or ``"other"``
    """
    sub_lower = (subreddit or "").lower()

    for code, communities in COUNTRY_SUBREDDITS.items():
        if sub_lower in communities:
            return code

    if sub_lower in COUNTRY_SUBREDDITS[ENGLISH_SPEAKING_COUNTRY]:
        return ENGLISH_SPEAKING_COUNTRY
    if lang == INDONESIAN_LANGUAGE:
        return INDONESIA
    return OTHER_COUNTRY
