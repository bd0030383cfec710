"""Text normalization for bilingual (Arabic/English) matching."""

import re
import unicodedata

_TATWEEL = "ـ"

# Letters folded to a base form after diacritics are stripped.
_LETTER_FOLDS = str.maketrans(
    {
        "ة": "ه",  # teh marbuta -> heh
        "ى": "ي",  # alef maksura -> yeh
        "ٱ": "ا",  # alef wasla -> alef
    }
)


def normalize_text(value: str | None) -> str:
    """Fold text for case- and diacritic-insensitive comparison.

    Examples:
        "Café Olaya"   -> "cafe olaya"
        "الرِّياض"       -> "الرياض"
        "أحمد"          -> "احمد"
        "  Al   Malqa " -> "al malqa"
    """
    if not value:
        return ""
    # NFKD splits accented letters and hamza/madda carriers into base + mark
    decomposed = unicodedata.normalize("NFKD", value)
    stripped = "".join(
        ch for ch in decomposed if not unicodedata.combining(ch) and ch != _TATWEEL
    )
    folded = stripped.translate(_LETTER_FOLDS).casefold()
    return re.sub(r"\s+", " ", folded).strip()
