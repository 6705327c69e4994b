"""Token tables used to classify OCR lines on Danish health cards.

All tokens are literal, case-insensitive substrings (phone labels excepted,
those are matched as printed). Extend a table through ``Lexicon.extended``
or the ``EXTRA_*_TOKENS`` settings instead of editing control flow.
"""

from pydantic import BaseModel

HEADER_TOKENS: tuple[str, ...] = (
    "REGION", "KOMMUNE", "SUNDHEDSKORT", "REJSESYGESIKRINGSKORT",
    "CERTIFICADO", "TOURIST", "HEALTH", "INSURANCE", "CARD",
    "GYLDIG FRA", "VALID FROM", "TELEFON", "TELEFAX", "INTERNET",
)

CLINIC_TOKENS: tuple[str, ...] = (
    "LAEGEHUS", "LÆGEHUS", "LEGEHUS", "CLINIC", "MEDICAL", "CENTER",
    "HOSPITAL", "PRAKSIS", "DOCTOR", "LEGEN", "LÆGE",
)

STREET_TOKENS: tuple[str, ...] = ("gade", "vej", "allé", "plads")

REGION_NAMES: tuple[str, ...] = (
    "Hovedstaden", "Sjælland", "Syddanmark", "Midtjylland", "Nordjylland",
)

PHONE_LABELS: tuple[str, ...] = ("Tlf.", "Tif.", "Tel.", "Mobil:")

# "Valid from" labels in Danish and English
VALID_FROM_LABELS: tuple[str, ...] = ("Gyldig fra", "Valid from")


class Lexicon(BaseModel):
    """Immutable bundle of the token tables the classifiers consult."""

    header_tokens: tuple[str, ...] = HEADER_TOKENS
    clinic_tokens: tuple[str, ...] = CLINIC_TOKENS
    street_tokens: tuple[str, ...] = STREET_TOKENS
    region_names: tuple[str, ...] = REGION_NAMES
    phone_labels: tuple[str, ...] = PHONE_LABELS
    valid_from_labels: tuple[str, ...] = VALID_FROM_LABELS

    model_config = {"frozen": True}

    def extended(
        self,
        header_tokens: list[str] | None = None,
        clinic_tokens: list[str] | None = None,
        street_tokens: list[str] | None = None,
    ) -> "Lexicon":
        """Return a copy with extra tokens appended to the given tables."""
        return self.model_copy(update={
            "header_tokens": _merge(self.header_tokens, header_tokens),
            "clinic_tokens": _merge(self.clinic_tokens, clinic_tokens),
            "street_tokens": _merge(self.street_tokens, street_tokens),
        })


def _merge(base: tuple[str, ...], extra: list[str] | None) -> tuple[str, ...]:
    if not extra:
        return base
    seen = {token.casefold() for token in base}
    added = []
    for token in extra:
        token = token.strip()
        if token and token.casefold() not in seen:
            seen.add(token.casefold())
            added.append(token)
    return base + tuple(added)


def contains_any(line: str, tokens: tuple[str, ...]) -> bool:
    """Case-insensitive substring match of any token against the line."""
    folded = line.casefold()
    return any(token.casefold() in folded for token in tokens)


DEFAULT_LEXICON = Lexicon()
