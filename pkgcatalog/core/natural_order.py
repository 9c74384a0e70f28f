import unicodedata

from natsort import natsort_keygen, ns


def _fold(text: str) -> str:
    """Drops diacritics and case so "Émile" and "emile" sort together."""
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


# Numeric runs compare as numbers: "Item 2" < "Item 10".
natural_key = natsort_keygen(key=_fold, alg=ns.INT)
