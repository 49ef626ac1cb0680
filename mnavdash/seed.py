"""Initial company list loaded at startup and on reset.

Balance-sheet figures are approximate starting points meant to be edited.
Share counts are left to the live feed where it covers the ticker.
"""

from __future__ import annotations

from .models import Company

_SEED = [
    {
        "id": "mstr",
        "name": "Strategy",
        "ticker": "MSTR",
        "commonSharesOutstanding": None,
        "bitcoin": 640_031,
        "cash": 54_300_000,
        "otherAssets": None,
        "longTermDebt": 8_214_000_000,
        "otherDebt": None,
        "preferredStock": 5_786_000_000,
    },
    {
        "id": "mara",
        "name": "MARA Holdings",
        "ticker": "MARA",
        "commonSharesOutstanding": None,
        "bitcoin": 52_850,
        "cash": 109_500_000,
        "otherAssets": None,
        "longTermDebt": 3_250_000_000,
        "otherDebt": None,
        "preferredStock": None,
    },
    {
        "id": "xxi",
        "name": "Twenty One Capital",
        "ticker": "XXI",
        "commonSharesOutstanding": None,
        "bitcoin": 43_514,
        "cash": None,
        "otherAssets": None,
        "longTermDebt": 486_500_000,
        "otherDebt": None,
        "preferredStock": None,
    },
    {
        "id": "mtplf",
        "name": "Metaplanet",
        "ticker": "MTPLF",
        "commonSharesOutstanding": None,
        "bitcoin": 30_823,
        "cash": None,
        "otherAssets": None,
        "longTermDebt": None,
        "otherDebt": None,
        "preferredStock": None,
    },
    {
        "id": "smlr",
        "name": "Semler Scientific",
        "ticker": "SMLR",
        "commonSharesOutstanding": None,
        "bitcoin": 5_048,
        "cash": 8_200_000,
        "otherAssets": None,
        "longTermDebt": 100_000_000,
        "otherDebt": None,
        "preferredStock": None,
    },
    {
        "id": "tsla",
        "name": "Tesla",
        "ticker": "TSLA",
        "commonSharesOutstanding": None,
        "bitcoin": 11_509,
        "cash": None,
        "otherAssets": None,
        "longTermDebt": None,
        "otherDebt": None,
        "preferredStock": None,
    },
]


def initial_companies() -> list[Company]:
    """Fresh copies of the seed list; callers may mutate them."""
    return [Company.model_validate(row) for row in _SEED]
