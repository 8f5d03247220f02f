"""Where each dataset is published.

The municipality publishes every sheet of one Google spreadsheet as CSV;
the sheets differ only by their ``gid``.
"""

PUBLISHED_BASE = (
    "https://docs.google.com/spreadsheets/d/e/"
    "2PACX-1vSFzqaKeM6Il-c1ubOzGHSzDWgfbW3URTWvTcF76Xx3HP-W5o_SDRozUeO_v5z-xits7UFpNxjdfC3w"
    "/pub"
)

SHEET_GIDS = {
    "trips": "0",
    "vehicles": "2001178330",
    "fuel": "1380959426",
    "maintenance": "2095309457",
    "areas": "158998441",
    "population": "1833875939",
    "workers": "386592046",
    "revenues": "2006435836",
    "treatment": "1631064725",
    "distance": "1188630642",
    "additional_costs": "1426151636",
}


def published_csv_url(dataset: str) -> str:
    """CSV export URL for *dataset*.

    Raises:
        KeyError: if *dataset* is not a published sheet.
    """
    gid = SHEET_GIDS[dataset]
    return f"{PUBLISHED_BASE}?gid={gid}&single=true&output=csv"


PUBLISHED_URLS = {name: published_csv_url(name) for name in SHEET_GIDS}
