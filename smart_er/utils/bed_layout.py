# smart_er/utils/bed_layout.py
"""
Static layout of the emergency room.

Bed numbers 1..38 are fixed. 1..28 are the main zone, 29..38 the
temporary overflow zone. Labels are what the screens print; they play
no part in any bed transition.
"""

BED_COUNT = 38
MAIN_ZONE_LAST_BED = 28

ZONE_MAIN = "main"
ZONE_TEMPORARY = "temporary"

BED_LABELS: dict[str, str] = {
    "1": "R1", "2": "R2", "3": "R3",
    "4": "N1", "5": "N2",
    "6": "NT1", "7": "NT2", "8": "NT3", "9": "NT4", "10": "NT5",
    "11": "NT6", "12": "NT7", "13": "NT8", "14": "NT9", "15": "NT10", "16": "NT11",
    "17": "T12", "18": "T13", "19": "T14", "20": "T15", "21": "T16",
    "22": "T17", "23": "T18", "24": "T19",
    "25": "20", "26": "21",
    "27": "จุดคัดกรอง", "28": "VVIP",
}


def zone_for(bed_number: str) -> str:
    """Zone of a bed slot, derived from its number."""
    try:
        number = int(bed_number)
    except ValueError:
        return ZONE_MAIN
    return ZONE_MAIN if number <= MAIN_ZONE_LAST_BED else ZONE_TEMPORARY


def bed_label(bed_number: str | None) -> str | None:
    if bed_number is None:
        return None
    return BED_LABELS.get(bed_number, bed_number)


def all_bed_numbers() -> list[str]:
    return [str(n) for n in range(1, BED_COUNT + 1)]
