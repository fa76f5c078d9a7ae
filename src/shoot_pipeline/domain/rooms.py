"""Room taxonomy used for stack classification and filenames."""

INTERIOR = "interior"
EXTERIOR = "exterior"
DOCUMENTS = "documents"

DEFAULT_ROOM_TYPE = "undefined_space"

INTERIOR_ROOMS: tuple[str, ...] = (
    "wohnzimmer",
    "schlafzimmer",
    "kinderzimmer",
    "gästezimmer",
    "esszimmer",
    "küche",
    "bad",
    "duschbad",
    "gäste_wc",
    "wc_separat",
    "arbeitszimmer",
    "ankleide",
    "flur",
    "diele",
    "treppenhaus",
    "hobbyraum",
    "hauswirtschaftsraum",
    "abstellraum",
    "keller",
    "dachboden",
)

EXTERIOR_ROOMS: tuple[str, ...] = (
    "balkon",
    "terrasse",
    "garten",
    "außenansicht",
    "eingangsbereich",
    "stellplatz",
    "garage",
    "carport",
    "umgebung",
    "aussicht",
)

DOCUMENT_ROOMS: tuple[str, ...] = (
    "grundriss",
    "lageplan",
    "technikraum",
    DEFAULT_ROOM_TYPE,
)

ALL_ROOM_TYPES: tuple[str, ...] = INTERIOR_ROOMS + EXTERIOR_ROOMS + DOCUMENT_ROOMS

ROOM_SYNONYMS: dict[str, str] = {
    "living": "wohnzimmer",
    "livingroom": "wohnzimmer",
    "living_room": "wohnzimmer",
    "wohn": "wohnzimmer",
    "salon": "wohnzimmer",
    "bedroom": "schlafzimmer",
    "bed_room": "schlafzimmer",
    "schlaf": "schlafzimmer",
    "masterbedroom": "schlafzimmer",
    "kids": "kinderzimmer",
    "kids_room": "kinderzimmer",
    "kinder": "kinderzimmer",
    "child_room": "kinderzimmer",
    "guest": "gästezimmer",
    "guest_room": "gästezimmer",
    "gast": "gästezimmer",
    "dining": "esszimmer",
    "dining_room": "esszimmer",
    "ess": "esszimmer",
    "kitchen": "küche",
    "cook": "küche",
    "kueche": "küche",
    "bathroom": "bad",
    "bath": "bad",
    "badezimmer": "bad",
    "shower": "duschbad",
    "shower_room": "duschbad",
    "dusche": "duschbad",
    "guesttoilet": "gäste_wc",
    "guest_toilet": "gäste_wc",
    "guest_wc": "gäste_wc",
    "gast_wc": "gäste_wc",
    "toilet": "wc_separat",
    "wc": "wc_separat",
    "restroom": "wc_separat",
    "office": "arbeitszimmer",
    "home_office": "arbeitszimmer",
    "study": "arbeitszimmer",
    "büro": "arbeitszimmer",
    "buero": "arbeitszimmer",
    "walkin": "ankleide",
    "walk_in": "ankleide",
    "wardrobe": "ankleide",
    "garderobe": "ankleide",
    "hallway": "flur",
    "corridor": "flur",
    "gang": "flur",
    "entrance_hall": "diele",
    "eingang": "diele",
    "staircase": "treppenhaus",
    "stairs": "treppenhaus",
    "treppe": "treppenhaus",
    "hobby": "hobbyraum",
    "hobby_room": "hobbyraum",
    "recreation": "hobbyraum",
    "utility": "hauswirtschaftsraum",
    "utility_room": "hauswirtschaftsraum",
    "laundry": "hauswirtschaftsraum",
    "storage": "abstellraum",
    "storage_room": "abstellraum",
    "abstell": "abstellraum",
    "basement": "keller",
    "cellar": "keller",
    "attic": "dachboden",
    "loft": "dachboden",
    "balcony": "balkon",
    "terrace": "terrasse",
    "patio": "terrasse",
    "garden": "garten",
    "yard": "garten",
    "exterior": "außenansicht",
    "outside": "außenansicht",
    "aussen": "außenansicht",
    "entrance": "eingangsbereich",
    "entry": "eingangsbereich",
    "parking": "stellplatz",
    "parkplatz": "stellplatz",
    "car_garage": "garage",
    "car_port": "carport",
    "surroundings": "umgebung",
    "environment": "umgebung",
    "view": "aussicht",
    "floorplan": "grundriss",
    "floor_plan": "grundriss",
    "plan": "grundriss",
    "siteplan": "lageplan",
    "site_plan": "lageplan",
    "lage": "lageplan",
    "technical": "technikraum",
    "technical_room": "technikraum",
    "technik": "technikraum",
    "unknown": DEFAULT_ROOM_TYPE,
    "other": DEFAULT_ROOM_TYPE,
    "sonstiges": DEFAULT_ROOM_TYPE,
    "undefined": DEFAULT_ROOM_TYPE,
}

DISPLAY_NAMES: dict[str, str] = {
    "wohnzimmer": "Wohnzimmer",
    "schlafzimmer": "Schlafzimmer",
    "kinderzimmer": "Kinderzimmer",
    "gästezimmer": "Gästezimmer",
    "esszimmer": "Esszimmer",
    "küche": "Küche",
    "bad": "Badezimmer",
    "duschbad": "Duschbad",
    "gäste_wc": "Gäste-WC",
    "wc_separat": "WC (separat)",
    "arbeitszimmer": "Arbeitszimmer",
    "ankleide": "Ankleide",
    "flur": "Flur",
    "diele": "Diele",
    "treppenhaus": "Treppenhaus",
    "hobbyraum": "Hobbyraum",
    "hauswirtschaftsraum": "Hauswirtschaftsraum",
    "abstellraum": "Abstellraum",
    "keller": "Keller",
    "dachboden": "Dachboden",
    "balkon": "Balkon",
    "terrasse": "Terrasse",
    "garten": "Garten",
    "außenansicht": "Außenansicht",
    "eingangsbereich": "Eingangsbereich",
    "stellplatz": "Stellplatz",
    "garage": "Garage",
    "carport": "Carport",
    "umgebung": "Umgebung",
    "aussicht": "Aussicht",
    "grundriss": "Grundriss",
    "lageplan": "Lageplan",
    "technikraum": "Technikraum",
    DEFAULT_ROOM_TYPE: "Nicht klassifiziert",
}

# Room codes used by the capture-device naming schema.
ROOM_TYPE_CODES: dict[str, str] = {
    "KIT": "küche",
    "LIV": "wohnzimmer",
    "DIN": "esszimmer",
    "BED1": "schlafzimmer",
    "BED2": "schlafzimmer",
    "BED3": "schlafzimmer",
    "BATH1": "bad",
    "BATH2": "bad",
    "BAL": "balkon",
    "TER": "terrasse",
    "GAR": "garage",
    "ENT": "eingangsbereich",
    "HALL": "flur",
    "OFF": "arbeitszimmer",
    "GYM": "hobbyraum",
    "POOL": "garten",
    "EXT": "außenansicht",
    "UNDEF": DEFAULT_ROOM_TYPE,
}

# Filenames are ASCII; umlauts and sharp s are transliterated.
_TRANSLITERATION = str.maketrans({"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"})


def is_valid_room_type(value: str) -> bool:
    """Return True when the value is an official room type."""
    return value in ALL_ROOM_TYPES


def normalize_room_type(value: str | None) -> str:
    """Resolve free-form input to an official room type."""
    if not value:
        return DEFAULT_ROOM_TYPE
    normalized = "_".join(value.strip().lower().split())
    if is_valid_room_type(normalized):
        return normalized
    return ROOM_SYNONYMS.get(normalized, DEFAULT_ROOM_TYPE)


def room_category(room_type: str) -> str:
    """Return the category a room type belongs to."""
    if room_type in INTERIOR_ROOMS:
        return INTERIOR
    if room_type in EXTERIOR_ROOMS:
        return EXTERIOR
    return DOCUMENTS


def display_name(room_type: str) -> str:
    """Return the human-readable name of a room type."""
    return DISPLAY_NAMES.get(room_type, room_type)


def room_type_from_code(code: str) -> str:
    """Map a capture-device room code to a room type."""
    return ROOM_TYPE_CODES.get(code, DEFAULT_ROOM_TYPE)


def filename_slug(room_type: str) -> str:
    """Return the ASCII form of a room type used inside filenames."""
    return room_type.translate(_TRANSLITERATION)


_ROOM_TYPES_BY_SLUG: dict[str, str] = {
    filename_slug(room_type): room_type for room_type in ALL_ROOM_TYPES
}


def room_type_from_slug(slug: str) -> str:
    """Map a filename room segment back to its room type, unchanged if unknown."""
    return _ROOM_TYPES_BY_SLUG.get(slug, slug)
