"""Validation defaults and seed field configurations.

Copy to config/validation_rules.py and adjust for your catalog.
"""

# ===== Languages =====

SUPPORTED_LANGUAGES = ["EN", "DE", "FR"]
FALLBACK_LANGUAGE = "EN"

LANGUAGE_NAMES = {
    "EN": "English",
    "DE": "German",
    "FR": "French",
}


# ===== Quality =====

DEFAULT_QUALITY_THRESHOLD = 90


# ===== Media =====

DEFAULT_MEDIA_COUNT_MIN = 1
DEFAULT_MEDIA_COUNT_MAX = 10
DEFAULT_MEDIA_COUNT_OPTIMAL = 3

IMAGE_PROBE_TIMEOUT_SECONDS = 5.0
PDF_ASPECT_RATIO = "N/A (PDF)"

MEDIA_COUNT_FIELD = "media-count"
MEDIA_ASSET_FIELD_PREFIX = "media-"
SUBFIELD_SEPARATOR = " > "


# ===== Seed fields =====
# Written to the "fields" store the first time it is opened empty.

_EMPTY_LANGUAGE = {
    "requirements": "",
    "format": "",
    "whitelist": "",
    "blacklist": "",
    "positiveExamples": "",
    "negativeExamples": "",
}


def _lang(requirements: str, fmt: str) -> dict:
    return {**_EMPTY_LANGUAGE, "requirements": requirements, "format": fmt}


DEFAULT_FIELDS = [
    {
        "name": "assortmentProductName",
        "fieldType": "text",
        "applicableTo": "base",
        "isActive": True,
        "isMandatory": True,
        "general": {"requirements": "", "format": "", "skipLanguageDetection": False},
        "languages": {
            "EN": _lang(
                "Product name following HARTMANN naming conventions",
                "Title Case with registered trademark symbols where applicable",
            ),
            "DE": _lang(
                "Produktname gemäß HARTMANN-Namenskonventionen",
                "Titel-Schreibweise mit Warenzeichen-Symbolen, wo anwendbar",
            ),
            "FR": _lang(
                "Nom du produit selon les conventions de dénomination HARTMANN",
                "Majuscules avec symboles de marque déposée le cas échéant",
            ),
        },
        "productCategories": [],
        "contextFields": [],
    },
    {
        "name": "assortmentProductDescription",
        "fieldType": "text",
        "applicableTo": "base",
        "isActive": True,
        "isMandatory": True,
        "languages": {
            "EN": _lang(
                "Short product description highlighting key features",
                "Short paragraph, concise language",
            ),
            "DE": _lang(
                "Kurze Produktbeschreibung mit wichtigsten Merkmalen",
                "Kurzer Absatz, präzise Sprache",
            ),
            "FR": _lang(
                "Brève description du produit soulignant les caractéristiques principales",
                "Paragraphe court, langage concis",
            ),
        },
        "productCategories": [],
        "contextFields": ["assortmentProductName", "assortmentProductClaim"],
    },
    {
        "name": "assortmentProductContent",
        "fieldType": "html",
        "applicableTo": "base",
        "isActive": True,
        "languages": {
            "EN": _lang(
                "Detailed HTML list of product features and benefits",
                "<ul> with <li> items, each starting with a dash",
            ),
            "DE": _lang(
                "Detaillierte HTML-Liste der Produktmerkmale und -vorteile",
                "<ul> mit <li> Einträgen, jeweils beginnend mit einem Bindestrich",
            ),
        },
        "productCategories": [],
        "contextFields": [
            "assortmentProductName",
            "assortmentProductDescription",
            "assortmentProductApplication",
        ],
    },
    {
        "name": "description",
        "fieldType": "text",
        "applicableTo": "base",
        "isActive": True,
        "languages": {
            "EN": _lang(
                "Detailed marketing description for B2C channels",
                "Paragraph format with consumer benefits",
            ),
            "DE": _lang(
                "Ausführliche Marketingbeschreibung für B2C-Kanäle",
                "Absatzformat mit Verbrauchervorteilen",
            ),
        },
        "productCategories": [],
        "contextFields": [
            "assortmentProductName",
            "assortmentProductDescription",
            "assortmentProductClaim",
        ],
        "useClaimList": True,
    },
    {
        "name": "media",
        "fieldType": "media",
        "applicableTo": "both",
        "isActive": True,
        "languages": {},
        "productCategories": [],
        "mediaValidation": {
            "allowedFileTypes": ["jpg", "jpeg", "png", "webp", "pdf"],
            "requireHttps": True,
            "mediaCountMin": 1,
            "mediaCountMax": 10,
            "mediaCountOptimal": 3,
        },
    },
]
