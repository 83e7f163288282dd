"""
Lookup tables driving description parsing and link classification.

Everything here is data evaluated first-match-wins, so new keywords and
domains are additive and tests can assert on the tables directly.
"""

from content_engine.models.schemas import LinkKind, ProductType

# Checked in order; the first category with a matching keyword wins.
# Keywords match whole words (plural "s"/"es" allowed), case-insensitive.
TYPE_KEYWORDS: tuple[tuple[ProductType, tuple[str, ...]], ...] = (
    (ProductType.MAKEUP, (
        "foundation", "concealer", "powder", "blush", "bronzer", "highlighter",
        "lipstick", "lip", "lip gloss", "lipgloss", "lip liner", "mascara",
        "eyeliner", "eyeshadow", "eye shadow", "brow", "eyebrow", "primer",
        "setting spray", "contour", "skin tint", "palette", "lash",
    )),
    (ProductType.SKINCARE, (
        "serum", "moisturizer", "moisturiser", "moisturizing", "cleanser",
        "cleansing", "toner", "sunscreen", "spf", "retinol", "retinal",
        "vitamin c", "niacinamide", "mask", "exfoliant", "peel", "cream",
        "lotion", "essence", "face oil",
    )),
    (ProductType.HAIRCARE, (
        "shampoo", "conditioner", "hair", "styling", "olaplex", "dry shampoo",
        "hair mask", "leave-in",
    )),
    (ProductType.FRAGRANCE, (
        "perfume", "fragrance", "cologne", "body mist", "eau de", "parfum",
    )),
    (ProductType.BODYCARE, (
        "body", "scrub", "bath", "shower", "deodorant", "body wash",
    )),
    (ProductType.TOOLS, (
        "brush", "sponge", "curler", "dryer", "straightener", "dyson",
        "airwrap", "mirror", "bag", "organizer", "tweezer", "flat iron",
    )),
    (ProductType.FASHION, (
        "dress", "top", "jeans", "shoe", "jewelry", "earring", "necklace",
        "sweater", "jacket", "skirt",
    )),
)

# Lines containing any of these are never product lines in the line scan.
NON_PRODUCT_MARKERS: tuple[str, ...] = (
    "follow",
    "subscribe",
    "business",
    "instagram:",
    "tiktok:",
    "twitter:",
    "shop my:",
)

# A line holding only a URL takes its product name from the line above,
# unless that line mentions one of these.
CONTEXT_LINE_MARKERS: tuple[str, ...] = (
    "follow",
    "subscribe",
    "instagram",
    "tiktok",
    "business",
)

# Rejected product candidates, compared after lower-casing.
REJECTED_CANDIDATES: frozenset[str] = frozenset({"shop my:", "shop my"})

# Hostname (or parent domain) -> marketplace, first match wins.
DOMAIN_RULES: tuple[tuple[str, LinkKind], ...] = (
    ("shopmy.us", LinkKind.AFFILIATE),
    ("shop-links.co", LinkKind.AFFILIATE),
    ("liketoknow.it", LinkKind.AFFILIATE),
    ("ltk.app", LinkKind.AFFILIATE),
    ("rstyle.me", LinkKind.AFFILIATE),
    ("shopstyle.com", LinkKind.AFFILIATE),
    ("amazon.com", LinkKind.RETAIL),
    ("amzn.to", LinkKind.RETAIL),
    ("amzn.com", LinkKind.RETAIL),
    ("a.co", LinkKind.RETAIL),
)

# Opaque redirect hosts that drop query parameters.
SHORT_LINK_HOSTS: tuple[str, ...] = ("amzn.to", "a.co")

RETAIL_DETAIL_BASE_URL = "https://www.amazon.com/dp"
