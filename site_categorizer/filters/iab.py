"""IAB Content Taxonomy lookup tables.

Static category -> taxonomy code maps for IAB v2 and v3. Security
categories have no IAB equivalent and use the "non-standard content"
codes (IAB25 in v2, 626 in v3). Unmapped categories become "Unknown".
"""

from types import MappingProxyType
from typing import Iterable, Mapping

from site_categorizer.errors import ConfigurationError
from site_categorizer.utils.domain_utils import unique

UNKNOWN_CODE = "Unknown"

IAB_V2_MAPPINGS: Mapping[str, str] = MappingProxyType({
    # Content categories
    "advertising": "IAB3",
    "automotive": "IAB2",
    "books_literature": "IAB20",
    "business": "IAB3",
    "careers": "IAB4",
    "education": "IAB5",
    "entertainment": "IAB1",
    "finance": "IAB13",
    "food_drink": "IAB8",
    "health": "IAB7",
    "health_and_fitness": "IAB7",
    "hobbies_interests": "IAB9",
    "home_garden": "IAB10",
    "law_government": "IAB11",
    "news": "IAB12",
    "parenting": "IAB6",
    "pets": "IAB16",
    "philosophy": "IAB21",
    "science": "IAB15",
    "shopping": "IAB22",
    "sports": "IAB17",
    "style_fashion": "IAB18",
    "technology": "IAB19",
    "travel": "IAB20",

    # Security
    "malware": "IAB25",
    "phishing": "IAB25",
    "scam": "IAB25",
    "fraud": "IAB25",
    "abuse": "IAB25",
    "gambling": "IAB7-39",
    "pornography": "IAB25-3",
    "violence": "IAB25",
    "illegal": "IAB25",
    "piracy": "IAB25",
    "torrent": "IAB25",
    "drugs": "IAB25",
    "cryptojacking": "IAB25",
    "tracking": "IAB3",
    "redirect": "IAB25",

    # Social & media
    "social_media": "IAB14",
    "facebook": "IAB14",
    "twitter": "IAB14",
    "tiktok": "IAB14",
    "reddit": "IAB14",
    "forums": "IAB19",
    "blogs": "IAB14",
    "streaming": "IAB1-2",
    "video_hosting": "IAB1-2",
    "youtube": "IAB1-2",
    "dating_services": "IAB14",
})

IAB_V3_MAPPINGS: Mapping[str, str] = MappingProxyType({
    # Tier-1 content categories
    "advertising": "3",
    "automotive": "2",
    "books_literature": "20",
    "business": "3",
    "careers": "4",
    "education": "5",
    "entertainment": "1",
    "finance": "13",
    "food_drink": "8",
    "health": "7",
    "health_and_fitness": "7",
    "hobbies_interests": "9",
    "home_garden": "10",
    "law_government": "11",
    "news": "12",
    "parenting": "6",
    "pets": "16",
    "philosophy": "21",
    "science": "15",
    "shopping": "22",
    "sports": "17",
    "style_fashion": "18",
    "technology": "19",
    "travel": "20",

    # Security
    "malware": "626",
    "phishing": "626",
    "scam": "626",
    "fraud": "626",
    "abuse": "626",
    "gambling": "7-39",
    "pornography": "626",
    "violence": "626",
    "illegal": "626",
    "piracy": "626",
    "torrent": "626",
    "drugs": "626",
    "cryptojacking": "626",
    "tracking": "3",
    "redirect": "626",

    # Social & media
    "social_media": "14",
    "facebook": "14",
    "twitter": "14",
    "tiktok": "14",
    "reddit": "14",
    "forums": "19",
    "blogs": "14",
    "streaming": "1-2",
    "video_hosting": "1-2",
    "youtube": "1-2",
    "dating_services": "14",
})

_TABLES = {"v2": IAB_V2_MAPPINGS, "v3": IAB_V3_MAPPINGS}


def supported_versions() -> list[str]:
    return list(_TABLES)


def _table(version: str) -> Mapping[str, str]:
    try:
        return _TABLES[version]
    except KeyError:
        raise ConfigurationError(
            f"Unsupported IAB version {version!r}; expected one of {supported_versions()}"
        ) from None


def map_category_to_code(category: str, version: str = "v3") -> str:
    """
    Map one category name to its IAB code.

    Examples:
        >>> map_category_to_code("malware", "v2")
        'IAB25'
        >>> map_category_to_code("no_such_category")
        'Unknown'
    """
    return _table(version).get(str(category), UNKNOWN_CODE)


def get_iab_categories(categories: Iterable[str], version: str = "v3") -> list[str]:
    """Map categories to IAB codes, deduplicated in first-seen order."""
    return unique(map_category_to_code(c, version) for c in categories)


def category_exists(category: str, version: str = "v3") -> bool:
    return str(category) in _table(version)
