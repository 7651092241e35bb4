"""Built-in category sources and defaults."""

from pathlib import Path

PACKAGE_DIR = Path(__file__).parent

# Bundled regex table used by content classification
VIDEO_URL_PATTERNS_FILE = PACKAGE_DIR / "data" / "video_url_patterns.txt"

# Cached list entries older than this are re-fetched
CACHE_MAX_AGE_HOURS = 24

DEFAULT_REQUEST_TIMEOUT = 10
DEFAULT_DNS_SERVERS = ["1.1.1.1", "1.0.0.1"]
DEFAULT_IAB_VERSION = "v3"

# Categories that make a URL eligible for regex content classification
VIDEO_CATEGORIES = frozenset({
    "video",
    "video_hosting",
    "streaming",
    "youtube",
    "vimeo",
    "dailymotion",
    "twitch",
    "tiktok",
})

# Pattern table sections that describe the kind of video page rather than a
# video platform; content classification never falls back to them
URL_KIND_SHORTS = "shorts"
URL_KIND_PLAYLIST = "playlist"
URL_KIND_MUSIC = "music"
URL_KIND_CHANNEL = "channel"
URL_KIND_LIVE = "live_stream"
URL_KIND_SECTIONS = frozenset({
    URL_KIND_SHORTS,
    URL_KIND_PLAYLIST,
    URL_KIND_MUSIC,
    URL_KIND_CHANNEL,
    URL_KIND_LIVE,
})

_BLP = "https://blocklistproject.github.io/Lists"
_BLP_RAW = "https://raw.githubusercontent.com/blocklistproject/Lists/master"
_DEVDAN = "https://www.github.developerdan.com/hosts/lists"

# Category name -> list of source URLs or names of other categories
DEFAULT_HOST_URLS: dict[str, list[str]] = {
    "abuse": [f"{_BLP_RAW}/abuse.txt"],
    "adobe": [f"{_BLP_RAW}/adobe.txt"],
    "advertising": [f"{_BLP}/ads.txt"],
    "amp_hosts": [f"{_DEVDAN}/amp-hosts-extended.txt"],
    "crypto": [f"{_BLP_RAW}/crypto.txt"],
    "dating_services": [f"{_DEVDAN}/dating-services-extended.txt"],
    "drugs": [f"{_BLP_RAW}/drugs.txt"],
    "facebook": [
        f"{_BLP_RAW}/facebook.txt",
        f"{_DEVDAN}/facebook-extended.txt",
    ],
    "fraud": [f"{_BLP}/fraud.txt"],
    "gambling": [f"{_BLP}/gambling.txt"],
    "malware": [f"{_BLP}/malware.txt"],
    "phishing": [f"{_BLP}/phishing.txt"],
    "piracy": [f"{_BLP_RAW}/piracy.txt"],
    "pornography": [f"{_BLP}/porn.txt"],
    "redirect": [f"{_BLP_RAW}/redirect.txt"],
    "scam": [f"{_BLP}/scam.txt"],
    "smart_tv": [f"{_BLP_RAW}/smart-tv.txt"],
    "tiktok": [f"{_BLP}/tiktok.txt"],
    "torrent": [f"{_BLP_RAW}/torrent.txt"],
    "tracking": [f"{_BLP}/tracking.txt"],
    "twitter": [f"{_BLP_RAW}/twitter.txt"],
    "vaping": [f"{_BLP_RAW}/vaping.txt"],
    "whatsapp": [f"{_BLP_RAW}/whatsapp.txt"],
    "youtube": [f"{_BLP_RAW}/youtube.txt"],
    # Symbol references: resolved from the categories above
    "social_media": ["facebook", "twitter", "tiktok", "whatsapp"],
    "security_threats": ["malware", "phishing", "scam", "fraud", "abuse"],
}
