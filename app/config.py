import os
from types import MappingProxyType

from dotenv import load_dotenv

load_dotenv()

# Browser configuration
# Use Playwright's default Chromium (works on Windows, Mac, Linux)
# Set CHROMIUM_BIN env variable to override if needed
CHROMIUM_BIN = os.getenv("CHROMIUM_BIN", None)  # None = use Playwright default
HEADLESS = os.getenv("HEADLESS", "true").lower() != "false"
ACCEPT_COOKIES = os.getenv("ACCEPT_COOKIES", "true").lower() != "false"
USER_AGENT = os.getenv(
    "USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36",
)

# Timeouts (milliseconds)
NAV_TIMEOUT_MS = int(os.getenv("NAV_TIMEOUT_MS", "60000"))
VIDEO_WAIT_TIMEOUT_MS = int(os.getenv("VIDEO_WAIT_TIMEOUT_MS", "15000"))
DOWNLOAD_TIMEOUT_MS = int(os.getenv("DOWNLOAD_TIMEOUT_MS", "20000"))  # per candidate
FETCH_TIMEOUT_MS = int(os.getenv("FETCH_TIMEOUT_MS", "60000"))  # generic fetch
WEBHOOK_TIMEOUT_MS = int(os.getenv("WEBHOOK_TIMEOUT_MS", "120000"))

# 25MB attachment limit
MAX_VIDEO_SIZE_BYTES = int(os.getenv("MAX_VIDEO_SIZE_BYTES", str(25 * 1024 * 1024)))


# Helper to load from text files
def load_list(path: str):
    if not os.path.exists(path):
        return []
    with open(path, "r", encoding="utf-8") as f:
        return [ln.strip() for ln in f if ln.strip() and not ln.startswith("#")]


_LIBRARY = (
    "https://www.facebook.com/ads/library/?active_status=active&ad_type=all&country=US"
    "&is_targeted_country=false&media_type=video&search_type=page&view_all_page_id={}"
)

AD_LIBRARY_URL = os.getenv("AD_LIBRARY_URL", _LIBRARY.format("177930899801067"))

# Pages sampled by /api/random-meta-video
AD_URLS = tuple(load_list(os.getenv("AD_URLS_FILE", "ad_urls.txt")) or [
    _LIBRARY.format("177930899801067"),   # PetLabCo
    _LIBRARY.format("109899597504831"),   # Javvy
    _LIBRARY.format("275270825974823"),   # Hike
    _LIBRARY.format("1573441899601646"),  # HiSmile
    _LIBRARY.format("357167600818818"),   # David Protein
    _LIBRARY.format("108815292124532"),   # HeyShape
])

DEFAULT_BRAND_URL = os.getenv("DEFAULT_BRAND_URL", "https://thepetlabco.com/")
DEFAULT_EMAIL = os.getenv("DEFAULT_EMAIL", "")

# multipart_form | raw_attachment
USER_VIDEO_OUTPUT_MODE = os.getenv("USER_VIDEO_OUTPUT_MODE", "multipart_form")

# n8n workflow webhooks (update when workflows move)
_N8N_BASE = os.getenv("N8N_WEBHOOK_BASE", "https://pdog.app.n8n.cloud/webhook")
N8N_WEBHOOKS = MappingProxyType({
    # Facebook Ads Recreation
    "FACEBOOK_ADS_RECREATOR": f"{_N8N_BASE}/c77f11e4-8111-44e9-af8c-704741c75a47",
    # Brief Management
    "HANDLE_CREATE_BRIEF": f"{_N8N_BASE}/e8ac4753-bfb2-424e-b80f-4bca195fb79e",
    "GENERATE_BRIEF": f"{_N8N_BASE}/09442549-54ca-4815-a2a4-fbdb684ee8ab",
    # Cross Platform Generation
    "CROSS_PLATFORM_META_TO_TIKTOK": f"{_N8N_BASE}/1d9f5cb6-7d6f-4919-90dd-aec406c6a24e",
    "CROSS_PLATFORM_TIKTOK_TO_META": f"{_N8N_BASE}/f54b1f26-a7ff-4509-8f2d-621c72a0a007",
    # Video Processing
    "HOOK_RECREATOR": f"{_N8N_BASE}/61391805-edbc-4f68-98ae-5d127977bae4",
    "LANGUAGE_TRANSLATION": f"{_N8N_BASE}/ff839c4a-f848-4e3b-94a9-1b6679cf12ff",
    # Platform Specific
    "TIKTOK_ADS_RECREATOR": f"{_N8N_BASE}/c7eb5200-e47b-48b8-af1d-0c1e81bec831",
    "UPLOAD_MEDIA_MODAL": f"{_N8N_BASE}/5abf52a2-e668-4644-9b79-d93dc9930fd7",
    # Content Generation
    "CONCAT_DESCRIPTIONS": f"{_N8N_BASE}/6a9d6caa-e378-4f5b-a806-3e022f3adc3a",
    "GENERATE_DESCRIPTIONS": f"{_N8N_BASE}/19bbb7d3-3739-4421-bc18-c318e4b2e389",
})

# API
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
