"""Internal constants shared across the library."""

BASE_URL = "http://localhost:8000"
USER_AGENT = "arbidash/1"

PAIRS_PATH = "/api/arbitrage"
TRACKING_PATH = "/api/arbitrage/arbitrack"
SENTIMENT_PATH = "/api/crypto/sentiment"
STATUS_PATH = "/api/arbitrage/status"

#: Seconds between refresh cycles when the server does not announce one.
DEFAULT_REFRESH_INTERVAL: float = 300.0
#: Seconds between credential checks while waiting for a token.
DEFAULT_AUTH_POLL_INTERVAL: float = 0.5
#: Seconds between countdown recomputations.
DEFAULT_TICK_INTERVAL: float = 1.0
DEFAULT_REQUEST_TIMEOUT: float = 15.0

#: Display placeholder for missing tracking strings and prices.
NOT_AVAILABLE = "N/A"

#: Overall sentiment above/below which a Buy/Sell signal is derived.
SENTIMENT_SIGNAL_THRESHOLD = 0.2
