"""
Central constants for the stochastic screener.
All magic numbers and configurable thresholds are defined here.
"""

# =============================================================================
# HTTP & NETWORKING
# =============================================================================
MARKET_DATA_URL = "https://query1.finance.yahoo.com/v8/finance/chart"
SYMBOL_SUFFIX = ".JK"           # Exchange suffix appended to every ticker
REQUEST_TIMEOUT = 10.0          # Market data request timeout (seconds)
TELEGRAM_TIMEOUT = 10           # Telegram API timeout (seconds)
DEFAULT_RETRY_DELAY = 1.0       # Base delay for retries (seconds)
MAX_RETRY_ATTEMPTS = 3          # Maximum attempts per request
USER_AGENT = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"


# =============================================================================
# BATCHING
# =============================================================================
BATCH_SIZE = 15                 # Symbols per chunk
MAX_CONCURRENT = 15             # Upper bound on in-flight requests per chunk
BATCH_SLEEP_SECONDS = 0.15      # Pause between chunks (seconds)


# =============================================================================
# RATE LIMITING
# =============================================================================
TELEGRAM_RATE_LIMIT = 20        # Messages per minute per chat
RATE_LIMIT_WINDOW = 60.0        # Window length (seconds)


# =============================================================================
# STOCHASTIC PARAMETERS
# =============================================================================
STOCH_K_PERIOD = 10             # %K lookback window
STOCH_K_SMOOTH = 5              # %K smoothing
STOCH_D_PERIOD = 5              # %D smoothing
STOCH_OVERSOLD = 20             # Oversold threshold (0-100 scale)
STOCH_FLAT_RANGE_VALUE = 50.0   # Raw %K when highest high == lowest low
VOLUME_CONFIRM_RATIO = 0.8      # Same-day volume vs 20-day average


# =============================================================================
# MOMENTUM PARAMETERS
# =============================================================================
MOMENTUM_STRONG_5D = 2.0        # 5-day change (%) for "strong"
MOMENTUM_STRONG_10D = 3.0       # 10-day change (%) for "strong"
MOMENTUM_STRONG_VOLUME = 1.2    # 5-day avg volume vs 20-day avg
MOMENTUM_MIN_CHANGE_1D = 1.0    # Minimum 1-day change (%)
MOMENTUM_MIN_PRICE = 50.0       # Absolute price floor
MOMENTUM_NEAR_HIGH = 0.9        # Price must be within this fraction of 20-day high
MOMENTUM_MIN_VALUE = 1_000_000_000  # Minimum traded value (price x volume)
MOMENTUM_VOLUME_SPIKE = 2.0     # Volume vs 20-day average
MOMENTUM_TOP_N = 30             # Rows kept in the momentum report


# =============================================================================
# DATA REQUIREMENTS
# =============================================================================
DAYS_TO_FETCH = 100             # Lookback window requested per symbol
MIN_DATA_POINTS = 30            # Minimum bars required for analysis


# =============================================================================
# CACHING
# =============================================================================
CACHE_TTL_MINUTES = 30          # Series cache TTL
CACHE_SWEEP_MINUTES = 10        # Background sweep interval


# =============================================================================
# SIGNAL HISTORY
# =============================================================================
MAX_SIGNAL_HISTORY = 5000       # Signals kept on disk
PERFORMANCE_HOLD_DAYS = 5       # Days before a signal is evaluated
RETURN_BUCKETS = (-5.0, 0.0, 5.0)  # Bucket edges for return histogram (%)


# =============================================================================
# TELEGRAM
# =============================================================================
MESSAGE_CHUNK_SIZE = 4000       # Safe margin below Telegram's 4096 limit
PROGRESS_EVERY = 50             # Progress message edit frequency (symbols)


# =============================================================================
# SCHEDULE
# =============================================================================
TIMEZONE = "Asia/Jakarta"
CURRENCY_PREFIX = "Rp"
