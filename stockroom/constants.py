APP_NAME = "Stockroom"
STYLE_FILE = "style.qss"

DATA_DIR = "data"
DB_FILE_NAME = "stockroom.db"
TABLE_SCHEMA_VERSION = "schema_version"
SCHEMA_VERSION = "1.0.0"

# sqlite busy timeout for every connection (seconds)
DB_TIMEOUT_S = 10.0

# list screens
DEFAULT_PAGE_SIZE = 20
PAGE_SIZE_CHOICES = (10, 20, 50, 100)
SEARCH_DEBOUNCE_MS = 300
LOAD_TIMEOUT_MS = 15000

MONEY_EPS = 0.005

PAYMENT_STATUSES = ("pending", "partial", "paid")
PAYMENT_METHODS = ("Cash", "Bank Transfer", "Cheque", "Card", "Other")
CHEQUE_METHODS = ("Cheque",)
MOVEMENT_TYPES = ("in", "out", "adjustment")
UNIT_TYPES = ("piece", "kg", "meter", "foot", "bag", "box")
