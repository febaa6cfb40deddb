APP_NAME = "OpenBudget"
DB_FILE = "openbudget.db"
SCHEMA_VERSION = 2

DATE_FORMAT = "%m/%d/%Y"        # wire/storage format, 'MM/dd/yyyy'
ISO_DATE_FORMAT = "%Y-%m-%d"

# Category 0 is never stored; every consumer synthesizes it.
DEPOSIT_CATEGORY_ID = 0
DEPOSIT_CATEGORY_NAME = "Deposit"
NO_SUBCATEGORY_ID = 0
GLOBAL_OWNER_ID = 0

# Legacy password salt is str(user_id + LEGACY_SALT_OFFSET).
LEGACY_SALT_OFFSET = 32
BCRYPT_MAX_PASSWORD_BYTES = 72

HASH_SCHEMES = ("bcrypt", "legacy-md5")
DEFAULT_HASH_SCHEME = "bcrypt"

BALANCE_SCOPES = ("user", "global")
DEFAULT_BALANCE_SCOPE = "user"

DEFAULT_QUERY_TIMEOUT = 5.0     # seconds

CSV_HEADER = ["Date", "Description", "Category", "Subcategory", "Amount", "Balance"]
