import os

# In a real deployment, load these from environment variables or a config file
SECRET_KEY: str = os.getenv("SECRET_KEY", "your-secret-key-for-jwt-!ChangeMe!")
ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://./bizdash.sqlite3")

# Organizations without a configured zone are reported in this one
DEFAULT_TIMEZONE: str = os.getenv("DEFAULT_TIMEZONE", "UTC")

TOP_PRODUCTS_LIMIT: int = int(os.getenv("TOP_PRODUCTS_LIMIT", "5"))
TOP_CUSTOMERS_LIMIT: int = int(os.getenv("TOP_CUSTOMERS_LIMIT", "7"))

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
# Comma separated logger prefixes, e.g. "bizdash.features.dashboard,bizdash.main"
LOG_NAMESPACES: list[str] = [
    ns.strip() for ns in os.getenv("LOG_NAMESPACES", "").split(",") if ns.strip()
]
