"""
Seed data for the reference tables.

These are the rows that must exist on first run: the default spending
categories, the default account every unassigned entry lands in, and the
catalog used to name a primary currency from its ISO code.
"""

DEFAULT_CATEGORIES = [
    {"id": "income", "name": "Income", "icon": "wallet", "color": "#22c55e"},
    {"id": "housing", "name": "Housing", "icon": "home", "color": "#3b82f6"},
    {"id": "utilities", "name": "Utilities", "icon": "bolt", "color": "#6366f1"},
    {"id": "groceries", "name": "Groceries", "icon": "cart", "color": "#10b981"},
    {"id": "dining", "name": "Dining", "icon": "utensils", "color": "#f59e0b"},
    {"id": "transportation", "name": "Transportation", "icon": "car", "color": "#8b5cf6"},
    {"id": "entertainment", "name": "Entertainment", "icon": "film", "color": "#ec4899"},
    {"id": "shopping", "name": "Shopping", "icon": "bag", "color": "#f97316"},
    {"id": "healthcare", "name": "Healthcare", "icon": "heart", "color": "#ef4444"},
    {"id": "subscriptions", "name": "Subscriptions", "icon": "repeat", "color": "#14b8a6"},
    {"id": "travel", "name": "Travel", "icon": "plane", "color": "#06b6d4"},
    {"id": "personal", "name": "Personal", "icon": "user", "color": "#84cc16"},
    {"id": "education", "name": "Education", "icon": "book", "color": "#a855f7"},
    {"id": "gifts", "name": "Gifts", "icon": "gift", "color": "#f472b6"},
    {"id": "other", "name": "Other", "icon": "dots", "color": "#71717a"},
]

FALLBACK_CATEGORY_ID = "other"
FALLBACK_CATEGORY_NAME = "Other"
DEFAULT_CATEGORY_COLOR = "#71717a"

DEFAULT_ACCOUNT = {
    "id": "default",
    "name": "Main Account",
    "type": "checking",
    "institution": None,
}

ACCOUNT_TYPES = ["checking", "savings", "credit", "cash", "investment", "mobile-money", "other"]

CURRENCY_CATALOG = {
    "USD": {"name": "US Dollar", "symbol": "$"},
    "EUR": {"name": "Euro", "symbol": "€"},
    "GBP": {"name": "British Pound", "symbol": "£"},
    "JPY": {"name": "Japanese Yen", "symbol": "¥"},
    "CAD": {"name": "Canadian Dollar", "symbol": "CA$"},
    "AUD": {"name": "Australian Dollar", "symbol": "A$"},
    "CHF": {"name": "Swiss Franc", "symbol": "CHF"},
    "INR": {"name": "Indian Rupee", "symbol": "₹"},
    "KES": {"name": "Kenyan Shilling", "symbol": "KSh"},
    "NGN": {"name": "Nigerian Naira", "symbol": "₦"},
    "PEN": {"name": "Peruvian Sol", "symbol": "S/"},
    "MXN": {"name": "Mexican Peso", "symbol": "MX$"},
    "BRL": {"name": "Brazilian Real", "symbol": "R$"},
}

# Categories a receipt line item may carry; anything else becomes "other"
ITEM_CATEGORIES = [
    "produce", "dairy", "meat", "seafood", "bakery", "frozen", "beverages",
    "snacks", "pantry", "household", "personal_care", "alcohol", "other",
]
