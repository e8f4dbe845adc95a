"""Application constants."""

CURRENCY_SYMBOL = "¥"
DATE_FORMAT = "%Y-%m-%d"
MONTH_FORMAT = "%Y-%m"

DEFAULT_CATEGORY = "Uncategorized"
DEFAULT_SOURCE = "Other"

# Analysis defaults
TOP_EXPENSES_LIMIT = 3
PROMPT_ROW_LIMIT = 90

# Completion request defaults
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1000
