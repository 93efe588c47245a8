"""Constants and defaults.

Note: Keep constants here to avoid magic values spread across code.
"""

# Singleton row in system_settings.
SYSTEM_SETTINGS_ID = "00000000-0000-0000-0000-000000000000"

DEFAULT_COMPANY_NAME = "New Company"
DEFAULT_INDUSTRY_TYPE = "engineering"
DEFAULT_CURRENCY = "SAR"
DEFAULT_LABOR_CATEGORY = "Labor"
DEFAULT_HOURS_WORKED = 1.0

SETUP_ROUTE = "/setup-wizard"
SETUP_ROUTES = frozenset({"/setup", "/setup-wizard"})
HOME_ROUTE = "/"

DEFAULT_SETUP_CHECK_RETRIES = 3
DEFAULT_SETUP_CHECK_DELAY_SECONDS = 0.5
DEFAULT_PAYMENT_FANOUT_WORKERS = 8

NO_TENANT_MESSAGE = "Select a company first"
INVALID_TENANT_MESSAGE = "Invalid company ID. Please select a valid company."
NO_BRANCH_MESSAGE = "Select a branch first"
