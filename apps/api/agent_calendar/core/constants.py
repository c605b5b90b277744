"""Application constants."""

# Business window for bookable slots (local wall-clock hours, end exclusive)
BUSINESS_HOURS_START = 9  # 9:00 AM
BUSINESS_HOURS_END = 17  # 5:00 PM (17:00)

# Candidate slots are offered on the hour
SLOT_STEP_MINUTES = 60
MAX_CANDIDATE_SLOTS = 6

# Tokens expiring within this margin are refreshed before use
TOKEN_EXPIRY_MARGIN_SECONDS = 60
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600

# Tenant scheduling policy defaults
DEFAULT_DURATION_MINUTES = 60
DEFAULT_BUFFER_MINUTES = 15
DEFAULT_BOOKING_WINDOW_DAYS = 14

PRIMARY_CALENDAR_ID = "primary"

# Appended to every event description created by the agent
AGENT_BOOKING_MARKER = "Booked via AI Assistant"

NO_SLOTS_MESSAGE = "No available slots found in the requested time range"
