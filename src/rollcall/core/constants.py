"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

MS_PER_MINUTE = 60 * 1000
MS_PER_HOUR = 60 * MS_PER_MINUTE
MS_PER_DAY = 24 * MS_PER_HOUR
MINUTES_PER_DAY = 24 * 60

DEFAULT_LOGIN_DOMAIN = "rollcall.local"
LOGIN_ID_SUFFIX_LENGTH = 4
MIN_ADMIN_PASSWORD_LENGTH = 6
MANAGER_PIN_LENGTH = 4

AVATAR_SEEDS = (
    "Liam", "Olivia", "Noah", "Emma", "Oliver", "Charlotte", "James", "Amelia",
    "Elijah", "Sophia", "William", "Isabella", "Henry", "Ava", "Lucas", "Mia",
    "Benjamin", "Evelyn", "Theodore", "Harper", "Alexander", "Emily", "Daniel",
    "Madison", "Matthew", "Abigail", "Jackson", "David", "Elizabeth",
)
