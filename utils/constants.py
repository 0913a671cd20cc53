"""
Application-wide constants.
Centralizes magic numbers and table names.
"""

# Supabase tables
BARBERS_TABLE = "barbers"
SERVICES_TABLE = "services"
WEEKLY_AVAILABILITY_TABLE = "weekly_availability"
SCHEDULES_TABLE = "schedules"  # Date-specific overrides
APPOINTMENTS_TABLE = "appointments"

# Upsert conflict targets (one row per barber/day and barber/date)
WEEKLY_AVAILABILITY_CONFLICT = "barber_id,day_of_week"
SCHEDULES_CONFLICT = "barber_id,date"

# Validation limits
MAX_NAME_LENGTH = 100
MAX_DATE_RANGE_DAYS = 366

# Email function payload types
EMAIL_NEW_BOOKING = "new_booking"
EMAIL_CANCELLED = "cancelled"
