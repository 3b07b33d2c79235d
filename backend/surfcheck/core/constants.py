"""
Centralized constants for the scheduler, scoring thresholds and notification rules.

Change job IDs, label cut points or notification hours here instead of scattering
literals across services and routes. Environment-driven values live in config.Settings.
"""
from datetime import time

# Scheduler job IDs (must match ids used in main.py add_job)
NOTIFICATION_TICK_JOB_ID = "notification_tick"

# Label cut points (inclusive lower bounds)
EPIC_MIN_SCORE = 85
GOOD_MIN_SCORE = 70
OK_MIN_SCORE = 50

# Reasons kept per scored hour / highlights kept per window
MAX_REASONS = 3
MAX_HIGHLIGHTS = 5

# Time-of-day buckets, [start_hour, end_hour) in local time. Not configurable.
TIME_WINDOW_HOURS = {
    "morning": (5, 9),
    "midday": (9, 14),
    "afternoon": (14, 18),
}

# Board fit by mean swell height (m)
LONGBOARD_HEIGHT_RANGE = (0.5, 1.5)
SHORTBOARD_MIN_HEIGHT = 1.0
LIGHT_WIND_MAX_KMH = 10.0

# Notification rules
DAILY_SUMMARY_AT = time(8, 0)
REGIONAL_COMPARISON_AT = (time(6, 0), time(18, 0))
SPECIAL_ALERT_MIN_SCORE = 90  # strictly greater than
SUMMARY_TOP_WINDOWS = 3
REGIONAL_TOP_SPOTS = 3

# Forecast query bounds
FORECAST_MIN_DAYS = 1
FORECAST_MAX_DAYS = 8
FORECAST_DEFAULT_DAYS = 3
