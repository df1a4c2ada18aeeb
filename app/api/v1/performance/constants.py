"""Constants for performance routes."""

DEFAULT_DAYS_AGO = 28
MAX_DAYS_AGO = 480

NOT_CONFIGURED_DETAIL = "Search Console is not configured"
NO_DATA_DETAIL = "Content item not found or has no search data for the range"
NO_RECORDS_DETAIL = "No performance records for the range"
