"""Constants for learning routes."""

FEEDBACK_FAILED_DETAIL = "Failed to process feedback"
