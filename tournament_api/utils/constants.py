"""
Constants used across the standings and statistics calculations.
"""

# Standings points
POINTS_PER_WIN = 3
POINTS_PER_DRAW = 1
POINTS_PER_LOSS = 0

# Statistics defaults
DEFAULT_TOP_SCORERS_LIMIT = 10
SUMMARY_TOP_SCORERS_LIMIT = 5
SUMMARY_MATCHES_LIMIT = 5
TOP_TEAMS_LIMIT = 5

# Pagination
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
