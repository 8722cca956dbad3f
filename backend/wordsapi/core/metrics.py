"""Prometheus metrics for the application"""
from prometheus_client import Counter, Gauge, REGISTRY

# Word lookup metrics
try:
    word_lookups_counter = Counter(
        'words_lookups_total',
        'Total number of word lookups by resolution source',
        ['source']
    )
except ValueError:
    word_lookups_counter = REGISTRY._names_to_collectors.get('words_lookups_total')

# Review metrics
try:
    reviews_counter = Counter(
        'words_reviews_total',
        'Total number of submitted reviews',
        ['outcome']
    )
except ValueError:
    reviews_counter = REGISTRY._names_to_collectors.get('words_reviews_total')

# Session metrics
try:
    active_sessions_gauge = Gauge(
        'words_active_sessions',
        'Number of sessions currently held in memory'
    )
except ValueError:
    active_sessions_gauge = REGISTRY._names_to_collectors.get('words_active_sessions')

try:
    session_cleanup_runs_counter = Counter(
        'words_session_cleanup_runs_total',
        'Total number of session cleanup runs',
        ['status']
    )
except ValueError:
    session_cleanup_runs_counter = REGISTRY._names_to_collectors.get('words_session_cleanup_runs_total')

# Auth metrics
try:
    login_attempts_counter = Counter(
        'words_login_attempts_total',
        'Total number of login attempts',
        ['status']
    )
except ValueError:
    login_attempts_counter = REGISTRY._names_to_collectors.get('words_login_attempts_total')
