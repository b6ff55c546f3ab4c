"""
Application Constants

Centralizes the fixed timings and selectors used by the solver.
None of these are caller-configurable; they are tuned for the
Turnstile widget and the worker pool polling loop.

Usage:
    from config.constants import MAX_SOLVE_ATTEMPTS, POOL_POLL_INTERVAL_SECONDS
"""

# =============================================================================
# Browser Engines
# =============================================================================

SUPPORTED_BROWSER_TYPES = ("chromium", "firefox", "webkit")

# Engines that can run headless without an explicit User-Agent
HEADLESS_WITHOUT_USERAGENT = ("webkit",)


# =============================================================================
# Worker Pool
# =============================================================================

# How often a waiting task re-scans the pool for a free worker
POOL_POLL_INTERVAL_SECONDS = 0.1


# =============================================================================
# Interaction Loop
# =============================================================================

MAX_SOLVE_ATTEMPTS = 10

# Bounded read of the hidden response input
RESPONSE_READ_TIMEOUT_SECONDS = 2.0

# Bounded click on the challenge widget
CLICK_TIMEOUT_SECONDS = 1.0

# Pause after a click before reading again
CLICK_BACKOFF_SECONDS = 0.5

# Wait for the widget to be attached after navigation
ELEMENT_WAIT_TIMEOUT_SECONDS = 5.0


# =============================================================================
# Challenge Page
# =============================================================================

CHALLENGE_SELECTOR = "div.cf-turnstile"
RESPONSE_INPUT_SELECTOR = "[name=cf-turnstile-response]"

# Width forced onto the widget so the checkbox sits at a predictable spot
CHALLENGE_WIDTH_PX = 70


# =============================================================================
# Result Values
# =============================================================================

RESULT_NOT_READY = "CAPTCHA_NOT_READY"
RESULT_FAIL = "CAPTCHA_FAIL"
