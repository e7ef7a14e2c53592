"""Fixed values that are not meant to be translated."""

APP_STORE_URL = "https://testflight.apple.com/join/ySeXo9RA"
GOOGLE_PLAY_URL = "https://play.google.com/store/apps/details?id=xyz.zood.george"

# Error code returned by the account API when a verification token is unknown.
ERROR_MISSING_VERIFICATION_TOKEN = 22