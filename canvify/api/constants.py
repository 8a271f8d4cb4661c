HOME_PAGE_URL = "https://open.spotify.com/"
CLIENT_VERSION = "1.2.70.61.g856ccd63"
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/138.0.0.0 Safari/537.36"
)
SERVER_TIME_URL = "https://open.spotify.com/api/server-time"
SESSION_TOKEN_URL = "https://open.spotify.com/api/token"
CANVAZ_API_URL = "https://gue1-spclient.spotify.com/canvaz-cache/v0/canvases"
TRACK_METADATA_API_URL = "https://api.spotify.com/v1/tracks/{track_id}"
LYRICS_API_URL = "https://spclient.wg.spotify.com/color-lyrics/v2/track/{track_id}"
TRACK_URI_TEMPLATE = "spotify:track:{track_id}"

SESSION_TOKEN_REASON = "canvas-lyric"
SESSION_TOKEN_PRODUCT_TYPE = "mobile-web-player"

REQUEST_TIMEOUT = 10.0

TOTP_PERIOD = 30
TOTP_DIGITS = 6
TOTP_SECRETS_URL = (
    "https://raw.githubusercontent.com/Thereallo1026/spotify-secrets/"
    "refs/heads/main/secrets/secretDict.json"
)
TOTP_SECRETS_TIMEOUT = 10.0
TOTP_SECRETS_REFRESH_INTERVAL = 60 * 60
TOTP_FALLBACK_VERSION = "19"
TOTP_FALLBACK_CIPHERTEXT = (
    99, 111, 47, 88, 49, 56, 118, 65, 52, 67, 50, 104, 117,
    101, 55, 94, 95, 75, 94, 49, 69, 36, 85, 64, 74, 60,
)
