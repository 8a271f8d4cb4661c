from .api import SpotifyApi
from .canvaz import decode_canvaz_response, encode_canvaz_request
from .totp import SecretStore, Totp
