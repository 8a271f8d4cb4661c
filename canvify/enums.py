from enum import Enum


class ArtworkSource(Enum):
    CANVAS = "canvas"
    ALBUM_ART = "album-art"
    NOT_FOUND = "not-found"
