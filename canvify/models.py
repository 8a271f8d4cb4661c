from __future__ import annotations

from dataclasses import dataclass

from .enums import ArtworkSource


@dataclass(frozen=True)
class SecretVersion:
    version: str
    raw_digits: tuple[int, ...]


@dataclass(frozen=True)
class AccessToken:
    value: str
    minted_at: float
    expires_at: float = None
    is_anonymous: bool = None


@dataclass(frozen=True)
class Canvas:
    id: str = ""
    url: str = ""
    file_id: str = ""
    type: int = 0
    entity_uri: str = ""


@dataclass(frozen=True)
class CanvasResponse:
    canvases: tuple[Canvas, ...] = ()
    ttl_in_seconds: int = 0

    def first_url(self) -> str | None:
        return next((canvas.url for canvas in self.canvases if canvas.url), None)


@dataclass(frozen=True)
class ResolvedArtwork:
    source: ArtworkSource
    url: str = None

    @classmethod
    def canvas(cls, url: str) -> ResolvedArtwork:
        return cls(ArtworkSource.CANVAS, url)

    @classmethod
    def album_art(cls, url: str) -> ResolvedArtwork:
        return cls(ArtworkSource.ALBUM_ART, url)

    @classmethod
    def not_found(cls) -> ResolvedArtwork:
        return cls(ArtworkSource.NOT_FOUND)

    @property
    def found(self) -> bool:
        return self.source != ArtworkSource.NOT_FOUND


@dataclass(frozen=True)
class LyricLine:
    start_time_ms: int
    words: str

    def to_dict(self) -> dict:
        return {
            "startTimeMs": self.start_time_ms,
            "words": self.words,
        }
