"""Reference gallery and matching."""

from .gallery import GalleryStorage, DirectoryGalleryStorage, GalleryLoader
from .matcher import Matcher, match, euclidean_distances

__all__ = [
    "GalleryStorage",
    "DirectoryGalleryStorage",
    "GalleryLoader",
    "Matcher",
    "match",
    "euclidean_distances",
]
