"""Utilities for difyflow"""

from difyflow.utils.content_type import FileKind, detect, is_image, is_audio

__all__ = ["FileKind", "detect", "is_image", "is_audio"]
