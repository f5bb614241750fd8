"""Descriptor-set decoding and source-info comment attachment."""

from .comments import CommentExtractor
from .loader import DescriptorLoader, decode_descriptor_set

__all__ = ["CommentExtractor", "DescriptorLoader", "decode_descriptor_set"]
