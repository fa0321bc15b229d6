from .dedup import LinkDedupCache, RepostNotice, extract_link  # noqa: F401

__all__ = ["LinkDedupCache", "RepostNotice", "extract_link"]
