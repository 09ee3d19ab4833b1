# ABOUTME: Exception types shared across the fetch pipeline.
# ABOUTME: Only cycle-level failures escape to callers; per-item failures are contained.


class HNDigestError(Exception):
    """Base class for hn-digest errors."""


class SourceUnavailableError(HNDigestError):
    """The Hacker News API could not be reached for a whole fetch cycle."""


class EnrichmentError(HNDigestError):
    """A translation or summarization backend call failed.

    Always caught by the enrichment fallback chain; never reaches the caller.
    """
