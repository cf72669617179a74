"""Delivery of command payloads for matching schedules."""

from cronpost.posting.posters import LogPoster, Poster, WebhookPoster, build_poster

__all__ = ["LogPoster", "Poster", "WebhookPoster", "build_poster"]
