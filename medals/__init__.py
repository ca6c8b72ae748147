"""Score aggregation and medal classification for tasting contests."""
