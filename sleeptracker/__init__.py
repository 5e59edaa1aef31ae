"""Sleep tracker: record nights, rate them and review how you slept."""
