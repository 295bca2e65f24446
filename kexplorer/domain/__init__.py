"""Domain logic: workspace layout and per-stage command construction."""
