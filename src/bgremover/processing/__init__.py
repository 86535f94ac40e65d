"""Background removal pipeline."""
