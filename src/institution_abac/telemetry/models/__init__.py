"""Log event models."""
