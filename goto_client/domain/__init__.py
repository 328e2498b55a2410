"""Domain layer - Wire models, error taxonomy and pure decoding services."""
