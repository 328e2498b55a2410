"""Infrastructure layer - HTTP transport, retry and configuration."""
