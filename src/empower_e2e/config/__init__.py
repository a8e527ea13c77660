"""Configuration layer: settings, section models, logging."""
