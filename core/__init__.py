"""Configuration, logging, time handling and per-category policy."""
