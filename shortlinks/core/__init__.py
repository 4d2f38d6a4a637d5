"""Configuration, errors, validation and process lifecycle."""
