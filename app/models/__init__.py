"""Request and response models for the Snipbook API."""
