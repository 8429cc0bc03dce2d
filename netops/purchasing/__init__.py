"""Augmentation and purchased-server planning."""
