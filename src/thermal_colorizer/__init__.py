"""Colorize terrestrial LiDAR scan positions with co-registered thermal imagery."""
