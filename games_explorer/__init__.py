"""
Game Release Explorer.

Cross-view filtering and derived metrics for a linked Dash dashboard over a
video game catalogue.
"""
