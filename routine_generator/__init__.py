"""
AI workout routine generation: schedule resolution, prompt composition,
provider calls and response normalization.
"""
