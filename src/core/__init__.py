"""Core domain package for birdwatch.

Core contains resolution, polling and dedup logic without any Telegram,
browser or HTTP-specific code, keeping the business logic portable.
"""
