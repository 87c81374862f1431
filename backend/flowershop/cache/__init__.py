"""
Cache package initialization.

Redis connection management used by the cart store.
"""
