"""Busy/free calendar timelines for room booking.

Fetches busy events from any number of paged calendar sources, merges them in
chronological order and fills the gaps with bookable free slots.
"""

__version__ = "0.1.0"
