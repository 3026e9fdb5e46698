"""Game domain services: boards, rooms, the room registry and timers.

This package contains pure(ish) domain logic that is driven by the socket
gateway, keeping transport concerns separated from core game mechanics.
"""
