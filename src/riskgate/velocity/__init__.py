"""Velocity - per-user fixed-window transfer counters."""

from riskgate.velocity.counter import (
    InMemoryVelocityCounter,
    RedisVelocityCounter,
    VelocityCounter,
)

__all__ = [
    "InMemoryVelocityCounter",
    "RedisVelocityCounter",
    "VelocityCounter",
]
