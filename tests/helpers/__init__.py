"""Test helpers for Breathwork tests.

    from tests.helpers import FakeRemoteStore, InMemoryLocalCache, make_program, utc

- fakes.py: in-memory remote store / local cache with failure injection
- records.py: record builders and YAML scenario loading
"""

from tests.helpers.fakes import FakeRemoteStore, InMemoryLocalCache
from tests.helpers.records import default_days, iso, load_scenario, make_program, utc

__all__ = [
    "FakeRemoteStore",
    "InMemoryLocalCache",
    "default_days",
    "iso",
    "load_scenario",
    "make_program",
    "utc",
]
