"""Canned demo identities used when auth is mocked."""

from __future__ import annotations

import random
import threading
from collections import OrderedDict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional


def _demo_users(now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "id": "demo_user_123",
            "first_name": "Alex",
            "last_name": "Developer",
            "full_name": "Alex Developer",
            "username": "alexdev",
            "email": "alex.developer@demo.com",
            "image_url": "https://images.unsplash.com/photo-1472099645785-5658abf4ff4e?w=32&h=32&fit=crop&crop=face",
            "public_metadata": {"role": "developer", "plan": "premium"},
            "created_at": now - timedelta(days=30),
            "last_sign_in_at": now - timedelta(minutes=30),
        },
        {
            "id": "demo_user_456",
            "first_name": "Jordan",
            "last_name": "Designer",
            "full_name": "Jordan Designer",
            "username": "jordanux",
            "email": "jordan.designer@demo.com",
            "image_url": "https://images.unsplash.com/photo-1494790108755-2616b612b786?w=32&h=32&fit=crop&crop=face",
            "public_metadata": {"role": "designer", "plan": "basic"},
            "created_at": now - timedelta(days=60),
            "last_sign_in_at": now - timedelta(hours=2),
        },
    ]


def mock_identity_is_premium(identity: Dict[str, Any]) -> bool:
    metadata = identity.get("public_metadata") or {}
    return str(metadata.get("plan", "")).lower() == "premium"


class MockIdentitySource:
    """Picks one demo identity on first use and keeps it for its lifetime."""

    def __init__(self, rng: Optional[random.Random] = None, now: Optional[datetime] = None):
        self._rng = rng or random.Random()
        self._now = now
        self._identity: Optional[Dict[str, Any]] = None
        self._session: Optional[Dict[str, Any]] = None
        self._lock = threading.Lock()

    def identity(self) -> Dict[str, Any]:
        with self._lock:
            if self._identity is None:
                now = self._now or datetime.now(timezone.utc)
                self._identity = self._rng.choice(_demo_users(now))
            return self._identity

    def session(self) -> Dict[str, Any]:
        identity = self.identity()
        with self._lock:
            if self._session is None:
                now = self._now or datetime.now(timezone.utc)
                self._session = {
                    "id": f"sess_demo_{identity['id']}",
                    "user_id": identity["id"],
                    "status": "active",
                    "last_active_at": now,
                    "expire_at": now + timedelta(hours=24),
                }
            return self._session


class DemoSessionRegistry:
    """One mock identity source per demo page-view key, held in memory only."""

    def __init__(self, max_sessions: int = 1024, rng: Optional[random.Random] = None):
        self._max_sessions = max_sessions
        self._rng = rng
        self._sources: "OrderedDict[str, MockIdentitySource]" = OrderedDict()
        self._lock = threading.Lock()

    def source_for(self, session_key: str) -> MockIdentitySource:
        with self._lock:
            source = self._sources.get(session_key)
            if source is None:
                source = MockIdentitySource(rng=self._rng)
                self._sources[session_key] = source
                while len(self._sources) > self._max_sessions:
                    self._sources.popitem(last=False)
            else:
                self._sources.move_to_end(session_key)
            return source

    def __contains__(self, session_key: object) -> bool:
        with self._lock:
            return session_key in self._sources

    def clear(self) -> None:
        with self._lock:
            self._sources.clear()

    def __len__(self) -> int:
        return len(self._sources)


demo_sessions = DemoSessionRegistry()
