"""Shared helpers for integration tests."""

import uuid


def unique_user() -> dict[str, str]:
    """Fresh credentials so reruns never collide on the email constraint."""
    uid = uuid.uuid4().hex[:8]
    return {
        "email": f"test_{uid}@example.com",
        "password": "TestPass1",
        "first_name": "Test",
        "last_name": uid,
    }
