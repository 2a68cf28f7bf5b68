"""
Unit tests for the session token cache.
"""

from tbproxy.auth.cache import EXPIRY_MARGIN, SessionCache, SessionToken


class TestSessionCacheEmpty:
    """Tests for an empty cache."""

    def test_get_returns_none(self, cache):
        """Test that a fresh cache has no token."""
        assert cache.get() is None
        assert cache.token is None

    def test_clear_on_empty_cache(self, cache):
        """Test that clearing an empty cache is harmless."""
        cache.clear()
        assert cache.get() is None


class TestSessionCacheExpiry:
    """Tests for the expiry window and safety margin."""

    def test_set_then_get(self, cache):
        """Test that a freshly set token is returned."""
        cache.set("abc", ttl=3600)
        assert cache.get() == "abc"

    def test_expires_at_is_now_plus_ttl(self, cache, clock):
        """Test that expiry is computed from the clock."""
        cache.set("abc", ttl=3600)
        assert cache.token == SessionToken(value="abc", expires_at=clock.now + 3600)

    def test_token_usable_before_margin(self, cache, clock):
        """Test that the token is usable until the margin is reached."""
        cache.set("abc", ttl=3600)
        clock.advance(3600 - EXPIRY_MARGIN - 1)
        assert cache.get() == "abc"

    def test_token_stale_at_margin(self, cache, clock):
        """Test that the token is stale exactly 60s before expiry."""
        cache.set("abc", ttl=3600)
        clock.advance(3600 - EXPIRY_MARGIN)
        assert cache.get() is None

    def test_token_stale_after_expiry(self, cache, clock):
        """Test that an expired token is not returned."""
        cache.set("abc", ttl=3600)
        clock.advance(7200)
        assert cache.get() is None
        # Raw entry is kept until overwritten
        assert cache.token.value == "abc"

    def test_ttl_shorter_than_margin_is_never_usable(self, cache):
        """Test that a token living less than the margin is stale at once."""
        cache.set("abc", ttl=30)
        assert cache.get() is None

    def test_custom_margin(self, clock):
        """Test a cache with a custom margin."""
        cache = SessionCache(clock=clock, margin=0)
        cache.set("abc", ttl=10)
        clock.advance(9)
        assert cache.get() == "abc"


class TestSessionCacheOverwrite:
    """Tests for replacing and clearing entries."""

    def test_set_overwrites(self, cache):
        """Test that a second set replaces the first token."""
        cache.set("first", ttl=3600)
        cache.set("second", ttl=3600)
        assert cache.get() == "second"

    def test_set_overwrites_expiry(self, cache, clock):
        """Test that overwriting resets the expiry."""
        cache.set("first", ttl=3600)
        clock.advance(3590)
        cache.set("second", ttl=3600)
        assert cache.get() == "second"

    def test_clear(self, cache):
        """Test that clear drops the token."""
        cache.set("abc", ttl=3600)
        cache.clear()
        assert cache.get() is None
        assert cache.token is None
