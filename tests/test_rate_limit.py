from app.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_limiter_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = RateLimiter(3, 60, clock=clock)

    assert [limiter.hit("a@example.com") for _ in range(4)] == [True, True, True, False]
    assert limiter.is_limited("a@example.com")
    # Other keys are independent
    assert limiter.hit("b@example.com")


def test_limiter_window_slides():
    clock = FakeClock()
    limiter = RateLimiter(2, 60, clock=clock)
    limiter.hit("a")
    clock.now += 30
    limiter.hit("a")
    assert not limiter.hit("a")

    clock.now += 31
    # The first hit has left the window
    assert limiter.hit("a")
    assert not limiter.hit("a")


def test_magic_link_endpoint_is_rate_limited_per_email(client):
    for _ in range(5):
        assert client.post("/auth/magic-link", json={"email": "spam@example.com"}).status_code == 200

    resp = client.post("/auth/magic-link", json={"email": "spam@example.com"})
    assert resp.status_code == 429
    assert "error" in resp.json()

    assert client.post("/auth/magic-link", json={"email": "other@example.com"}).status_code == 200


def test_limiter_forgets_keys_once_their_window_passes():
    clock = FakeClock()
    limiter = RateLimiter(2, 60, clock=clock)
    limiter.hit("a@example.com")
    assert "a@example.com" in limiter._hits

    clock.now += 61
    assert not limiter.is_limited("a@example.com")
    assert "a@example.com" not in limiter._hits

    # Checking a key that was never hit does not store it
    assert not limiter.is_limited("never@example.com")
    assert limiter._hits == {}
