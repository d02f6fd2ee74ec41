import asyncio

from impressions.auth_gate import AuthGate, GateState


async def test_authenticated_when_check_confirms():
    async def check():
        return True

    gate = AuthGate(timeout=1.0)
    assert gate.state == GateState.CHECKING
    assert await gate.run(check) == GateState.AUTHENTICATED
    assert gate.state == GateState.AUTHENTICATED


async def test_redirects_when_check_denies():
    async def check():
        return False

    assert await AuthGate(timeout=1.0).run(check) == GateState.REDIRECTING


async def test_redirects_when_check_raises():
    async def check():
        raise RuntimeError("backend exploded")

    assert await AuthGate(timeout=1.0).run(check) == GateState.REDIRECTING


async def test_redirects_after_timeout_when_check_never_settles():
    cancelled = asyncio.Event()

    async def check():
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.set()
            raise

    gate = AuthGate(timeout=0.2)
    loop = asyncio.get_running_loop()
    started = loop.time()
    state = await gate.run(check)
    elapsed = loop.time() - started

    assert state == GateState.REDIRECTING
    assert elapsed >= 0.19
    assert elapsed < 1.5
    assert cancelled.is_set()


async def test_slow_but_successful_check_within_timeout():
    async def check():
        await asyncio.sleep(0.05)
        return True

    assert await AuthGate(timeout=1.0).run(check) == GateState.AUTHENTICATED

