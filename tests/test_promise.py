"""
Test 4: Promise adapter (core.py, adapters.py)

Tests promise() for callback-style, direct-return and awaitable callables.
"""

import asyncio

import pytest

from paramctx import CallbackError, Context, SignatureParseError, adapters


# ============================================================================
# Direct return
# ============================================================================

class TestDirectReturn:

    @pytest.mark.asyncio
    async def test_resolves_return_value(self, context):
        context.set({"a": 1, "b": 2})
        assert await context.promise(lambda a, b: a + b) == 3

    @pytest.mark.asyncio
    async def test_returns_future(self, context):
        future = context.promise(lambda: "value")
        assert asyncio.isfuture(future)
        assert future.done()
        assert future.result() == "value"

    @pytest.mark.asyncio
    async def test_call_site_parameters(self, context):
        context.set({"a": 1, "b": 2})
        assert await context.promise(lambda a, b: a + b, {"b": 10}) == 11

    @pytest.mark.asyncio
    async def test_returned_exception_rejects(self, context):
        def fn():
            return ValueError("returned")

        with pytest.raises(ValueError, match="returned"):
            await context.promise(fn)

    @pytest.mark.asyncio
    async def test_raised_exception_rejects(self, context):
        def fn():
            raise KeyError("raised")

        future = context.promise(fn)
        with pytest.raises(KeyError):
            await future

    @pytest.mark.asyncio
    async def test_none_result(self, context):
        assert await context.promise(lambda: None) is None


# ============================================================================
# Awaitable return
# ============================================================================

class TestAwaitableReturn:

    @pytest.mark.asyncio
    async def test_future_passed_through(self, context):
        future = asyncio.get_running_loop().create_future()
        future.set_result(42)

        promise = context.promise(lambda: future)
        assert promise is future
        assert await promise == 42

    @pytest.mark.asyncio
    async def test_coroutine_function(self, context):
        async def fn(a):
            await asyncio.sleep(0)
            return a * 2

        context.set("a", 21)
        assert await context.promise(fn) == 42

    @pytest.mark.asyncio
    async def test_coroutine_failure_rejects(self, context):
        async def fn():
            raise RuntimeError("async failure")

        with pytest.raises(RuntimeError, match="async failure"):
            await context.promise(fn)

    @pytest.mark.asyncio
    async def test_pending_future(self, context):
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        loop.call_soon(future.set_result, "later")

        assert await context.promise(lambda: future) == "later"


# ============================================================================
# Callback style
# ============================================================================

class TestCallbackStyle:

    @pytest.mark.asyncio
    async def test_resolves_callback_result(self, context):
        context.set({"a": 1, "b": 2})

        def fn(a, b, callback):
            callback(None, a + b)

        assert await context.promise(fn) == 3

    @pytest.mark.asyncio
    async def test_callback_error_rejects(self, context):
        context.set({"a": 1, "b": 2})

        def fn(a, b, callback):
            callback(Exception("boom"))

        with pytest.raises(Exception) as exc_info:
            await context.promise(fn)

        assert str(exc_info.value) == "boom"

    @pytest.mark.asyncio
    async def test_non_exception_error_wrapped(self, context):
        def fn(callback):
            callback("bad input")

        with pytest.raises(CallbackError) as exc_info:
            await context.promise(fn)

        assert exc_info.value.error == "bad input"

    @pytest.mark.asyncio
    async def test_falsy_error_resolves(self, context):
        def fn(callback):
            callback(0, "result")

        assert await context.promise(fn) == "result"

    @pytest.mark.asyncio
    async def test_settles_later(self, context):
        def fn(callback):
            asyncio.get_running_loop().call_soon(callback, None, "later")

        future = context.promise(fn)
        assert not future.done()
        assert await future == "later"

    @pytest.mark.asyncio
    async def test_first_settlement_wins(self, context):
        def fn(callback):
            callback(None, 1)
            callback(None, 2)
            callback(Exception("ignored"))

        assert await context.promise(fn) == 1

    @pytest.mark.asyncio
    async def test_sync_exception_rejects(self, context):
        def fn(callback):
            raise RuntimeError("sync failure")

        with pytest.raises(RuntimeError, match="sync failure"):
            await context.promise(fn)

    @pytest.mark.asyncio
    async def test_exception_after_settlement_keeps_result(self, context):
        def fn(callback):
            callback(None, "settled")
            raise RuntimeError("too late")

        assert await context.promise(fn) == "settled"

    @pytest.mark.asyncio
    async def test_configured_callback_name(self):
        ctx = Context(callback=["callback", "done"])

        def fn(value, done):
            done(None, value)

        ctx.set("value", "ok")
        assert await ctx.promise(fn) == "ok"

    @pytest.mark.asyncio
    async def test_async_callback_function(self, context):
        async def fn(a, callback):
            await asyncio.sleep(0)
            callback(None, a)

        context.set("a", "from coroutine")
        assert await context.promise(fn) == "from coroutine"

    @pytest.mark.asyncio
    async def test_async_callback_function_failure(self, context):
        async def fn(callback):
            await asyncio.sleep(0)
            raise RuntimeError("before callback")

        with pytest.raises(RuntimeError, match="before callback"):
            await context.promise(fn)

    @pytest.mark.asyncio
    async def test_coroutine_held_until_finished(self, context):
        release = asyncio.Event()

        async def fn(callback):
            callback(None, "early")
            await release.wait()

        before = set(adapters._pending_tasks)
        future = context.promise(fn)
        tasks = adapters._pending_tasks - before
        assert len(tasks) == 1

        assert await future == "early"
        (task,) = tasks
        assert task in adapters._pending_tasks

        release.set()
        await task
        await asyncio.sleep(0)
        assert task not in adapters._pending_tasks


# ============================================================================
# Errors outside the future
# ============================================================================

class TestPromiseErrors:

    @pytest.mark.asyncio
    async def test_parse_error_is_raised(self, context):
        with pytest.raises(SignatureParseError):
            context.promise(42)

    def test_requires_running_loop(self, context):
        with pytest.raises(RuntimeError):
            context.promise(lambda: 1)
