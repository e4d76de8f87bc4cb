"""Asynchronous operation utilities"""

import asyncio
import signal
import threading
from typing import Any, Coroutine, Iterable, TypeVar

T = TypeVar('T')


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in sync context

    Args:
        coro: Coroutine to run

    Returns:
        Coroutine result
    """
    loop = None
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        # No running loop
        pass

    if loop and loop.is_running():
        # Already in async context, create new thread
        result = None
        exception = None

        def run_in_thread():
            nonlocal result, exception
            try:
                result = asyncio.run(coro)
            except BaseException as e:
                exception = e

        thread = threading.Thread(target=run_in_thread)
        thread.start()
        thread.join()

        if exception:
            raise exception
        return result
    else:
        # No running loop, use asyncio.run
        return asyncio.run(coro)


async def _cancel_on_signals(coro: Coroutine[Any, Any, T],
                             signals: Iterable[signal.Signals]) -> T:
    loop = asyncio.get_running_loop()
    task = asyncio.ensure_future(coro)
    installed = []

    for sig in signals:
        try:
            loop.add_signal_handler(sig, task.cancel)
            installed.append(sig)
        except (NotImplementedError, RuntimeError, ValueError):
            # Not the main thread, or platform without signal support
            pass

    try:
        return await task
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def run_cancellable(coro: Coroutine[Any, Any, T],
                    signals: Iterable[signal.Signals] = (signal.SIGTERM,)) -> T:
    """
    Run a coroutine, cancelling it when one of the given signals arrives

    Ctrl-C is already turned into a cancellation by asyncio.run; this adds
    the same behaviour for SIGTERM sent by service managers and CI runners.

    Args:
        coro: Coroutine to run
        signals: Signals that cancel the coroutine

    Returns:
        Coroutine result

    Raises:
        asyncio.CancelledError: If a signal cancelled the run
    """
    return run_async(_cancel_on_signals(coro, tuple(signals)))
