import asyncio


class EventLoopRunner:
    """Drives async iterators of a pipeline from synchronous code.

    Every task a pipeline spawns (prefetch, parallel map) lives on this loop
    and is cancelled when the runner closes.
    """

    def __init__(self):
        self._loop = asyncio.new_event_loop()

    @property
    def closed(self):
        return self._loop is None

    def run(self, coro):
        if self._loop is None:
            coro.close()
            raise RuntimeError('The event loop has been closed')

        return self._loop.run_until_complete(coro)

    def close(self):
        loop, self._loop = self._loop, None
        if loop is None:
            return

        tasks = [t for t in asyncio.all_tasks(loop) if not t.done()]
        for task in tasks:
            task.cancel()

        # another loop may be running in this thread when closing from __del__
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            if tasks:
                loop.run_until_complete(asyncio.gather(*tasks, return_exceptions=True))
            loop.run_until_complete(loop.shutdown_asyncgens())
        loop.close()
