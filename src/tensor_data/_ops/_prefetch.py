import asyncio

import aioitertools


class _PrefetchIterator:
    _none = object()

    @staticmethod
    async def _prefetch_fn(output_queue, source_iter):
        while True:
            try:
                sample = await aioitertools.next(source_iter)
            except StopAsyncIteration:
                await output_queue.put((True, _PrefetchIterator._none))
                return
            except Exception as e:
                await output_queue.put((False, e))
                return

            await output_queue.put((True, sample))

    def __init__(self, session_id, source_iter, buffer_size):
        self._session_id = session_id
        self._source_iter = source_iter
        self._buffer_size = buffer_size

        self._buffer = None
        self._task = None

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._source_iter is None:
            raise StopAsyncIteration()

        if self._task is None:
            self._buffer = asyncio.Queue(self._buffer_size)
            self._task = asyncio.get_running_loop().create_task(
                _PrefetchIterator._prefetch_fn(self._buffer, self._source_iter))

        flag, sample = await self._buffer.get()
        if not flag:
            self._source_iter = None
            await self._task
            raise sample
        elif sample is self._none:
            self._source_iter = None
            await self._task
            raise StopAsyncIteration()
        else:
            return sample


class PrefetchDataOperation:
    def __init__(self, *, source, buffer_size):
        self._source = source
        self._buffer_size = buffer_size

    def get_iter(self, session_id):
        return _PrefetchIterator(session_id, self._source.get_iter(session_id), self._buffer_size)
