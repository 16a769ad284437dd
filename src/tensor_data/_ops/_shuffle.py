import random

import aioitertools


class _ShuffleIterator:
    def __init__(self, source_iter, buffer_size, rand):
        self._source_iter = source_iter
        self._buffer_size = buffer_size
        self._rand = rand

        self._buffer = None

    def __aiter__(self):
        return self

    async def _pull(self):
        if self._source_iter is None:
            return None

        try:
            return await aioitertools.next(self._source_iter)
        except StopAsyncIteration:
            self._source_iter = None
            return None

    async def __anext__(self):
        if self._buffer is None:
            self._buffer = []
            while len(self._buffer) < self._buffer_size:
                sample = await self._pull()
                if sample is None:
                    break
                self._buffer.append(sample)

        if not self._buffer:
            raise StopAsyncIteration()

        idx = self._rand.randrange(len(self._buffer))
        sample = self._buffer[idx]

        # the emptied slot takes the next source element, or the last buffered one
        replacement = await self._pull()
        if replacement is not None:
            self._buffer[idx] = replacement
        else:
            self._buffer[idx] = self._buffer[-1]
            self._buffer.pop()

        return sample


class ShuffleDataOperation:
    def __init__(self, *, source, buffer_size, seed=None, reshuffle_each_iteration=True):
        self._source = source
        self._buffer_size = buffer_size

        if reshuffle_each_iteration:
            self._rand = random.Random(seed)
            self._seed = None
        else:
            self._rand = None
            self._seed = random.randrange(2 ** 63) if seed is None else seed

    def get_iter(self, session_id):
        rand = self._rand
        if rand is None:
            rand = random.Random(self._seed)

        return _ShuffleIterator(self._source.get_iter(session_id), self._buffer_size, rand)
