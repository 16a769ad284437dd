import torch


class _RangeIterator:
    def __init__(self, session_id, values):
        self._session_id = session_id
        self._values = values

    def __aiter__(self):
        return self

    async def __anext__(self):
        if self._values is None:
            raise StopAsyncIteration()

        value = next(self._values, None)
        if value is None:
            self._values = None
            raise StopAsyncIteration()
        else:
            return (torch.tensor(value, dtype=torch.int64),)


class RangeDataSource:
    def __init__(self, *, start, stop, step):
        self._range = range(start, stop, step)

    def get_iter(self, session_id):
        return _RangeIterator(session_id, iter(self._range))
