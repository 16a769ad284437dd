import aioitertools

from .._errors import InvalidArgumentError


class _SampleIterator:
    _none = object()

    def __init__(self, sample):
        if any(t.dim() == 0 for t in sample):
            raise InvalidArgumentError('Cannot unbatch an element with a rank-0 component')
        if len(set(len(t) for t in sample)) > 1:
            raise InvalidArgumentError('Cannot unbatch components with different batch sizes')

        self._iters = [iter(t) for t in sample]

    def __iter__(self):
        return self

    def __next__(self):
        sample = tuple(next(t, self._none) for t in self._iters)
        if any(s is self._none for s in sample):
            raise StopIteration()
        else:
            return sample


class _UnBatchIterator:
    def __init__(self, source_iter):
        self._source_iter = source_iter
        self._batch = None

    def __aiter__(self):
        return self

    async def __anext__(self):
        while self._source_iter is not None:
            if self._batch is None:
                try:
                    sample = await aioitertools.next(self._source_iter)
                    self._batch = _SampleIterator(sample)
                except StopAsyncIteration:
                    self._source_iter = None
                    raise

            try:
                return next(self._batch)
            except StopIteration:
                self._batch = None
        else:
            raise StopAsyncIteration()


class UnBatchDataOperation:
    def __init__(self, *, source):
        self._source = source

    def get_iter(self, session_id):
        return _UnBatchIterator(self._source.get_iter(session_id))
