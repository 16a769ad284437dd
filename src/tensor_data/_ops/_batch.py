import aioitertools
import torch

from .._errors import InvalidArgumentError


class _BatchHelper:
    def __init__(self, batch_size, sample):
        self._shapes = [[batch_size] + list(item.size()) for item in sample]
        self._dtypes = [item.dtype for item in sample]
        self._devices = [item.device for item in sample]

    def make_batch(self):
        return tuple(torch.empty(*shape, dtype=dtype, device=device)
                     for shape, dtype, device in zip(self._shapes, self._dtypes, self._devices))

    def batch_insert(self, batch, idx, sample):
        if len(sample) != len(batch):
            raise InvalidArgumentError(
                f'Cannot batch elements with {len(sample)} and {len(batch)} components')

        for b, item in zip(batch, sample):
            if b.shape[1:] != item.shape:
                raise InvalidArgumentError(
                    f'Cannot batch tensors with different shapes: {tuple(b.shape[1:])} and {tuple(item.shape)}')
            b[idx, ...] = item


class _BatchIterator:
    def __init__(self, source_iter, batch_size, drop_remainder):
        self._source_iter = source_iter
        self._batch_size = batch_size
        self._drop_remainder = drop_remainder

        self._batch = None
        self._batch_counter = 0

        self._batch_helper = None

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            while self._source_iter is not None and self._batch_counter < self._batch_size:
                try:
                    sample = await aioitertools.next(self._source_iter)
                except StopAsyncIteration:
                    self._source_iter = None
                    break

                if self._batch_helper is None:
                    self._batch_helper = _BatchHelper(self._batch_size, sample)

                if self._batch is None:
                    self._batch = self._batch_helper.make_batch()

                self._batch_helper.batch_insert(self._batch, self._batch_counter, sample)
                self._batch_counter += 1

            if self._batch is None:
                raise StopAsyncIteration()
            elif self._batch_counter < self._batch_size:
                if self._drop_remainder:
                    raise StopAsyncIteration()
                return tuple(b[:self._batch_counter] for b in self._batch)
            else:
                return self._batch
        finally:
            self._batch_counter = 0
            self._batch = None


class BatchDataOperation:
    def __init__(self, *, source, batch_size, drop_remainder):
        self._source = source
        self._batch_size = batch_size
        self._drop_remainder = drop_remainder

    def get_iter(self, session_id):
        return _BatchIterator(self._source.get_iter(session_id), self._batch_size, self._drop_remainder)
