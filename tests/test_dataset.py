import unittest

import numpy as np
import torch

import tensor_data


class TestDataset(unittest.TestCase):
    def test_from_tensor_slices(self):
        tensor1 = torch.arange(1000)
        tensor2 = torch.arange(2000, dtype=torch.float32).reshape(1000, 2)

        ds = tensor_data.Dataset.from_tensor_slices([tensor1, tensor2])
        for i, r in enumerate(ds):
            self.assertEqual(len(r), 2)
            self.assertEqual(tensor1[i], r[0])
            self.assertTrue(torch.equal(tensor2[i], r[1]))

        self.assertEqual(i, 999)
        self.assertEqual(ds.output_types, (torch.int64, torch.float32))
        self.assertEqual(ds.output_shapes, ((), (2,)))

    def test_from_tensor_slices_single_tensor(self):
        ds = tensor_data.Dataset.from_tensor_slices(torch.arange(5))

        out = [r for r in ds]
        self.assertEqual(len(out), 5)
        self.assertTrue(all(len(r) == 1 for r in out))
        self.assertEqual([r[0].item() for r in out], [0, 1, 2, 3, 4])

    def test_from_tensor_slices_type_tags(self):
        ds = tensor_data.Dataset.from_tensor_slices(
            [np.arange(4), [[1, 2], [3, 4], [5, 6], [7, 8]]],
            output_types=[torch.float32, 'int32'])

        self.assertEqual(ds.output_types, (torch.float32, torch.int32))

        first = next(iter(ds))
        self.assertEqual(first[0].dtype, torch.float32)
        self.assertEqual(first[1].dtype, torch.int32)
        self.assertEqual(first[1].tolist(), [1, 2])

    def test_from_tensor_slices_errors(self):
        self.assertRaises(tensor_data.InvalidArgumentError, tensor_data.Dataset.from_tensor_slices,
                          [torch.arange(3), torch.arange(4)])
        self.assertRaises(tensor_data.InvalidArgumentError, tensor_data.Dataset.from_tensor_slices,
                          [torch.arange(3)], output_types=[torch.int64, torch.int64])
        self.assertRaises(tensor_data.InvalidArgumentError, tensor_data.Dataset.from_tensor_slices,
                          torch.tensor(1))
        self.assertRaises(tensor_data.InvalidArgumentError, tensor_data.Dataset.from_tensor_slices,
                          [torch.arange(3)], output_types=['not_a_type'])
        self.assertRaises(AssertionError, tensor_data.Dataset.from_tensor_slices, [])

    def test_from_tensors(self):
        tensor1 = torch.arange(10)
        tensor2 = torch.ones(3, 3)

        ds = tensor_data.Dataset.from_tensors((tensor1, tensor2))
        ds_iter = iter(ds)

        item = next(ds_iter)

        self.assertTrue(torch.equal(item[0], tensor1))
        self.assertTrue(torch.equal(item[1], tensor2))
        self.assertEqual(ds.output_shapes, ((10,), (3, 3)))

        self.assertRaises(StopIteration, next, ds_iter)

    def test_from_generator(self):
        def gen(n):
            for i in range(n):
                yield i, [i, i]

        ds = tensor_data.Dataset.from_generator(gen, output_types=[torch.int64, torch.float32],
                                                output_shapes=[(), (2,)], args=(100,))
        for i, r in enumerate(ds):
            self.assertEqual(r[0].item(), i)
            self.assertEqual(r[1].dtype, torch.float32)
            self.assertEqual(r[1].tolist(), [i, i])

        self.assertEqual(i, 99)

    def test_from_generator_shape_mismatch(self):
        ds = tensor_data.Dataset.from_generator(lambda: iter([torch.tensor([1, 2, 3])]), output_types=torch.int64,
                                                output_shapes=(2,))
        self.assertRaises(tensor_data.InvalidArgumentError, next, iter(ds))

    def test_from_async_generator(self):
        async def gen():
            for i in range(3):
                yield i

        ds = tensor_data.Dataset.from_generator(gen, output_types=torch.int64)
        self.assertEqual([r[0].item() for r in ds], [0, 1, 2])

    def test_range(self):
        self.assertEqual([r[0].item() for r in tensor_data.Dataset.range(5)], [0, 1, 2, 3, 4])
        self.assertEqual([r[0].item() for r in tensor_data.Dataset.range(2, 5)], [2, 3, 4])
        self.assertEqual([r[0].item() for r in tensor_data.Dataset.range(10, 0, -3)], [10, 7, 4, 1])
        self.assertRaises(AssertionError, tensor_data.Dataset.range)
        self.assertRaises(AssertionError, tensor_data.Dataset.range, 0, 5, 0)

    def test_iterations_are_independent(self):
        ds = tensor_data.Dataset.range(4)

        it1 = iter(ds)
        it2 = iter(ds)
        self.assertEqual(next(it1)[0].item(), 0)
        self.assertEqual(next(it1)[0].item(), 1)
        self.assertEqual(next(it2)[0].item(), 0)

        self.assertEqual([r[0].item() for r in ds], [0, 1, 2, 3])
        self.assertEqual([r[0].item() for r in ds], [0, 1, 2, 3])

    def test_exhausted_iterator_stays_exhausted(self):
        ds_iter = iter(tensor_data.Dataset.range(1))
        next(ds_iter)

        self.assertRaises(StopIteration, next, ds_iter)
        self.assertRaises(StopIteration, next, ds_iter)

    def test_as_numpy_iterator(self):
        ds = tensor_data.Dataset.from_tensor_slices([torch.arange(3)])

        out = list(ds.as_numpy_iterator())
        self.assertEqual(len(out), 3)
        self.assertTrue(isinstance(out[0][0], np.ndarray))
        self.assertEqual([o[0].item() for o in out], [0, 1, 2])

    def test_async_iteration(self):
        import asyncio

        ds = tensor_data.Dataset.range(3).prefetch(2)

        async def consume():
            return [r[0].item() async for r in ds]

        self.assertEqual(asyncio.run(consume()), [0, 1, 2])


if __name__ == '__main__':
    unittest.main()
