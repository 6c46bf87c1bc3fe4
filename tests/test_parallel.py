from pycloud.parallel import parallel_filter, parallel_map, parallel_reduce


def test_map_preserves_order_across_chunks():
    items = list(range(1000))
    result = parallel_map(lambda x: x * 2, items, max_workers=4, min_chunk_size=10)
    assert result == [x * 2 for x in items]


def test_filter_across_chunks():
    items = list(range(1000))
    result = parallel_filter(lambda x: x % 3 == 0, items, max_workers=4, min_chunk_size=10)
    assert sorted(result) == [x for x in items if x % 3 == 0]


def test_reduce():
    items = list(range(1, 101))
    assert parallel_reduce(lambda x: x, lambda a, b: a + b, items, max_workers=3, min_chunk_size=5) == 5050
    assert parallel_reduce(lambda x: x, max, items, max_workers=1) == 100


def test_reduce_of_nothing_is_none():
    assert parallel_reduce(lambda x: x, lambda a, b: a + b, []) is None


def test_accepts_generators():
    assert parallel_map(lambda x: x + 1, (i for i in range(5))) == [1, 2, 3, 4, 5]
