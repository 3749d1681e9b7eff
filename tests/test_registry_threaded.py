import threading

from methodreg import Registry


class counter:
    def __init__(self) -> None:
        self.value = 0

    def incr(self) -> None:
        current = self.value
        # widen the window between read and write
        for _ in range(10):
            pass
        self.value = current + 1

    def get(self) -> int:
        return self.value


def make_device(n: int) -> object:
    def ping(self) -> int:
        return n

    cls = type(f"device{n}", (), {"ping": ping, "__module__": __name__})
    return cls()


def test_concurrent_calls_are_serialized():
    r = Registry()
    c = counter()
    r.register(c)

    def worker():
        for _ in range(200):
            r.call("counter.incr")

    threads = [threading.Thread(target=worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert c.value == 2000
    assert r.call("counter.get") == [2000]


def test_concurrent_registration():
    r = Registry("fleet")

    threads = [
        threading.Thread(target=r.register, args=(make_device(i),)) for i in range(20)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(r) == 20
    for i in range(20):
        assert r.call(f"fleet.device{i}.ping") == [i]


def test_concurrent_register_and_call():
    r = Registry()
    r.register(counter())
    errors = []

    def caller():
        for _ in range(100):
            try:
                r.call("counter.incr")
                r.call("counter.get")
            except Exception as e:
                errors.append(e)

    def registrar(start, end):
        for i in range(start, end):
            r.register(make_device(i))

    threads = [threading.Thread(target=caller) for _ in range(5)]
    threads += [
        threading.Thread(target=registrar, args=(i * 10, (i + 1) * 10))
        for i in range(5)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(r) == 2 + 50
    assert r.call("counter.get") == [500]


def test_bulk_context_under_concurrency():
    r = Registry()
    r.register(counter())

    def bulk_worker():
        with r.bulk() as reg:
            before = reg.call("counter.get")[0]
            reg.call("counter.incr")
            assert reg.call("counter.get") == [before + 1]

    threads = [threading.Thread(target=bulk_worker) for _ in range(10)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert r.call("counter.get") == [10]


def test_snapshot_under_concurrent_registration():
    r = Registry()
    snapshots = []

    def registrar(n):
        r.register(make_device(n))

    def snapper():
        snapshots.append(r.snapshot())

    threads = []
    for i in range(10):
        threads.append(threading.Thread(target=registrar, args=(i,)))
        threads.append(threading.Thread(target=snapper))

    for t in threads:
        t.start()
    for t in threads:
        t.join()

    final_names = set(r)
    for snap in snapshots:
        assert set(snap.keys()).issubset(final_names)
