import threading
import time

from chat_core.files.locks import ReadWriteLock


def _start(target):
    thread = threading.Thread(target=target, daemon=True)
    thread.start()
    return thread


def test_readers_hold_the_lock_together():
    lock = ReadWriteLock()
    inside = threading.Barrier(2, timeout=5)

    def reader():
        with lock.read_locked():
            # 两个读者都进入后 barrier 才会放行
            inside.wait()

    threads = [_start(reader) for _ in range(2)]
    for t in threads:
        t.join(5)
        assert not t.is_alive()


def test_writer_waits_for_readers():
    lock = ReadWriteLock()
    reading = threading.Event()
    release_reader = threading.Event()
    written = threading.Event()

    def reader():
        with lock.read_locked():
            reading.set()
            assert release_reader.wait(5)

    def writer():
        with lock.write_locked():
            written.set()

    r = _start(reader)
    assert reading.wait(5)
    w = _start(writer)
    assert not written.wait(0.2)

    release_reader.set()
    assert written.wait(5)
    r.join(5)
    w.join(5)


def test_writer_excludes_readers_and_writers():
    lock = ReadWriteLock()
    entered = []

    def reader():
        with lock.read_locked():
            entered.append("reader")

    def writer():
        with lock.write_locked():
            entered.append("writer")

    with lock.write_locked():
        threads = [_start(reader), _start(writer)]
        time.sleep(0.2)
        assert entered == []

    for t in threads:
        t.join(5)
        assert not t.is_alive()
    assert sorted(entered) == ["reader", "writer"]


def test_waiting_writer_blocks_new_readers():
    lock = ReadWriteLock()
    first_reading = threading.Event()
    release_first = threading.Event()
    order = []

    def first_reader():
        with lock.read_locked():
            first_reading.set()
            assert release_first.wait(5)

    def writer():
        with lock.write_locked():
            order.append("writer")

    def late_reader():
        with lock.read_locked():
            order.append("reader")

    r1 = _start(first_reader)
    assert first_reading.wait(5)
    w = _start(writer)
    # 等写者进入等待
    deadline = time.monotonic() + 5
    while lock._writers_waiting == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert lock._writers_waiting == 1

    r2 = _start(late_reader)
    time.sleep(0.2)
    # 已有读者还没释放，但新读者被排在等待中的写者后面
    assert order == []

    release_first.set()
    for t in (r1, w, r2):
        t.join(5)
        assert not t.is_alive()
    assert order == ["writer", "reader"]
