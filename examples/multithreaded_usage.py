"""examples/multithreaded_usage.py - Hook isolation across threads.

Each thread runs its own progress scope. Because the hook slot lives in a
ContextVar, a worker's ``update_progress()`` only ever reaches the scope
opened in that same thread; a thread that opens no scope reports into the
no-op hook.

Run:
    python examples/multithreaded_usage.py
"""

import logging
import threading
import time

from tracegate import update_progress, with_progress

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] [thread=%(threadName)s] %(message)s",
)


def copy_files(count: int) -> None:
    """Simulate copying ``count`` files, reporting after each."""
    for _ in range(count):
        time.sleep(0.01)
        update_progress()


def worker(label: str, count: int) -> None:
    with with_progress(label, 0, count):
        copy_files(count)


def unscoped_worker() -> None:
    # No scope in this thread: updates go to the no-op hook and print nothing.
    copy_files(3)


if __name__ == "__main__":
    threads = [
        threading.Thread(target=worker, args=("Copying photos", 4), name="Thread-A"),
        threading.Thread(target=worker, args=("Copying music", 2), name="Thread-B"),
        threading.Thread(target=unscoped_worker, name="Thread-C"),
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
