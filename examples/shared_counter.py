#!/usr/bin/env python
"""Increment one counter from several processes without a lock service.

Every process races on the same entry of the same group. Conflicts are
resolved by re-reading and re-applying the increment, so no update is lost.

Usage:
    python examples/shared_counter.py --workers 4 --increments 25
    python examples/shared_counter.py --backend azure --container coordination
"""

import argparse
import multiprocessing
import time

from atomicblob import Context, get_bucket, new_group


def increment(content: bytes) -> bytes:
    return str(int(content or b"0") + 1).encode()


def worker(backend: str, location: str, increments: int) -> None:
    kwargs = {"container": location} if backend == "azure" else {"base_path": location}
    group = new_group(get_bucket(backend, **kwargs), "counters")
    ctx = Context.background().with_timeout(120)
    for _ in range(increments):
        group.operate(ctx, "hits", increment)


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--backend", default="local", choices=["local", "azure"])
    parser.add_argument("--path", default="/tmp/atomicblob/example")
    parser.add_argument("--container", default="atomicblob")
    parser.add_argument("--workers", type=int, default=4)
    parser.add_argument("--increments", type=int, default=25)
    args = parser.parse_args()

    location = args.container if args.backend == "azure" else args.path
    kwargs = {"container": location} if args.backend == "azure" else {"base_path": location}
    group = new_group(get_bucket(args.backend, **kwargs), "counters")
    ctx = Context.background()
    start = group.operate(ctx, "hits", lambda c: c or b"0")

    print(f"Starting value: {start.decode()}")
    print(f"Running {args.workers} workers x {args.increments} increments...")

    began = time.time()
    procs = [
        multiprocessing.Process(target=worker, args=(args.backend, location, args.increments))
        for _ in range(args.workers)
    ]
    for p in procs:
        p.start()
    for p in procs:
        p.join()

    final = int(group.get(ctx, "hits"))
    expected = int(start) + args.workers * args.increments
    print(f"Final value: {final} (expected {expected}) in {time.time() - began:.1f}s")
    print(f"Group serial: {group.info(ctx).serial}")


if __name__ == "__main__":
    main()
