"""Tests for the worker pools."""

from __future__ import annotations

import threading

import pytest

from testmine.executor import TaskExecutor, default_cpu_threads, shared_pool


def test_tasks_run_on_their_pools() -> None:
    with TaskExecutor(io_threads=1, cpu_threads=2) as executor:
        io_name = executor.run_downloading_task(lambda: threading.current_thread().name).result()
        cpu_name = executor.run_computation_task(lambda: threading.current_thread().name).result()
        sink_name = executor.run_result_saving_task(lambda: threading.current_thread().name).result()

    assert io_name.startswith("testmine-io")
    assert cpu_name.startswith("testmine-cpu")
    assert sink_name.startswith("testmine-sink")


def test_sink_pool_is_single_threaded() -> None:
    with TaskExecutor(io_threads=1, cpu_threads=1) as executor:
        futures = [
            executor.run_result_saving_task(lambda: threading.current_thread().ident) for _ in range(5)
        ]
        idents = {future.result() for future in futures}

    assert len(idents) == 1


def test_zero_selects_the_shared_pool_and_survives_shutdown() -> None:
    executor = TaskExecutor(io_threads=0, cpu_threads=0)
    name = executor.run_computation_task(lambda: threading.current_thread().name).result()
    executor.shutdown()

    assert name.startswith("testmine-shared")
    assert shared_pool().submit(lambda: 42).result() == 42


def test_default_cpu_threads() -> None:
    executor = TaskExecutor()
    executor.shutdown()

    assert executor.io_threads == 1
    assert executor.cpu_threads == default_cpu_threads()
    assert default_cpu_threads() >= 1


def test_negative_thread_counts_are_rejected() -> None:
    with pytest.raises(ValueError):
        TaskExecutor(io_threads=-1)
