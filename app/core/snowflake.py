"""
缺陷ID生成

缺陷ID为 "B" + 十进制雪花ID，例如 B198245671923458048。
雪花ID（63位有效）由高到低为：41位毫秒时间戳、10位机器ID、12位序列号，
同一进程内生成的ID单调递增，可直接用于按创建顺序排序。
"""

import re
import threading
import time
from datetime import datetime, timezone
from typing import Any, NamedTuple, Optional

BUG_ID_PREFIX = "B"
BUG_ID_PATTERN = re.compile(r"B[0-9]{1,20}")

# 2024-01-01 00:00:00 UTC
EPOCH_MS = 1704067200000

MACHINE_ID_BITS = 10
SEQUENCE_BITS = 12
MAX_MACHINE_ID = (1 << MACHINE_ID_BITS) - 1
SEQUENCE_MASK = (1 << SEQUENCE_BITS) - 1


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


class SnowflakeParts(NamedTuple):
    created_at: datetime
    machine_id: int
    sequence: int


class SnowflakeGenerator:
    """线程安全的雪花ID生成器"""

    def __init__(self, machine_id: int = 1):
        if not 0 <= machine_id <= MAX_MACHINE_ID:
            raise ValueError(f"machine_id must be between 0 and {MAX_MACHINE_ID}, got {machine_id}")

        self.machine_id = machine_id
        self._sequence = 0
        self._last_ms = -1
        self._lock = threading.Lock()

    def generate_id(self) -> int:
        with self._lock:
            now = _now_ms()
            if now < self._last_ms:
                raise RuntimeError(f"Clock moved backwards by {self._last_ms - now}ms")

            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & SEQUENCE_MASK
                if self._sequence == 0:
                    # 本毫秒序列号用尽
                    while now <= self._last_ms:
                        now = _now_ms()
            else:
                self._sequence = 0

            self._last_ms = now
            return (
                (now - EPOCH_MS) << (MACHINE_ID_BITS + SEQUENCE_BITS)
                | self.machine_id << SEQUENCE_BITS
                | self._sequence
            )

    def next_bug_id(self) -> str:
        return f"{BUG_ID_PREFIX}{self.generate_id()}"

    @staticmethod
    def parse(snowflake_id: int) -> SnowflakeParts:
        """拆分雪花ID"""
        elapsed_ms = snowflake_id >> (MACHINE_ID_BITS + SEQUENCE_BITS)
        return SnowflakeParts(
            created_at=datetime.fromtimestamp((elapsed_ms + EPOCH_MS) / 1000, timezone.utc),
            machine_id=(snowflake_id >> SEQUENCE_BITS) & MAX_MACHINE_ID,
            sequence=snowflake_id & SEQUENCE_MASK,
        )


_generator: Optional[SnowflakeGenerator] = None
_generator_lock = threading.Lock()


def init_snowflake(machine_id: int = 1) -> None:
    """按配置的机器ID初始化全局生成器"""
    global _generator
    with _generator_lock:
        _generator = SnowflakeGenerator(machine_id)


def _get_generator() -> SnowflakeGenerator:
    global _generator
    generator = _generator
    if generator is None:
        with _generator_lock:
            # 加锁后再次检查，并发的首次调用只创建一个生成器
            if _generator is None:
                _generator = SnowflakeGenerator()
            generator = _generator
    return generator


def generate_bug_id() -> str:
    return _get_generator().next_bug_id()


def is_valid_bug_id(value: Any) -> bool:
    return isinstance(value, str) and BUG_ID_PATTERN.fullmatch(value) is not None
