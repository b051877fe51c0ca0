import logging
import operator
from dataclasses import dataclass
from typing import Iterable, List, Optional

from byte_buffer.overflow import ByteRangeError, OverflowPolicy, coerce
from byte_buffer.rv32im import (
    DEFAULT_CODE_BASE,
    DEFAULT_DATA_BASE,
    IMM12_MAX,
    SB,
    Instruction,
    assemble,
    load_immediate,
)

logger = logging.getLogger("byte_buffer")

VALUE_REG = 5  # t0
BASE_REG = 6  # t1
PAGE_SIZE = 0x1000  # unicorn maps whole 4KiB pages


class OracleError(RuntimeError):
    pass


@dataclass(frozen=True)
class Mismatch:
    value: int
    expected: Optional[int]
    observed: int


class StoreOracle:
    """Ground truth for byte stores, taken from a RISC-V CPU instead of assumed.

    Every value is materialised into a 32-bit register and written with `sb`, which
    keeps the low 8 bits of the register. The data region is read back afterwards.
    """

    def __init__(
        self,
        *,
        code_base: int = DEFAULT_CODE_BASE,
        data_base: int = DEFAULT_DATA_BASE,
        mem_map_size: int = 4 * 1024 * 1024,
        max_chunk: int = IMM12_MAX + 1,
        timeout_us: int = 1_000_000,
    ):
        if not 1 <= max_chunk <= IMM12_MAX + 1:
            raise ValueError(f"max_chunk must be within [1, {IMM12_MAX + 1}], got {max_chunk}")
        if mem_map_size <= 0 or mem_map_size % PAGE_SIZE:
            raise ValueError(
                f"mem_map_size must be a positive multiple of {PAGE_SIZE:#x}, got {mem_map_size:#x}"
            )
        if data_base + max_chunk > mem_map_size:
            raise ValueError("data region does not fit into the mapped memory")
        self.code_base = code_base
        self.data_base = data_base
        self.mem_map_size = mem_map_size
        self.max_chunk = max_chunk
        self.timeout_us = timeout_us

    def store_bytes(self, values: Iterable[int]) -> List[int]:
        values = [operator.index(v) for v in values]
        observed: List[int] = []
        for start in range(0, len(values), self.max_chunk):
            observed.extend(self._run_chunk(values[start : start + self.max_chunk]))
        return observed

    def _build_program(self, chunk: List[int]) -> List[Instruction]:
        program: List[Instruction] = []
        for offset, value in enumerate(chunk):
            program.extend(load_immediate(VALUE_REG, value))
            program.append(Instruction(SB, rs2=VALUE_REG, rs1=BASE_REG, imm=offset))
        return program

    def _run_chunk(self, chunk: List[int]) -> List[int]:
        # Import lazily so byte_buffer can still be imported in environments without unicorn.
        from unicorn import UC_ARCH_RISCV, UC_MODE_RISCV32, Uc, UcError  # type: ignore
        from unicorn.riscv_const import UC_RISCV_REG_X0  # type: ignore

        program = self._build_program(chunk)
        code = assemble(program)
        code_end = self.code_base + len(code)
        data_end = self.data_base + len(chunk)
        if self.code_base < data_end and self.data_base < code_end:
            raise OracleError(
                f"program [{self.code_base:#x}, {code_end:#x}) overlaps data [{self.data_base:#x}, {data_end:#x})"
            )

        logger.debug(f"running {len(program)} instructions for {len(chunk)} byte stores")
        try:
            mu = Uc(UC_ARCH_RISCV, UC_MODE_RISCV32)
            mu.mem_map(0, self.mem_map_size)
            mu.mem_write(self.code_base, code)
            mu.reg_write(UC_RISCV_REG_X0 + BASE_REG, self.data_base)
            mu.emu_start(
                self.code_base,
                self.code_base + len(code),
                timeout=self.timeout_us,
                count=len(program),
            )
            observed = list(mu.mem_read(self.data_base, len(chunk)))
        except UcError as e:
            logger.error(f"emulation failed after {len(chunk)} queued stores: {e}")
            raise OracleError(f"emulation failed: {e}") from e
        del mu
        return observed

    def verify_policy(
        self, values: Iterable[int], policy: OverflowPolicy = OverflowPolicy.WRAP
    ) -> List[Mismatch]:
        values = list(values)
        observed = self.store_bytes(values)
        mismatches = []
        for value, seen in zip(values, observed):
            try:
                expected = coerce(value, policy)
            except ByteRangeError:
                expected = None  # the policy refuses a value the CPU stores anyway
            if expected != seen:
                mismatches.append(Mismatch(value, expected, seen))
        logger.info(
            f"checked {len(values)} values against the emulator under '{OverflowPolicy(policy).value}':"
            f" {len(mismatches)} mismatches"
        )
        return mismatches
