import re
import struct
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from byte_buffer.overflow import wrap_unsigned

# --- Memory Layout Constants ---
DEFAULT_CODE_BASE = 0x1000  # Where code is loaded
DEFAULT_DATA_BASE = 0x20000  # Region the byte stores land in

# Signed 12-bit immediate range of I/S-type instructions.
IMM12_MIN = -2048
IMM12_MAX = 2047


class RV32Type(str, Enum):
    I = "i"
    S = "s"
    U = "u"
    SYSTEM = "system"


# --- Assembly Templates ---
TEMPLATE_ITYPE = "{mnemonic} x{rd}, x{rs1}, {imm}"
TEMPLATE_STYPE = "{mnemonic} x{rs2}, {imm}(x{rs1})"
TEMPLATE_UTYPE = "{mnemonic} x{rd}, {imm:#x}"
TEMPLATE_LOAD = "{mnemonic} x{rd}, {imm}(x{rs1})"
TEMPLATE_SYSTEM = "{mnemonic}"


@dataclass
class RV32Mnemonic:
    literal: str
    format: RV32Type
    opcode: int
    f3: int = 0
    assembly_template: str = ""


# Only the subset needed to materialise constants and move bytes through memory.
ADDI = RV32Mnemonic("addi", RV32Type.I, 0x13, 0x0, TEMPLATE_ITYPE)
LBU = RV32Mnemonic("lbu", RV32Type.I, 0x03, 0x4, TEMPLATE_LOAD)
SB = RV32Mnemonic("sb", RV32Type.S, 0x23, 0x0, TEMPLATE_STYPE)
LUI = RV32Mnemonic("lui", RV32Type.U, 0x37, 0x0, TEMPLATE_UTYPE)
ECALL = RV32Mnemonic("ecall", RV32Type.SYSTEM, 0x73, 0x0, TEMPLATE_SYSTEM)

LITERAL_TO_MNEMONIC = {m.literal: m for m in [ADDI, LBU, SB, LUI, ECALL]}

# Tokens after the mnemonic; `imm(xN)` splits into two.
OPERAND_COUNT = {RV32Type.I: 3, RV32Type.S: 3, RV32Type.U: 2, RV32Type.SYSTEM: 0}


@dataclass
class Instruction:
    mnemonic: RV32Mnemonic
    rd: Optional[int] = None
    rs1: Optional[int] = None
    rs2: Optional[int] = None
    imm: Optional[int] = None

    _asm: str = field(init=False, repr=False)
    _binary: bytes = field(init=False, repr=False)

    def __post_init__(self):
        for name in ("rd", "rs1", "rs2"):
            reg = getattr(self, name)
            if reg is not None and not 0 <= reg <= 31:
                raise ValueError(f"register {name}=x{reg} out of range for {self.mnemonic.literal}")
        self._asm = self.__get_asm()
        self._binary = self.__get_binary()

    def __get_asm(self) -> str:
        return self.mnemonic.assembly_template.format(
            mnemonic=self.mnemonic.literal,
            rd=self.rd,
            rs1=self.rs1,
            rs2=self.rs2,
            imm=self.imm if self.imm is not None else 0,
        )

    def __get_binary(self) -> bytes:
        m = self.mnemonic
        fmt, op, f3 = m.format, m.opcode, m.f3
        rd = self.rd or 0
        rs1 = self.rs1 or 0
        rs2 = self.rs2 or 0
        imm = self.imm or 0

        res = 0
        if fmt == RV32Type.I:
            res = ((imm & 0xFFF) << 20) | (rs1 << 15) | (f3 << 12) | (rd << 7) | op
        elif fmt == RV32Type.S:
            res = (
                (((imm >> 5) & 0x7F) << 25)
                | (rs2 << 20)
                | (rs1 << 15)
                | (f3 << 12)
                | ((imm & 0x1F) << 7)
                | op
            )
        elif fmt == RV32Type.U:
            res = ((imm & 0xFFFFF) << 12) | (rd << 7) | op
        elif fmt == RV32Type.SYSTEM:
            res = (f3 << 12) | op

        return struct.pack("<I", res)

    @property
    def asm(self) -> str:
        return self._asm

    @property
    def binary(self) -> bytes:
        return self._binary

    @property
    def word(self) -> int:
        return struct.unpack("<I", self._binary)[0]

    @staticmethod
    def from_asm(line: str) -> "Instruction":
        # Example: "addi x1, x2, -1" -> ["addi", "x1", "x2", "-1"]
        # Example: "sb x5, 8(x6)"    -> ["sb", "x5", "8", "x6"]
        parts = re.findall(r"[\w\.\+-]+", line.replace(",", " "))
        if not parts:
            raise ValueError(f"Empty instruction line: {line!r}")
        literal = parts[0]
        if literal not in LITERAL_TO_MNEMONIC:
            raise ValueError(f"Unknown mnemonic '{literal}' in line: {line!r}")
        mnemonic = LITERAL_TO_MNEMONIC[literal]
        expected_parts = OPERAND_COUNT[mnemonic.format] + 1
        if len(parts) != expected_parts:
            raise ValueError(
                f"'{literal}' takes {expected_parts - 1} operands, got {len(parts) - 1}: {line!r}"
            )

        def r_idx(s):
            if not s.startswith("x"):
                raise ValueError(f"expected register, got '{s}'")
            return int(s[1:])

        def imm_val(s):
            return int(s, 0)

        try:
            if mnemonic.format == RV32Type.SYSTEM:
                return Instruction(mnemonic)
            if mnemonic.format == RV32Type.U:
                return Instruction(mnemonic, rd=r_idx(parts[1]), imm=imm_val(parts[2]))
            if mnemonic.format == RV32Type.S:
                return Instruction(
                    mnemonic, rs2=r_idx(parts[1]), imm=imm_val(parts[2]), rs1=r_idx(parts[3])
                )
            if mnemonic.assembly_template == TEMPLATE_LOAD:
                return Instruction(
                    mnemonic, rd=r_idx(parts[1]), imm=imm_val(parts[2]), rs1=r_idx(parts[3])
                )
            return Instruction(
                mnemonic, rd=r_idx(parts[1]), rs1=r_idx(parts[2]), imm=imm_val(parts[3])
            )
        except (IndexError, ValueError) as e:
            raise ValueError(f"Failed to parse instruction: {line!r} - {e}") from e


def load_immediate(rd: int, value: int) -> List[Instruction]:
    """`li rd, value` expanded to `lui` + `addi`. The upper part absorbs the carry
    from the sign-extended 12-bit lower part.
    """
    word = wrap_unsigned(value, 32)
    lower = word & 0xFFF
    if lower & 0x800:
        lower -= 0x1000
    upper = ((word - lower) >> 12) & 0xFFFFF
    return [
        Instruction(LUI, rd=rd, imm=upper),
        Instruction(ADDI, rd=rd, rs1=rd, imm=lower),
    ]


def assemble(instructions: List[Instruction]) -> bytes:
    bin_code = bytearray()
    for inst in instructions:
        bin_code.extend(inst.binary)
    return bytes(bin_code)
