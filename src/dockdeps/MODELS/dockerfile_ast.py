"""
Models for the Dockerfile Abstract Syntax Tree.

Each instruction kind the dependency walker cares about has its own model
carrying typed arguments; everything else is an OtherInstruction.
"""
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union
from pydantic import BaseModel, ConfigDict


class InstructionKind(str, Enum):
    """
    Instruction kinds the resolvers dispatch on.
    """
    FROM = "FROM"
    ADD = "ADD"
    COPY = "COPY"
    ENV = "ENV"
    EXPOSE = "EXPOSE"
    OTHER = "OTHER"


class Instruction(BaseModel):
    """
    Represents a single instruction in a Dockerfile.

    ``arguments`` holds the tokens after the keyword with flags removed,
    ``flags`` the ``--name=value`` tokens that preceded them.
    """
    model_config = ConfigDict(frozen=True)

    kind: InstructionKind
    keyword: str
    arguments: List[str] = []
    flags: List[str] = []
    original: str = ""
    line: int = 0

    def flag_value(self, name: str) -> Optional[str]:
        """Returns the value of ``--name=value`` if the flag is present."""
        prefix = f"--{name}="
        for flag in self.flags:
            if flag.startswith(prefix):
                return flag[len(prefix):]
        return None


class FromInstruction(Instruction):
    kind: Literal[InstructionKind.FROM] = InstructionKind.FROM
    image: str
    stage_name: Optional[str] = None


class CopyInstruction(Instruction):
    """
    ADD or COPY. The kind tells them apart, the arguments are the same.
    """
    kind: Literal[InstructionKind.ADD, InstructionKind.COPY]
    sources: List[str]
    destination: str

    @property
    def stage_source(self) -> Optional[str]:
        """Build stage or image named by ``--from=``, None for local sources."""
        return self.flag_value("from")


class EnvInstruction(Instruction):
    kind: Literal[InstructionKind.ENV] = InstructionKind.ENV
    pairs: List[Tuple[str, str]]


class ExposeInstruction(Instruction):
    kind: Literal[InstructionKind.EXPOSE] = InstructionKind.EXPOSE
    ports: List[str]


class OtherInstruction(Instruction):
    kind: Literal[InstructionKind.OTHER] = InstructionKind.OTHER


AnyInstruction = Union[
    FromInstruction, CopyInstruction, EnvInstruction, ExposeInstruction, OtherInstruction
]


class DockerfileAST(BaseModel):
    """
    Represents the complete Abstract Syntax Tree of a Dockerfile.
    """
    instructions: List[AnyInstruction] = []

    def of_kind(self, *kinds: InstructionKind) -> List[AnyInstruction]:
        """Instructions of the given kinds, in file order."""
        return [i for i in self.instructions if i.kind in kinds]
