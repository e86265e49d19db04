"""
Program interface (Anchor IDL) loading.

The IDL is the only source of truth for an instruction's argument list and
account list; nothing in the client hard-codes either. Names are exposed in
snake_case, the form AnchorPy uses for ``program.rpc`` keys and
``Context.accounts`` entries.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from anchorpy import Idl
from pyheck import snake

from .errors import IdlError

logger = logging.getLogger(__name__)


class ProgramInterface:
    """A loaded IDL: the raw document plus the AnchorPy ``Idl`` built from it."""

    def __init__(self, raw: Dict[str, Any], source: str = "<memory>"):
        if not isinstance(raw, dict) or not isinstance(raw.get("instructions"), list):
            raise IdlError(f"IDL {source} has no 'instructions' list")

        self.raw = raw
        self.source = source
        self._instructions: Dict[str, Dict[str, Any]] = {}
        for ix in raw["instructions"]:
            name = ix.get("name")
            if not name:
                raise IdlError(f"IDL {source} contains an unnamed instruction")
            self._instructions[snake(name)] = ix

        try:
            self.idl = Idl.from_json(json.dumps(raw))
        except Exception as e:
            raise IdlError(f"IDL {source} could not be parsed: {e}") from e

    @property
    def name(self) -> str:
        return self.raw.get("name", "")

    def instruction_names(self) -> List[str]:
        return list(self._instructions)

    def instruction(self, name: str) -> Dict[str, Any]:
        """Look up an instruction by camelCase or snake_case name."""
        ix = self._instructions.get(snake(name))
        if ix is None:
            raise IdlError(
                f"Instruction '{name}' not found in IDL '{self.name}'. "
                f"Available: {', '.join(self._instructions)}"
            )
        return ix

    def account_names(self, instruction: str) -> List[str]:
        return [snake(acc["name"]) for acc in self.instruction(instruction)["accounts"]]

    def signer_names(self, instruction: str) -> List[str]:
        return [
            snake(acc["name"])
            for acc in self.instruction(instruction)["accounts"]
            if acc.get("isSigner")
        ]

    def arg_names(self, instruction: str) -> List[str]:
        return [snake(arg["name"]) for arg in self.instruction(instruction).get("args", [])]

    def has_account_type(self, name: str) -> bool:
        return any(acc.get("name") == name for acc in self.raw.get("accounts", []))


def load_idl(path: Union[str, Path]) -> ProgramInterface:
    """
    Read an IDL JSON file.

    Raises:
        IdlError: If the file is missing, is not JSON, or is not an Anchor IDL.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise IdlError(f"IDL file not found: {file_path}")

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise IdlError(f"IDL file {file_path} is not valid JSON: {e}") from e

    interface = ProgramInterface(raw, source=str(file_path))
    logger.debug(
        f"Loaded IDL '{interface.name}' with {len(interface.instruction_names())} instructions"
    )
    return interface
