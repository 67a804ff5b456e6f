"""Runtime fault taxonomy for the PPL interpreter.

Every violation an instruction can detect is raised as a subclass of
`PPLError`. Each class carries a stable `code` string which the engine copies
into the structured error dict returned by `Interpreter.run`, the same shape
the HTTP API surfaces to clients.
"""


class PPLError(Exception):
    """Base class for faults raised while executing a PPL program.

    Faults are recoverable at engine level: the run loop stops, reports the
    failing line and still renders the final symbol table. Anything that is not
    a `PPLError` is a bug in the interpreter and is allowed to propagate.
    """

    code = "RUNTIME_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class DuplicateDeclaration(PPLError):
    code = "DUPLICATE_DECLARATION"


class UndeclaredIdentifier(PPLError):
    code = "UNDECLARED_IDENTIFIER"


class TypeMismatch(PPLError):
    code = "TYPE_MISMATCH"


class ArityError(PPLError):
    code = "ARITY_ERROR"


class UnknownInstruction(PPLError):
    code = "UNKNOWN_INSTRUCTION"


class EmptyListAccess(PPLError):
    code = "EMPTY_LIST_ACCESS"


class InvalidLiteral(PPLError):
    code = "INVALID_LITERAL"


class JumpOutOfRange(PPLError):
    code = "JUMP_OUT_OF_RANGE"


class StepLimitExceeded(PPLError):
    code = "STEP_LIMIT"


class OutputLimitExceeded(PPLError):
    code = "OUTPUT_LIMIT"
