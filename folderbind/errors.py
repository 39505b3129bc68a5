"""Exception types raised by the document engine."""


class HierarchyError(ValueError):
    """A mutation would break the structure of a hierarchy (e.g. a reorder that is not a permutation)."""


class ContractViolation(RuntimeError):
    """Internal error: a component received input an earlier stage should have filtered out."""


class AssemblyError(Exception):
    """
    A fatal failure while building a document.

    Carries the phase that failed and, when known, the path of the source file
    being processed so callers can log a meaningful message.
    """

    def __init__(self, message: str, phase: str, source: str | None = None):
        self.phase = phase
        self.source = source
        context = f"[{phase}]" if source is None else f"[{phase}] {source}"
        super().__init__(f"{context}: {message}")
