from typing import Any, Dict, List, Optional


class MermaidGuardError(Exception):
    """Base class for every error raised by the graph kernel."""

    code = "MERMAID_GUARD_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class StructuralError(MermaidGuardError):
    """Raised by the incremental builder the moment an invariant breaks."""

    code = "STRUCTURAL_ERROR"


class MalformedDocumentError(MermaidGuardError):
    """The input is not a graph document at all."""

    code = "MALFORMED_DOCUMENT"

    def __init__(self, message: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        super().__init__(message, {"problems": self.problems})


class DocumentReadError(MermaidGuardError):
    """A document file could not be read or decoded."""

    code = "DOCUMENT_READ_ERROR"


class BudgetViolationError(MermaidGuardError):
    code = "BUDGET_VIOLATION"

    def __init__(self, violations: List[str], profile_name: str = ""):
        self.violations = list(violations)
        self.profile_name = profile_name
        super().__init__(
            f"Safety profile '{profile_name}' budget violations: "
            + "; ".join(self.violations),
            {"violations": self.violations, "profile": profile_name},
        )


class MermaidSyntaxError(MermaidGuardError):
    """Diagram text outside the supported flowchart subset."""

    code = "MERMAID_SYNTAX_ERROR"

    def __init__(self, problems: List[str]):
        self.problems = list(problems)
        super().__init__(
            f"Mermaid parse failed with {len(self.problems)} problem(s):\n"
            + "\n".join(self.problems),
            {"problems": self.problems},
        )


def describe_validation_error(exc, root: str = "value") -> List[str]:
    """Flatten a pydantic ValidationError into 'loc: message' lines."""
    return [
        f"{'.'.join(str(p) for p in err['loc']) or root}: {err['msg']}"
        for err in exc.errors()
    ]
